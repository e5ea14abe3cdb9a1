"""Helpers for D-Bus object paths."""

from __future__ import annotations


def count_elements(path: str) -> int:
    """Return how many elements a path has; the root has none."""
    if not path or path == "/":
        return 0
    return path.count("/")


def split_elements(path: str) -> list[str]:
    """Split a path into its elements, leaving out the root."""
    if not path or path == "/":
        return []
    rest = path[1:]
    if not rest:
        return []
    elements = rest.split("/")
    if rest.endswith("/"):
        elements.pop()
    return elements


def fetch_elements(path: str, count: int) -> str:
    """Return the path made of the first ``count`` elements of ``path``."""
    if count == 0:
        return "/"
    if count > count_elements(path):
        return path
    return "".join("/" + element for element in split_elements(path)[:count])


def is_descendant(base: str, path: str) -> bool:
    """Whether ``path`` lies below ``base``."""
    if not base or not path:
        return False
    if base == path:
        return False
    if base == "/":
        return True
    return path.startswith(base)


def is_ascendant(base: str, path: str) -> bool:
    """Whether ``path`` is not ``base`` and does not lie below it."""
    if not base or not path:
        return False
    if base == path:
        return False
    return not is_descendant(base, path)


def is_child(base: str, path: str) -> bool:
    """Whether ``path`` lies exactly one level below ``base``."""
    if not base or not path or base == path:
        return False
    if not is_descendant(base, path):
        return False
    return count_elements(base) + 1 == count_elements(path)


def is_parent(base: str, path: str) -> bool:
    """Whether ``path`` lies exactly one level above ``base``."""
    if not base or not path or base == path:
        return False
    if not is_ascendant(base, path):
        return False
    return count_elements(base) - 1 == count_elements(path)


def next_child(base: str, path: str) -> str:
    """Return the child of ``base`` on the way to ``path``."""
    return fetch_elements(path, count_elements(base) + 1)