"""D-Bus value holders, message marshalling and object path helpers."""

__version__ = "0.1.0"

__all__ = ["holder", "message", "path"]