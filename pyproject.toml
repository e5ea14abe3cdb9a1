[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "simpledbus"
version = "0.1.0"
description = "Typed D-Bus value holders, D-Bus message marshalling and object path helpers."
requires-python = ">=3.10"
dependencies = []
keywords = ["dbus", "d-bus", "ipc", "marshalling", "wire-format", "object-path"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["simpledbus"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 110
target-version = "py310"
