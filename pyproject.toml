[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "fabrickit"
version = "0.1.0"
description = "Application building blocks: undoable commands, lifecycle states, counted resources, a worker pool, timeout locks and console logging"
requires-python = ">=3.10"
dependencies = []
keywords = ["framework", "command-pattern", "undo", "redo", "resources", "lifecycle", "thread-pool", "rwlock"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["fabrickit*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
