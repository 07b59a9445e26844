[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "serialterm"
version = "0.1.0"
description = "Serial port terminal tools: a curses menu terminal, an echo responder and a session layer with byte counters"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = ["serial", "uart", "terminal", "curses", "com-port", "tty"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Console :: Curses",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Operating System :: Microsoft :: Windows",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Terminals :: Serial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
serialterm-echo = "serialterm.echo:main"
serialterm-tui = "serialterm.tuiapp:main"

[tool.hatch.build.targets.wheel]
packages = ["serialterm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
