[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "echoplex"
version = "0.1.0"
description = "Single-threaded TCP echo servers built on select, poll and epoll, with a word-by-word client"
requires-python = ">=3.10"
dependencies = []
keywords = ["tcp", "echo", "select", "poll", "epoll", "sockets", "server", "client"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
echoplex-server = "echoplex.servers:main"
echoplex-client = "echoplex.client:main"

[tool.hatch.build.targets.wheel]
packages = ["echoplex"]

[tool.pytest.ini_options]
addopts = "-ra"
