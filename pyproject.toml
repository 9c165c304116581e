[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "servercore"
version = "0.1.0"
description = "Building blocks for a threaded game server: reader-writer locks with deadlock detection, job queues, timers, pooled memory and packet sessions."
requires-python = ">=3.10"
dependencies = []
keywords = ["server", "game-server", "job-queue", "lock", "deadlock", "session", "packet"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["servercore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
