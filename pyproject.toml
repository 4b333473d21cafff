[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hearsay-bot"
version = "0.1.0"
description = "An IRC bot that records channel chatter into SQLite, with opt-out and scheduled data deletion."
requires-python = ">=3.10"
keywords = ["irc", "bot", "chat", "sqlite", "logging"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat :: Internet Relay Chat",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
hearsay = "hearsay_bot.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["hearsay_bot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
