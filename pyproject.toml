[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "peercache"
version = "0.1.0"
description = "Distributed byte cache with LRU eviction, consistent hashing, request coalescing and HTTP peers, plus a small TCP chat server"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "cache",
    "distributed-cache",
    "lru",
    "consistent-hashing",
    "singleflight",
    "wsgi",
    "chat",
]
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
peercache-http = "peercache.fat_http:main"
peercache-chat = "peercache.chat_server:main"

[tool.hatch.build.targets.wheel]
packages = ["peercache"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
