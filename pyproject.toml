[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ginx"
version = "0.1.0"
description = "Request context, routing engine, sessions, handler wrappers and middlewares for small HTTP services"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "http",
    "middleware",
    "session",
    "rate-limit",
    "access-log",
    "crawler-detection",
    "jwt",
]
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
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ginx"]

[tool.pytest.ini_options]
addopts = "-ra"
