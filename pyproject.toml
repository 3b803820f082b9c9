[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pish"
version = "0.1.0"
description = "A small interactive and scripting shell with pipes, subshells, conditional chains and command history"
requires-python = ">=3.10"
dependencies = []
keywords = ["shell", "command-line", "pipes", "subshell", "history"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Shells",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pish = "pish.shell:main"

[tool.hatch.build.targets.wheel]
packages = ["pish"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
