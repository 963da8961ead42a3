[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mountkit"
version = "0.1.0"
description = "Mount point helpers: mountinfo parsing, bind options, cleanup and an in-memory fake mounter"
requires-python = ">=3.10"
dependencies = []
keywords = ["mount", "mountinfo", "filesystem", "bind-mount", "unmount"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Operating System :: Microsoft :: Windows",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mountkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
