[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ssfs"
version = "0.1.0"
description = "A simple inode-based file system stored in a virtual disk image"
requires-python = ">=3.10"
keywords = ["filesystem", "inode", "virtual disk", "disk image", "education"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ssfs-selftest = "ssfs.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ssfs"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
