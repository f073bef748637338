[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "grftools"
version = "0.1.0"
description = "Building blocks for TTD graphics sets: PCX/PNG sprite sheets, NFO headers, message catalogs, MD5 and DOS-style paths"
requires-python = ">=3.10"
keywords = ["openttd", "ttd", "grf", "nfo", "pcx", "png", "sprites", "newgrf"]
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
    "Topic :: Games/Entertainment :: Simulation",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["grftools"]

[tool.hatch.build.targets.sdist]
include = [
    "grftools",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
