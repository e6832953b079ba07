[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sdkmeta"
version = "0.1.0"
description = "Assemble and resolve Objective-C API metadata from macOS SDK frameworks"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "macos",
    "sdk",
    "objective-c",
    "api",
    "metadata",
    "inheritance",
    "code-generation",
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
    "Topic :: Software Development :: Code Generators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sdkmeta"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
