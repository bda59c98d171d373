[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pyrepackager"
version = "0.1.0"
description = "Scan Python trees and resolve packaging rules into modules and resources to embed"
requires-python = ">=3.11"
dependencies = []
keywords = ["packaging", "embedding", "python-distribution", "resources", "build"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["pyrepackager"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
