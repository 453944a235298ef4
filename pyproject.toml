[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "framelab"
version = "0.1.0"
description = "Replay sensor-driven moves, rotations and mirrors on 24-bit bitmap frames, verify frames against a reference, and simulate a segregated-list heap allocator"
requires-python = ">=3.10"
keywords = ["bitmap", "bmp", "frame buffer", "image transform", "affine transform", "allocator"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["framelab"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
