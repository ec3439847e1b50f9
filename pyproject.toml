[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hexascene"
version = "0.1.0"
description = "Scene hierarchy loading, transform math, software audio mixing and PNG helpers for small 3D games"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "pillow",
]
keywords = ["scene", "game", "transform", "quaternion", "audio", "mixer", "png", "wav", "chunk"]
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
    "Topic :: Games/Entertainment",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
    "Topic :: Multimedia :: Sound/Audio :: Mixers",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["hexascene"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
