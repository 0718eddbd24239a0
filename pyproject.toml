[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nebulabake"
version = "0.1.0"
description = "Offline bake data formats and CPU bake steps: chunked .nebula files, navigation meshes, probe SH projection and potentially visible sets"
requires-python = ">=3.10"
dependencies = [
    "zstandard",
]
keywords = ["baking", "navmesh", "pvs", "spherical-harmonics", "rgbe", "game-engine", "serialization"]
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
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
    "Topic :: Games/Entertainment",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["nebulabake"]

[tool.pytest.ini_options]
addopts = "-ra"
