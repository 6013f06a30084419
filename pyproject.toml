[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vektorcar"
version = "0.1.0"
description = "LiDAR-driven steering and speed control for a small autonomous race car, with serial command output"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = ["lidar", "autonomous", "race car", "uart", "serial", "robotics", "controller"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Human Machine Interfaces",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
vektorcar-timeserver = "vektorcar.timeserver:main"
vektorcar-replay = "vektorcar.uart:main"

[tool.hatch.build.targets.wheel]
packages = ["vektorcar"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
