[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xsubplayer"
version = "0.1.0"
description = "Reader, writer and timed compositor for xsub image subtitle files"
requires-python = ">=3.10"
keywords = ["subtitles", "xsub", "image subtitles", "overlay", "compositing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Video :: Display",
]
dependencies = [
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["xsubplayer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
