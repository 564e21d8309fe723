[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vadkit"
version = "0.1.0"
description = "Fixed-point voice activity detection for 16-bit PCM audio"
requires-python = ">=3.10"
dependencies = []
keywords = ["vad", "voice activity detection", "speech", "audio", "pcm", "gmm"]
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
    "Topic :: Multimedia :: Sound/Audio :: Speech",
    "Topic :: Multimedia :: Sound/Audio :: Analysis",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
vadkit = "vadkit.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["vadkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
