[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "leptoskit"
version = "0.2.35"
description = "Library helpers for a web build tool: path and file-system utilities, static file compression, CSS tool downloads, workspace metadata, process supervision and live-reload messages."
requires-python = ">=3.10"
keywords = ["build", "web", "live-reload", "tailwind", "sass", "compression"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "brotli>=1.0",
    "semver>=3.0",
    "httpx>=0.24",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "pytest-asyncio>=0.21",
]

[tool.hatch.build.targets.wheel]
packages = ["leptoskit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
