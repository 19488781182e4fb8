[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtplugins"
version = "1.0.0"
description = "Command-line tools for Artifactory: build reports, dependency info, file specs, cleanup and file system browsing, plus helpers for running pipeline tasks locally."
requires-python = ">=3.10"
keywords = [
    "artifactory",
    "build-info",
    "aql",
    "file-spec",
    "cleanup",
    "pipelines",
    "docker",
    "cli",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
    "Topic :: System :: Software Distribution",
    "Topic :: Utilities",
]
dependencies = [
    "requests",
    "rich",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
build-deps-info = "rtplugins.builddeps:main"
build-report = "rtplugins.build_report:main"
file-spec-gen = "rtplugins.filespec:main"
rt-cleanup = "rtplugins.rtcleanup:main"
rm-empty = "rtplugins.emptyfolders:main"
rt-fs = "rtplugins.rtfs:main"

[tool.hatch.build.targets.wheel]
packages = ["rtplugins"]

[tool.hatch.build.targets.sdist]
include = ["rtplugins", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
