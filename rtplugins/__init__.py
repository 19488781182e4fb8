"""Command-line tools and helpers for Artifactory builds and files, and for running pipeline tasks in Docker."""

__version__ = "1.0.0"