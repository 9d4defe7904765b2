"""Helpers for SGDK-based Mega Drive / Genesis development: projects, builds and emulators."""

__version__ = "0.1.1"