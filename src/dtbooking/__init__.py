"""Interpreter booking service: matching, job lifecycle and notifications."""

__version__ = "1.0.0"
