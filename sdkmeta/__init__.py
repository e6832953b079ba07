"""Assemble and resolve Objective-C API metadata from macOS SDK frameworks."""

__version__ = "0.1.0"

__all__ = ["checkpoint", "facts", "model", "objc", "program", "resolve", "sdk"]