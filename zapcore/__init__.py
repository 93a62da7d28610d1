"""Core primitives for structured, leveled logging: levels, entries, fields, encoders and core wrappers."""

__version__ = "0.1.0"