"""FormForge: field-level form validation engine."""

__version__ = "0.1.0"
