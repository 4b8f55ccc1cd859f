"""Exceptions raised by FormForge configuration and definition layers.

Validation failures are never exceptions: validators return a message string.
These exceptions cover misconfiguration only.
"""


class FormForgeError(Exception):
    """Base class for FormForge configuration errors."""
    pass


class RuleNotRegisteredError(FormForgeError, ValueError):
    """A rule type was referenced that has not been registered."""
    pass


class FormDefinitionError(FormForgeError, ValueError):
    """A form definition is malformed or references unknown fields."""
    pass


class ConfigError(FormForgeError, ValueError):
    """An engine configuration value is invalid."""
    pass
