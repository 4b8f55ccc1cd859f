"""Error message registry for FormForge.

Maps an error key ("required", "minLength", ...) to a human-readable
template. The registry starts from a frozen default table; overrides are
merged into a working copy and reset restores the defaults exactly.

Templates are either plain strings with {name} placeholders, filled from the
rule parameters, or callables that receive the parameters dict.

Usage:
    from formforge.validation.messages import set_error_messages

    set_error_messages({
        "required": "Este campo es obligatorio",
        "minLength": "Debe tener al menos {min} caracteres",
    })
"""

import logging
import re
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from formforge.errors import ConfigError
from formforge.validation.types import MessageOption, MessageTemplate

logger = logging.getLogger(__name__)

ErrorMessage = str | MessageTemplate


DEFAULT_MESSAGES: Mapping[str, ErrorMessage] = MappingProxyType({
    "required": "This field is required",
    "email": "Please enter a valid email address",
    "url": "Please enter a valid URL",
    "phone": "Please enter a valid phone number",
    "minLength": "Must be at least {min} characters",
    "maxLength": "Must be no more than {max} characters",
    "min": "Must be at least {min}",
    "max": "Must be no more than {max}",
    "pattern": "Invalid format",
    "matches": "Must match {field}",
    "oneOf": "Invalid value",
    "creditCard": "Please enter a valid credit card number",
    "postalCode": "Please enter a valid ZIP code",
    "alpha": "Must contain only letters",
    "alphanumeric": "Must contain only letters and numbers",
    "numeric": "Must be a valid number",
    "integer": "Must be a whole number",
})


class MessageRegistry:
    """Registry of error message templates.

    One process-wide instance backs the module-level helpers; tests and
    multi-locale hosts can build their own and inject it into rule
    constructors.
    """

    # Pattern: {paramName}
    PATTERN = re.compile(r"\{(?P<name>\w+)\}")

    def __init__(self, defaults: Mapping[str, ErrorMessage] = DEFAULT_MESSAGES):
        self._defaults: Mapping[str, ErrorMessage] = MappingProxyType(dict(defaults))
        self._messages: dict[str, ErrorMessage] = dict(self._defaults)

    @property
    def defaults(self) -> Mapping[str, ErrorMessage]:
        """The frozen default table."""
        return self._defaults

    def set_messages(self, messages: Mapping[str, ErrorMessage]) -> None:
        """Merge custom messages into the working table.

        New keys are added and existing keys overwritten; unrelated keys
        are kept.
        """
        self._messages = {**self._messages, **messages}
        logger.debug("Updated %d error message(s)", len(messages))

    def get_message(self, key: str, params: dict[str, Any] | None = None) -> str:
        """Get the message for a key, filled with params.

        Never raises for unknown keys; a diagnostic string naming the key is
        returned instead.
        """
        message = self._messages.get(key)
        if not message:
            return f"Validation error: {key}"

        if callable(message):
            return message(params or {})

        return self.interpolate(message, params or {})

    def reset(self) -> None:
        """Restore the default messages."""
        self._messages = dict(self._defaults)

    def interpolate(self, template: str, params: dict[str, Any]) -> str:
        """Replace {name} placeholders that have a matching param.

        Placeholders without a param are left untouched.
        """

        def replace(match: re.Match) -> str:
            name = match.group("name")
            if name in params:
                return str(params[name])
            return match.group(0)

        return self.PATTERN.sub(replace, template)

    def __contains__(self, key: object) -> bool:
        return key in self._messages


# Process-wide registry instance
message_registry = MessageRegistry()


def set_error_messages(messages: Mapping[str, ErrorMessage]) -> None:
    """Set custom error messages globally (i18n or customization)."""
    message_registry.set_messages(messages)


def get_error_message(key: str, params: dict[str, Any] | None = None) -> str:
    """Get an error message by key from the global registry."""
    return message_registry.get_message(key, params)


def reset_error_messages() -> None:
    """Reset global error messages to the defaults."""
    message_registry.reset()


def resolve_message(
    option: MessageOption,
    key: str,
    params: dict[str, Any] | None = None,
    registry: MessageRegistry | None = None,
) -> str:
    """Resolve a rule's message at construction time.

    Args:
        option: The caller's message option (literal, template, or None)
        key: Registry key used when no option is given
        params: Rule parameters passed to templates
        registry: Registry to consult; defaults to the global one

    Returns:
        The fixed message string for the rule
    """
    params = params or {}
    if callable(option):
        return option(params)
    if option:
        return option
    if registry is None:
        registry = message_registry
    return registry.get_message(key, params)


def load_message_catalog(path: Path) -> dict[str, str]:
    """Load a YAML message catalog.

    The file is a mapping of message key to template, optionally nested
    under a top-level ``messages`` key:

        messages:
          required: Este campo es obligatorio
          minLength: Debe tener al menos {min} caracteres

    Raises:
        ConfigError: If the file cannot be parsed or is not a str -> str mapping
    """
    try:
        with path.open(encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot load message catalog {path}: {exc}") from exc

    if isinstance(data, dict) and isinstance(data.get("messages"), dict):
        data = data["messages"]

    if not isinstance(data, dict):
        raise ConfigError(f"Message catalog {path} must be a mapping of key -> message")

    catalog: dict[str, str] = {}
    for key, message in data.items():
        if not isinstance(key, str) or not isinstance(message, str):
            raise ConfigError(
                f"Message catalog {path}: entry {key!r} must map a string key to a string"
            )
        catalog[key] = message

    return catalog
