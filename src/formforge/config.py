"""Engine configuration."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from formforge.errors import ConfigError
from formforge.validation.types import ValidationMode

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _mode(name: str, default: ValidationMode) -> ValidationMode:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return ValidationMode(raw)
    except ValueError:
        choices = ", ".join(mode.value for mode in ValidationMode)
        raise ConfigError(f"{name}={raw!r} is not one of: {choices}") from None


@dataclass
class EngineConfig:
    """FormForge engine configuration.

    Attributes:
        forms_path: Directory of YAML form definitions
        messages_path: Optional YAML message catalog applied at startup
        validate_on: Default first-validation trigger for drivers
        revalidate_on: Default revalidation trigger for drivers
        debounce_ms: Delay for fields declared with `debounce: true`
        log_level: Level for the "formforge" logger
    """

    forms_path: Path = Path("forms")
    messages_path: Path | None = None
    validate_on: ValidationMode = ValidationMode.ON_BLUR
    revalidate_on: ValidationMode = ValidationMode.ON_CHANGE
    debounce_ms: float = 300
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> "EngineConfig":
        """Create config from environment variables.

        FORMFORGE_FORMS_PATH and FORMFORGE_MESSAGES_PATH are resolved
        against base_path when relative.

        Raises:
            ConfigError: If a variable holds an invalid value
        """
        base_path = base_path or Path.cwd()

        forms_path = Path(os.environ.get("FORMFORGE_FORMS_PATH") or "forms")
        if not forms_path.is_absolute():
            forms_path = base_path / forms_path

        messages_path = None
        raw_messages = os.environ.get("FORMFORGE_MESSAGES_PATH")
        if raw_messages:
            messages_path = Path(raw_messages)
            if not messages_path.is_absolute():
                messages_path = base_path / messages_path

        raw_debounce = os.environ.get("FORMFORGE_DEBOUNCE_MS")
        debounce_ms = 300.0
        if raw_debounce:
            try:
                debounce_ms = float(raw_debounce)
            except ValueError:
                raise ConfigError(
                    f"FORMFORGE_DEBOUNCE_MS={raw_debounce!r} is not a number"
                ) from None
            if debounce_ms < 0:
                raise ConfigError(f"FORMFORGE_DEBOUNCE_MS must be >= 0, got {raw_debounce}")

        log_level = (os.environ.get("FORMFORGE_LOG_LEVEL") or "INFO").upper()
        if log_level not in LOG_LEVELS:
            raise ConfigError(
                f"FORMFORGE_LOG_LEVEL={log_level!r} is not one of: " + ", ".join(LOG_LEVELS)
            )

        return cls(
            forms_path=forms_path,
            messages_path=messages_path,
            validate_on=_mode("FORMFORGE_VALIDATE_ON", ValidationMode.ON_BLUR),
            revalidate_on=_mode("FORMFORGE_REVALIDATE_ON", ValidationMode.ON_CHANGE),
            debounce_ms=debounce_ms,
            log_level=log_level,
        )

    def apply_log_level(self) -> None:
        """Set the level of the package logger."""
        logging.getLogger("formforge").setLevel(self.log_level)
