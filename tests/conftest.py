"""Shared fixtures for FormForge tests."""

from pathlib import Path

import pytest

from formforge.validation.messages import reset_error_messages
from formforge.validation.registry import RuleRegistry, register_builtin_rules

SIGNUP_YAML = """\
form: signup
displayName: Sign up
fields:
  - name: email
    rules:
      - type: required
      - type: email
  - name: password
    rules:
      - type: required
      - type: minLength
        params: {length: 8}
  - name: confirmPassword
    rules:
      - type: matches
        params: {field: password}
        message: Passwords must match
  - name: country
    default: US
  - name: state
    rules:
      - type: required
        when: {field: country, equals: US}
"""

VALID_SIGNUP = {
    "email": "ada@example.com",
    "password": "correct-horse",
    "confirmPassword": "correct-horse",
    "country": "US",
    "state": "CA",
}


@pytest.fixture
def builtin_rules():
    """Register built-in rules for the test, clearing the registry around it."""
    RuleRegistry.clear()
    register_builtin_rules()
    yield
    RuleRegistry.clear()


@pytest.fixture
def clean_messages():
    """Restore the default error messages around the test."""
    reset_error_messages()
    yield
    reset_error_messages()


@pytest.fixture
def forms_dir(tmp_path: Path) -> Path:
    """A forms directory holding the signup form."""
    path = tmp_path / "forms"
    path.mkdir()
    (path / "signup.yaml").write_text(SIGNUP_YAML)
    return path
