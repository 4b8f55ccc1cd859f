"""FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from formforge.config import EngineConfig
from formforge.errors import FormForgeError
from formforge.forms.loader import FormLoader, FormModel
from formforge.forms.validator import validate_forms_dir
from formforge.validation.messages import load_message_catalog, set_error_messages
from formforge.validation.registry import register_builtin_rules

logger = logging.getLogger(__name__)


# Global instances (initialized on startup)
config: EngineConfig | None = None
form_loader: FormLoader | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup."""
    global config, form_loader

    config = EngineConfig.from_env()
    config.apply_log_level()

    register_builtin_rules()

    # Messages are resolved when rules are built, so apply the catalog first
    if config.messages_path is not None:
        set_error_messages(load_message_catalog(config.messages_path))

    # Check definitions (log issues, don't block startup)
    issues = validate_forms_dir(config.forms_path)
    if issues:
        for issue in issues:
            logger.error("Form definition error: %s", issue)
        logger.warning(
            "Form validation: %d issue(s). Run 'formforge forms check' for details.",
            len(issues),
        )

    form_loader = FormLoader(config.forms_path)
    form_loader.load_all()

    yield


app = FastAPI(title="FormForge API", lifespan=lifespan)

# CORS for frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ValidateRequest(BaseModel):
    values: dict[str, Any] = Field(default_factory=dict)


def _get_form(form: str) -> FormModel:
    if not form_loader or not config:
        raise HTTPException(500, "Form loader not initialized")

    form_model = form_loader.get_form(form)
    if not form_model:
        raise HTTPException(404, f"Form '{form}' not found")
    return form_model


def _create_driver(form_model: FormModel, values: dict[str, Any]):
    # One-shot request: no debounce, fresh validators per request
    try:
        return form_model.create_driver(
            values,
            validate_on=config.validate_on,
            revalidate_on=config.revalidate_on,
            debounce=False,
        )
    except FormForgeError as e:
        logger.error("Cannot build validators for form '%s': %s", form_model.name, e)
        raise HTTPException(500, f"Form '{form_model.name}' is misconfigured: {e}")


# --- Form Endpoints ---


@app.get("/api/forms")
async def list_forms() -> dict[str, Any]:
    """List all available forms."""
    if not form_loader:
        raise HTTPException(500, "Form loader not initialized")

    forms = []
    for name in form_loader.list_forms():
        form_model = form_loader.get_form(name)
        if form_model:
            forms.append({"name": form_model.name, "displayName": form_model.display_name})

    return {"forms": forms}


@app.get("/api/forms/{form}")
async def get_form(form: str) -> dict[str, Any]:
    """Get a form definition (fields and rule types)."""
    return _get_form(form).to_dict()


@app.post("/api/forms/{form}/validate")
async def validate_form(form: str, request: ValidateRequest) -> dict[str, Any]:
    """Validate a full set of values."""
    form_model = _get_form(form)
    driver = _create_driver(form_model, request.values)

    errors = await driver.validate_form()
    return {"valid": not errors, "errors": errors}


@app.post("/api/forms/{form}/fields/{field}/validate")
async def validate_field(form: str, field: str, request: ValidateRequest) -> dict[str, Any]:
    """Validate one field against the submitted values."""
    form_model = _get_form(form)
    if form_model.get_field(field) is None:
        raise HTTPException(404, f"Field '{field}' not found in form '{form}'")

    driver = _create_driver(form_model, request.values)

    error = await driver.validate_field(field)
    return {"field": field, "error": error}
