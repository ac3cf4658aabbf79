"""
Loading of tool settings from .env files, the process environment and
explicit overrides.
"""
import os
from typing import Any, Dict, Optional, Type, TypeVar

from dotenv import dotenv_values
from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


def load_settings(model: Type[T],
                  env_file: Optional[str] = ".env",
                  overrides: Optional[Dict[str, Any]] = None,
                  environ: Optional[Dict[str, str]] = None) -> T:
    """
    Builds a settings model from layered sources.

    Later sources override earlier ones: the .env file, then the process
    environment, then explicit overrides. Overrides whose value is None are
    ignored so unset CLI options fall through to the environment.

    :param model: The settings model class.
    :param env_file: Path to a .env file; skipped when missing.
    :param overrides: Field values keyed by field name or alias.
    :param environ: Environment to read instead of ``os.environ``.
    :return: The populated settings model.
    """
    aliases = {field.alias for field in model.model_fields.values() if field.alias}

    values: Dict[str, Any] = {}
    if env_file and os.path.exists(env_file):
        values.update({k: v for k, v in dotenv_values(env_file).items()
                       if k in aliases and v is not None})

    env = os.environ if environ is None else environ
    values.update({k: v for k, v in env.items() if k in aliases})

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        field = model.model_fields.get(key)
        values[field.alias if field and field.alias else key] = value

    return model(**values)
