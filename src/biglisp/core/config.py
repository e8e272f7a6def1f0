"""
BigLisp configuration models.

Parses ``biglisp.toml`` (or the ``[tool.biglisp]`` table of ``pyproject.toml``)
and provides typed configuration for the expander, the REPL and logging.
"""

from __future__ import annotations

import keyword
import logging
import tomllib
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from biglisp.core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "biglisp.toml"
PYPROJECT_FILENAME = "pyproject.toml"


class LogLevel(StrEnum):
    """Log levels accepted in configuration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ExpanderConfig(BaseModel):
    """How generated code names things."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    runtime_alias: str = Field(
        default="__biglisp__",
        description="Name generated code uses to reach biglisp.runtime",
    )
    operator_prefix: str = Field(
        default="op_",
        description="Prefix for operators used as first-class values (op_plus)",
    )
    mangle_hyphens: bool = Field(
        default=True,
        description="Turn with-vars style names into with_vars",
    )

    @field_validator("runtime_alias")
    @classmethod
    def _must_be_identifier(cls, value: str) -> str:
        if not value.isidentifier() or keyword.iskeyword(value):
            raise ValueError(f"{value!r} is not a usable Python identifier")
        return value

    @field_validator("operator_prefix")
    @classmethod
    def _must_start_identifier(cls, value: str) -> str:
        if not (value + "x").isidentifier():
            raise ValueError(f"{value!r} cannot start a Python identifier")
        return value


class ReplConfig(BaseModel):
    """Interactive shell settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    prompt: str = "biglisp> "
    continuation_prompt: str = "....... "
    show_source: bool = False


class BigLispConfig(BaseModel):
    """Complete configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    log_level: LogLevel = LogLevel.WARNING
    expander: ExpanderConfig = Field(default_factory=ExpanderConfig)
    repl: ReplConfig = Field(default_factory=ReplConfig)


DEFAULT_CONFIG = BigLispConfig()


def find_config(start: Path | None = None) -> Path | None:
    """
    Walk up from ``start`` looking for a configuration file.

    ``biglisp.toml`` wins over ``pyproject.toml``; a ``pyproject.toml`` only
    counts when it has a ``[tool.biglisp]`` table.
    """
    directory = (start or Path.cwd()).resolve()
    for candidate in (directory, *directory.parents):
        own = candidate / CONFIG_FILENAME
        if own.is_file():
            return own
        pyproject = candidate / PYPROJECT_FILENAME
        if pyproject.is_file() and "biglisp" in _read_toml(pyproject).get("tool", {}):
            return pyproject
    return None


def load_config(toml_path: Path | None = None) -> BigLispConfig:
    """
    Load configuration from a TOML file.

    Args:
        toml_path: ``biglisp.toml`` or ``pyproject.toml``; when omitted the
            file is searched for from the current directory.

    Returns:
        BigLispConfig with parsed values or defaults

    Raises:
        ConfigError: If the file is malformed or holds invalid values
    """
    if toml_path is None:
        toml_path = find_config()
        if toml_path is None:
            return DEFAULT_CONFIG

    if not toml_path.exists():
        return DEFAULT_CONFIG

    data = _read_toml(toml_path)
    if toml_path.name == PYPROJECT_FILENAME:
        data = data.get("tool", {}).get("biglisp", {})

    if not data:
        return DEFAULT_CONFIG

    try:
        config = BigLispConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {toml_path}:\n{e}") from e

    logger.debug("Loaded configuration from %s", toml_path)
    return config


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed TOML in {path}: {e}") from e
