"""
Document loader — reads formula and task YAML into domain models.

Accepts text, local paths, or ``http(s)://`` URLs. YAML is parsed with
``safe_load`` (JSON documents parse too) and handed to the validator.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from initbox.adapters.base import Fetcher, FetchError
from initbox.core.config.validator import validate_formula, validate_task_definition
from initbox.core.errors import InitboxError, ValidationError
from initbox.core.models.formula import Formula
from initbox.core.models.task import TaskDefinition

logger = logging.getLogger(__name__)


class SourceError(InitboxError):
    """Raised when a document cannot be read or downloaded."""


def parse_document(text: str, what: str = "document") -> Any:
    """Parse YAML text into a mapping."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in {what}: {e}") from e

    if not isinstance(data, dict):
        raise ValidationError(
            f"Invalid {what}: expected a mapping, got {type(data).__name__}"
        )
    return data


def parse_formula(text: str) -> Formula:
    """Parse and validate formula YAML."""
    return validate_formula(parse_document(text, "formula"))


def parse_task_definition(text: str) -> TaskDefinition:
    """Parse and validate task YAML."""
    return validate_task_definition(parse_document(text, "task definition"))


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def read_source(source: str, fetcher: Fetcher | None = None) -> str:
    """Return the text at a local path or URL.

    Raises:
        SourceError: The file is missing, or the download failed.
    """
    if is_url(source):
        if fetcher is None:
            raise SourceError(f"Cannot download {source}: no fetcher configured")
        try:
            response = fetcher.fetch(source)
        except FetchError as e:
            raise SourceError(str(e)) from e
        if not response.ok:
            raise SourceError(f"Failed to fetch {source}: HTTP {response.status}")
        return response.text

    path = Path(source)
    if not path.is_file():
        raise SourceError(f"File not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise SourceError(f"Cannot read {path}: {e}") from e


def load_formula(source: str, fetcher: Fetcher | None = None) -> Formula:
    """Read and validate a formula from a path or URL."""
    logger.debug("Loading formula from %s", source)
    formula = parse_formula(read_source(source, fetcher))
    logger.info("Loaded formula '%s' v%s with %d tasks", formula.name, formula.version, len(formula.tasks))
    return formula


def load_task_definition(source: str, fetcher: Fetcher | None = None) -> TaskDefinition:
    """Read and validate a task document from a path or URL."""
    return parse_task_definition(read_source(source, fetcher))
