"""
Document validator — turns raw parsed documents into typed models.

Both entry points are total over arbitrary input: they either return a
fully-typed model or raise ``ValidationError`` naming the offending field
(and list index where relevant). Unknown keys are ignored so newer
documents still load. No side effects.
"""

from __future__ import annotations

from datetime import date
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from initbox.core.errors import ValidationError
from initbox.core.models.formula import Formula
from initbox.core.models.step import InstallStep, StepKind
from initbox.core.models.task import TaskDefinition, TaskReference

M = TypeVar("M", bound=BaseModel)


def validate_formula(raw: Any) -> Formula:
    """Validate a parsed formula document.

    Required: ``name`` and ``version`` (non-empty strings) and ``tasks``
    (a list of references, each with non-empty ``id`` and ``category``).
    """
    if not isinstance(raw, dict):
        raise ValidationError(
            f"Formula must be a mapping, got {type(raw).__name__}", field=""
        )

    _require_str(raw, "name", "Formula")
    _require_str(raw, "version", "Formula")

    tasks = raw.get("tasks")
    if not isinstance(tasks, list):
        raise ValidationError('Formula must have a "tasks" array', field="tasks")

    refs = [_validate_task_reference(item, i) for i, item in enumerate(tasks)]

    data = _known_fields(Formula, raw)
    data["tasks"] = refs
    # Unquoted YAML dates load as datetime.date
    if isinstance(data.get("updated"), date):
        data["updated"] = data["updated"].isoformat()
    return _build(Formula, data, prefix="")


def validate_task_definition(raw: Any) -> TaskDefinition:
    """Validate a parsed task document.

    Required: ``id`` and ``name`` (non-empty strings) and ``steps`` (a
    list, possibly empty). Each step needs ``name``, ``type`` (one of
    the step kinds) and ``command``.
    """
    if not isinstance(raw, dict):
        raise ValidationError(
            f"Task definition must be a mapping, got {type(raw).__name__}", field=""
        )

    _require_str(raw, "id", "Task definition")
    _require_str(raw, "name", "Task definition")
    task_id = raw["id"]

    steps = raw.get("steps")
    if not isinstance(steps, list):
        raise ValidationError(f'Task "{task_id}" must have a "steps" array', field="steps")

    validated_steps = [_validate_step(item, task_id, i) for i, item in enumerate(steps)]

    data = _known_fields(TaskDefinition, raw)
    data["steps"] = validated_steps
    return _build(TaskDefinition, data, prefix="")


def _validate_task_reference(raw: Any, index: int) -> TaskReference:
    field = f"tasks[{index}]"
    if not isinstance(raw, dict):
        raise ValidationError(f"Task at index {index} must be an object", field=field, index=index)

    for key in ("id", "category"):
        value = raw.get(key)
        if not value or not isinstance(value, str):
            raise ValidationError(
                f'Task at index {index} must have a "{key}" field',
                field=f"{field}.{key}",
                index=index,
            )

    return _build(TaskReference, _known_fields(TaskReference, raw), prefix=field, index=index)


def _validate_step(raw: Any, task_id: str, index: int) -> InstallStep:
    field = f"steps[{index}]"
    if not isinstance(raw, dict):
        raise ValidationError(
            f'Step {index} of "{task_id}" must be an object', field=field, index=index
        )

    for key in ("name", "type"):
        value = raw.get(key)
        if not value or not isinstance(value, str):
            raise ValidationError(
                f'Step {index} of "{task_id}" must have a "{key}" field',
                field=f"{field}.{key}",
                index=index,
            )

    if raw["type"] not in StepKind.values():
        raise ValidationError(
            f'Step {index} of "{task_id}" has invalid type "{raw["type"]}". '
            f"Valid types: {', '.join(StepKind.values())}",
            field=f"{field}.type",
            index=index,
        )

    command = raw.get("command")
    if not command or not isinstance(command, str):
        raise ValidationError(
            f'Step {index} of "{task_id}" must have a "command" field',
            field=f"{field}.command",
            index=index,
        )

    return _build(InstallStep, _known_fields(InstallStep, raw), prefix=field, index=index)


# ── Helpers ─────────────────────────────────────────────────────


def _require_str(raw: dict, key: str, what: str) -> None:
    value = raw.get(key)
    if not value or not isinstance(value, str):
        raise ValidationError(f'{what} must have a "{key}" field', field=key)


def _known_fields(model: type[BaseModel], raw: dict) -> dict[str, Any]:
    """Keep only keys the model recognises (by document alias)."""
    keys = {f.alias or name for name, f in model.model_fields.items()}
    return {k: v for k, v in raw.items() if k in keys}


def _build(model: type[M], data: dict[str, Any], prefix: str, index: int | None = None) -> M:
    """Construct ``model``, translating pydantic errors to ours."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        err = e.errors()[0]
        loc = _format_loc(prefix, err.get("loc", ()))
        raise ValidationError(f"Invalid {loc or 'document'}: {err['msg']}", field=loc, index=index) from e


def _format_loc(prefix: str, loc: tuple) -> str:
    path = prefix
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path
