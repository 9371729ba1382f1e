"""
Task resolution — turns formula task references into full tasks.

Local catalog entries always win over remote documents with the same
id, even when the formula configures a remote base URL: built-in tasks
are never shadowed. Nothing is cached between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import yaml

from initbox.adapters.base import Fetcher, FetchError
from initbox.core.config.catalog import TaskCatalog
from initbox.core.config.validator import validate_task_definition
from initbox.core.errors import UnresolvedTaskError, ValidationError
from initbox.core.models.formula import Formula, ResolvedFormula
from initbox.core.models.task import ResolvedTask, TaskDefinition, TaskReference

logger = logging.getLogger(__name__)

TASK_DOCUMENT = "task.yaml"


def task_url(tasks_base_url: str, task_id: str) -> str:
    """URL of a remote task document."""
    return f"{tasks_base_url.rstrip('/')}/{task_id}/{TASK_DOCUMENT}"


def resolve_tasks(
    references: Sequence[TaskReference],
    catalog: TaskCatalog,
    tasks_base_url: str | None = None,
    fetcher: Fetcher | None = None,
) -> list[ResolvedTask]:
    """Resolve every reference, in order.

    Args:
        references: Task references from a formula.
        catalog: Local task catalog, consulted first.
        tasks_base_url: Base URL for tasks missing from the catalog.
        fetcher: Used for remote documents; required when
            ``tasks_base_url`` is set and a task is not in the catalog.

    Raises:
        UnresolvedTaskError: A task is neither local nor fetchable.
        ValidationError: A fetched task document is invalid.
    """
    resolved: list[ResolvedTask] = []

    for ref in references:
        definition = catalog.get_task(ref.id)
        if definition is not None:
            logger.debug("Task '%s' resolved from catalog", ref.id)
        elif tasks_base_url:
            definition = _fetch_task(ref.id, tasks_base_url, fetcher)
        else:
            raise UnresolvedTaskError(
                ref.id,
                available=catalog.list_task_ids(),
                reason="not found in the task catalog",
            )

        resolved.append(ResolvedTask.from_reference(definition, ref))

    return resolved


def resolve_formula(
    formula: Formula,
    catalog: TaskCatalog,
    fetcher: Fetcher | None = None,
) -> ResolvedFormula:
    """Resolve all of a formula's tasks; ``tasksUrl`` is consumed."""
    tasks = resolve_tasks(formula.tasks, catalog, formula.tasks_url, fetcher)

    data = formula.model_dump(exclude_unset=True, exclude={"tasks", "tasks_url"})
    resolved = ResolvedFormula(**data, tasks=tuple(tasks))
    logger.info("Resolved formula '%s' with %d tasks", resolved.name, len(tasks))
    return resolved


def _fetch_task(task_id: str, base_url: str, fetcher: Fetcher | None) -> TaskDefinition:
    url = task_url(base_url, task_id)
    if fetcher is None:
        raise UnresolvedTaskError(task_id, reason=f"no fetcher available for {url}")

    logger.info("Fetching task '%s' from %s", task_id, url)
    try:
        response = fetcher.fetch(url)
    except FetchError as e:
        raise UnresolvedTaskError(task_id, reason=str(e)) from e

    if not response.ok:
        raise UnresolvedTaskError(
            task_id, reason=f"failed to fetch {url}: HTTP {response.status}"
        )

    try:
        raw = yaml.safe_load(response.text)
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in task document {url}: {e}") from e

    definition = validate_task_definition(raw)
    if definition.id != task_id:
        logger.warning(
            "Task document at %s declares id '%s', expected '%s'",
            url, definition.id, task_id,
        )
    return definition
