"""
Task catalog — locally available task definitions.

Tasks live in ``<dir>/<id>/task.yaml``. The bundled catalog ships
inside the package under ``initbox/tasks/``; extra directories can be
layered on top of it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

import yaml

from initbox.core.config.validator import validate_task_definition
from initbox.core.errors import ValidationError
from initbox.core.models.task import TaskDefinition

logger = logging.getLogger(__name__)

BUNDLED_TASKS_DIR = Path(__file__).resolve().parent.parent.parent / "tasks"

_TASK_FILES = ("task.yaml", "task.yml")


class TaskCatalog:
    """In-memory lookup of task definitions keyed by id."""

    def __init__(self, tasks: Mapping[str, TaskDefinition] | None = None):
        self._tasks: dict[str, TaskDefinition] = dict(tasks or {})

    @classmethod
    def from_definitions(cls, definitions: Iterable[TaskDefinition]) -> TaskCatalog:
        return cls({d.id: d for d in definitions})

    def has_task(self, task_id: str) -> bool:
        return task_id in self._tasks

    def get_task(self, task_id: str) -> TaskDefinition | None:
        return self._tasks.get(task_id)

    def list_task_ids(self) -> list[str]:
        return list(self._tasks.keys())

    def definitions(self) -> list[TaskDefinition]:
        return list(self._tasks.values())

    def merged(self, other: TaskCatalog) -> TaskCatalog:
        """A new catalog with ``other``'s tasks overriding ours by id."""
        return TaskCatalog({**self._tasks, **other._tasks})

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks


def load_task_file(path: Path) -> TaskDefinition | None:
    """Load a single task definition, or None if it is unreadable or invalid."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        task = validate_task_definition(data)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        logger.warning("Failed to load task from %s: %s", path, e)
        return None
    logger.debug("Loaded task: %s from %s", task.id, path)
    return task


def load_catalog(tasks_dir: Path) -> TaskCatalog:
    """Walk ``tasks_dir`` and load every ``<id>/task.yaml``.

    Invalid documents are logged and skipped.
    """
    tasks: dict[str, TaskDefinition] = {}

    if not tasks_dir.is_dir():
        logger.debug("Tasks directory not found: %s", tasks_dir)
        return TaskCatalog()

    for child in sorted(tasks_dir.iterdir()):
        if not child.is_dir():
            continue
        task_file = next(
            (child / name for name in _TASK_FILES if (child / name).is_file()), None
        )
        if task_file is None:
            continue

        task = load_task_file(task_file)
        if task is None:
            continue
        if task.id != child.name:
            logger.warning(
                "Task file %s declares id '%s' (directory is '%s')",
                task_file, task.id, child.name,
            )
        tasks[task.id] = task

    return TaskCatalog(tasks)


def default_catalog(extra_dirs: Iterable[Path] = ()) -> TaskCatalog:
    """Bundled tasks plus any extra directories (later ones win)."""
    catalog = load_catalog(BUNDLED_TASKS_DIR)
    for directory in extra_dirs:
        catalog = catalog.merged(load_catalog(directory))
    logger.info("Task catalog: %d tasks", len(catalog))
    return catalog
