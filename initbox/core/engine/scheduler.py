"""
Dependency scheduling (pure).

Orders resolved tasks so every task's dependencies come first.
No I/O, no subprocess.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from initbox.core.models.task import ResolvedTask

logger = logging.getLogger(__name__)


def order_tasks(tasks: Sequence[ResolvedTask]) -> list[ResolvedTask]:
    """Topologically sort tasks by their ``dependencies``.

    Depth-first, visiting tasks in input order, so the result is
    deterministic and stable for independent tasks.

    - Dependencies not present in ``tasks`` are ignored (assumed
      already satisfied or out of scope for a partial install).
    - Cycles do not raise: a task already being visited counts as
      visited, so tasks on a cycle come out in first-encountered order.
    """
    by_id = {task.id: task for task in tasks}
    visited: set[str] = set()
    ordered: list[ResolvedTask] = []

    def visit(task: ResolvedTask, path: tuple[str, ...]) -> None:
        if task.id in visited:
            if task.id in path:
                logger.warning(
                    "Dependency cycle: %s -> %s", " -> ".join(path), task.id
                )
            return
        visited.add(task.id)

        for dep_id in task.dependencies:
            dep = by_id.get(dep_id)
            if dep is not None:
                visit(dep, path + (task.id,))

        ordered.append(task)

    for task in tasks:
        visit(task, ())

    return ordered


def find_cycles(tasks: Sequence[ResolvedTask]) -> list[list[str]]:
    """Return dependency cycles among ``tasks`` (each as a list of ids).

    Only edges between tasks in the set are considered. Used for
    reporting; ``order_tasks`` tolerates cycles on its own.
    """
    by_id = {task.id: task for task in tasks}
    done: set[str] = set()
    cycles: list[list[str]] = []

    def visit(task_id: str, stack: list[str]) -> None:
        if task_id in stack:
            cycles.append(stack[stack.index(task_id):] + [task_id])
            return
        if task_id in done:
            return
        stack.append(task_id)
        for dep_id in by_id[task_id].dependencies:
            if dep_id in by_id:
                visit(dep_id, stack)
        stack.pop()
        done.add(task_id)

    for task in tasks:
        visit(task.id, [])

    return cycles
