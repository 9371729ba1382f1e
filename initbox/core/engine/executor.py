"""
Formula executor — the central orchestration loop.

Takes a resolved formula, filters and orders its tasks, and runs them
one at a time through the step executor, collecting results.

Flow:
    filter → order by dependencies → per task: dependency gate →
    version gate → steps → summarize

Execution failures never raise; a run always returns a complete
``InstallResult``. Without ``continue_on_error`` the loop stops at the
first failed task and returns the partial result.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from initbox.adapters.base import ProcessRunner
from initbox.core.engine.scheduler import order_tasks
from initbox.core.engine.step_executor import StepExecutor
from initbox.core.engine.version_check import DEFAULT_TIMEOUT, VersionChecker
from initbox.core.models.formula import ResolvedFormula
from initbox.core.models.result import InstallResult, StepResult, TaskResult
from initbox.core.models.task import ResolvedTask

logger = logging.getLogger(__name__)

DRY_RUN_OUTPUT = "Dry run - no action taken"


@dataclass
class ExecutorOptions:
    """Per-run knobs supplied by the caller."""

    selected_tasks: list[str] = field(default_factory=list)
    selected_categories: list[str] = field(default_factory=list)
    dry_run: bool = False
    verbose: bool = False
    continue_on_error: bool = False
    force_install: bool = False
    skip_version_check: bool = False

    @property
    def checks_versions(self) -> bool:
        return not (self.force_install or self.skip_version_check or self.dry_run)


def filter_tasks(
    tasks: Sequence[ResolvedTask],
    selected_tasks: Sequence[str] = (),
    selected_categories: Sequence[str] = (),
) -> list[ResolvedTask]:
    """Keep tasks matching the id and category selections (empty = all)."""
    result = list(tasks)
    if selected_tasks:
        wanted = set(selected_tasks)
        result = [t for t in result if t.id in wanted]
    if selected_categories:
        wanted = set(selected_categories)
        result = [t for t in result if t.category in wanted]
    return result


class FormulaExecutor:
    """Runs resolved formulas against the local machine.

    One executor may run several formulas; the set of tasks installed
    during a run is reset at the start of each ``execute`` call.
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        step_executor: StepExecutor | None = None,
        version_checker: VersionChecker | None = None,
        platform: str | None = None,
        version_check_timeout: float = DEFAULT_TIMEOUT,
    ):
        if runner is None and (step_executor is None or version_checker is None):
            from initbox.adapters.shell.process import SubprocessRunner

            runner = SubprocessRunner()

        self._steps = step_executor or StepExecutor(runner, platform=platform)
        self._versions = version_checker or VersionChecker(
            runner, timeout=version_check_timeout, platform=platform
        )
        self._installed: set[str] = set()

    def execute(
        self,
        formula: ResolvedFormula,
        options: ExecutorOptions | None = None,
    ) -> InstallResult:
        """Install the formula's tasks.

        Args:
            formula: Resolved formula to install.
            options: Selection and behavior flags.

        Returns:
            InstallResult with one TaskResult per processed task.
        """
        options = options or ExecutorOptions()
        start_time = datetime.now(UTC)
        start = time.monotonic()
        self._installed = set()

        tasks = filter_tasks(
            formula.tasks, options.selected_tasks, options.selected_categories
        )
        if not tasks:
            logger.info("No tasks selected for formula '%s'", formula.name)
            return self._summarize(formula, [], start_time, start)

        ordered = order_tasks(tasks)
        formula_ids = set(formula.task_ids)
        logger.info(
            "Executing formula '%s': %d tasks%s",
            formula.name, len(ordered), " (dry run)" if options.dry_run else "",
        )

        results: list[TaskResult] = []
        for task in ordered:
            result = self._execute_task(task, formula_ids, options)
            results.append(result)
            self._log_result(result)

            if result.ok:
                self._installed.add(task.id)
            elif not options.continue_on_error:
                logger.warning("Stopping after failed task '%s'", task.id)
                break

        return self._summarize(formula, results, start_time, start)

    def _execute_task(
        self,
        task: ResolvedTask,
        formula_ids: set[str],
        options: ExecutorOptions,
    ) -> TaskResult:
        missing = [
            dep for dep in task.dependencies
            if dep in formula_ids and dep not in self._installed
        ]
        if missing:
            return TaskResult(
                task=task,
                success=False,
                skipped=True,
                skip_reason=f"Missing dependencies: {', '.join(missing)}",
            )

        current_version = None
        if options.checks_versions:
            check = self._versions.check(task, task.constraint)
            logger.debug("%s: %s", task.id, check.message)
            current_version = check.current_version
            if check.satisfied:
                return TaskResult(
                    task=task,
                    success=True,
                    skipped=True,
                    skip_reason=f"Already installed: {check.message}",
                    current_version=current_version,
                )

        step_results: list[StepResult] = []
        success = True
        for step in task.steps:
            if options.dry_run:
                step_result = StepResult(step=step, success=True, output=DRY_RUN_OUTPUT)
            else:
                logger.debug("%s: running step '%s'", task.id, step.name)
                step_result = self._steps.execute(step)
            step_results.append(step_result)

            if options.verbose and step_result.output:
                logger.info("%s/%s: %s", task.id, step.name, step_result.output.strip())

            if not step_result.success:
                success = False
                break

        if success and not options.dry_run and task.version_command:
            check = self._versions.check(task, task.constraint)
            if check.current_version:
                current_version = check.current_version
                logger.info("%s: installed version %s", task.id, current_version)

        return TaskResult(
            task=task,
            success=success,
            steps=tuple(step_results),
            current_version=current_version,
        )

    def _summarize(
        self,
        formula: ResolvedFormula,
        results: list[TaskResult],
        start_time: datetime,
        start: float,
    ) -> InstallResult:
        result = InstallResult(
            formula=formula,
            success=all(r.ok for r in results),
            tasks=tuple(results),
            start_time=start_time,
            end_time=datetime.now(UTC),
            total_duration_ms=int((time.monotonic() - start) * 1000),
        )
        logger.info(
            "Formula '%s' %s: %d installed, %d already installed, %d failed, %d skipped",
            formula.name,
            "succeeded" if result.success else "failed",
            len(result.installed),
            len(result.already_satisfied),
            len(result.failed),
            len(result.skipped),
        )
        return result

    @staticmethod
    def _log_result(result: TaskResult) -> None:
        icon = "⊘" if result.skipped else ("✓" if result.success else "✗")
        detail = result.skip_reason or ""
        if not result.success and not result.skipped:
            errors = [s.error for s in result.steps if s.error and not s.success]
            detail = errors[-1] if errors else "failed"
        logger.info("%s %s:%s → %s", icon, result.task.category, result.task.id, detail or "ok")
