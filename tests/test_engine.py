"""
Tests for the execution engine — commands, steps, version checks, and
the formula executor loop.

Process activity goes through ``MockProcessRunner`` except in
``TestBinaryOutput``, which runs harmless ``printf`` commands.
"""

import sys

import pytest

from initbox.adapters.mock import MockProcessRunner
from initbox.adapters.shell.process import SubprocessRunner
from initbox.core.engine.commands import build_command, shell_command
from initbox.core.engine.executor import (
    DRY_RUN_OUTPUT,
    ExecutorOptions,
    FormulaExecutor,
    filter_tasks,
)
from initbox.core.engine.step_executor import StepExecutor
from initbox.core.engine.version_check import VersionChecker, parse_version_output
from initbox.core.models.step import InstallStep
from initbox.core.models.task import TaskDefinition


def _step(**kwargs) -> InstallStep:
    data = {"name": "step", "type": "shell", "command": "true"}
    data.update(kwargs)
    return InstallStep(**data)


def _executor(runner: MockProcessRunner) -> FormulaExecutor:
    return FormulaExecutor(
        step_executor=StepExecutor(runner, platform="linux", as_root=False),
        version_checker=VersionChecker(runner, platform="linux"),
    )


# ── Commands ────────────────────────────────────────────────────


class TestBuildCommand:
    def test_brew(self):
        cmd = build_command(_step(type="brew", command="jq"), "darwin")
        assert cmd.argv == ["brew", "install", "jq"]

    def test_npm_with_args(self):
        cmd = build_command(_step(type="npm", command="typescript", args=["--force"]), "linux")
        assert cmd.argv == ["npm", "install", "-g", "typescript", "--force"]

    def test_pip(self):
        assert build_command(_step(type="pip", command="httpie"), "linux").argv == [
            "pip3", "install", "httpie",
        ]

    def test_apt_uses_sudo(self):
        cmd = build_command(_step(type="apt", command="jq"), "linux")
        assert cmd.argv == ["sudo", "apt-get", "install", "-y", "jq"]

    def test_apt_as_root(self):
        cmd = build_command(_step(type="apt", command="jq"), "linux", as_root=True)
        assert cmd.argv == ["apt-get", "install", "-y", "jq"]

    def test_shell(self):
        cmd = build_command(_step(command="echo hi", args=["a b"]), "linux")
        assert cmd.argv == ["sh", "-c", "echo hi 'a b'"]

    def test_shell_on_windows(self):
        assert shell_command("dir", "win32").argv == ["cmd", "/c", "dir"]

    def test_curl_pipes_to_shell(self):
        cmd = build_command(
            _step(type="curl", command="https://get.example.com/install.sh", args=["--yes"]),
            "linux",
        )
        assert cmd.argv == [
            "sh", "-c", "curl -fsSL https://get.example.com/install.sh | sh -s -- --yes",
        ]

    def test_git_clone(self):
        cmd = build_command(
            _step(type="git", command="https://github.com/x/y.git", args=["/opt/y"]), "linux"
        )
        assert cmd.argv == ["git", "clone", "https://github.com/x/y.git", "/opt/y"]

    def test_platform_mismatch(self):
        assert build_command(_step(platforms=["win32"]), "darwin") is None


# ── Step executor ───────────────────────────────────────────────


class TestStepExecutor:
    def test_success_captures_output(self, runner: MockProcessRunner):
        runner.set_output("sh -c echo hi", stdout="hi\n")
        result = StepExecutor(runner, platform="linux").execute(_step(command="echo hi"))
        assert result.success
        assert result.output == "hi\n"
        assert result.error is None

    def test_platform_skip_runs_nothing(self, runner: MockProcessRunner):
        step = _step(platforms=["win32"])
        result = StepExecutor(runner, platform="darwin").execute(step)
        assert result.success
        assert "skipped" in result.output.lower()
        assert result.duration_ms == 0
        assert runner.call_count == 0

    def test_failure_uses_stderr(self, runner: MockProcessRunner):
        runner.set_failure("sh -c make", returncode=2, stderr="make: *** no rule\n")
        result = StepExecutor(runner, platform="linux").execute(_step(command="make"))
        assert not result.success
        assert result.error == "make: *** no rule"

    def test_failure_without_stderr(self, runner: MockProcessRunner):
        runner.set_failure("sh -c make", returncode=3)
        result = StepExecutor(runner, platform="linux").execute(_step(command="make"))
        assert result.error == "Command failed with exit code 3"

    def test_optional_failure_still_succeeds(self, runner: MockProcessRunner):
        runner.set_failure("sh -c corepack", stderr="not found")
        result = StepExecutor(runner, platform="linux").execute(
            _step(command="corepack enable", optional=True)
        )
        assert result.success
        assert result.error == "not found"

    def test_spawn_failure(self, runner: MockProcessRunner):
        runner.set_missing("brew")
        result = StepExecutor(runner, platform="darwin").execute(_step(type="brew", command="jq"))
        assert not result.success
        assert "No such file" in result.error

    def test_post_install_runs_after_command(self, runner: MockProcessRunner):
        step = _step(type="pip", command="httpie", postInstall=["http --version", "echo done"])
        result = StepExecutor(runner, platform="linux").execute(step)
        assert result.success
        assert runner.lines == [
            "pip3 install httpie",
            "sh -c http --version",
            "sh -c echo done",
        ]

    def test_post_install_failure_fails_step(self, runner: MockProcessRunner):
        runner.set_failure("sh -c http", stderr="boom")
        step = _step(type="pip", command="httpie", postInstall=["http --version", "echo done"])
        result = StepExecutor(runner, platform="linux").execute(step)
        assert not result.success
        assert "sh -c echo done" not in runner.lines

    def test_env_and_cwd_passed(self, runner: MockProcessRunner):
        step = _step(env={"PREFIX": "/opt"}, cwd="/tmp")
        StepExecutor(runner, platform="linux").execute(step)
        call = runner.call_log[0]
        assert call.env == {"PREFIX": "/opt"}
        assert call.cwd == "/tmp"

    def test_long_output_truncated(self, runner: MockProcessRunner):
        runner.set_output("sh -c noisy", stdout="x" * 5000)
        result = StepExecutor(runner, platform="linux").execute(_step(command="noisy"))
        assert len(result.output) == 2000


# ── Version check ───────────────────────────────────────────────


class TestParseVersionOutput:
    def test_default_pattern(self):
        assert parse_version_output("git version 2.43.0") == "2.43.0"
        assert parse_version_output("v20.11.1") == "20.11.1"

    def test_custom_pattern(self):
        assert parse_version_output("jq-1.7.1", r"jq-(\d+\.\d+\.\d+)") == "1.7.1"

    def test_no_match(self):
        assert parse_version_output("no digits here") is None

    def test_invalid_pattern(self):
        assert parse_version_output("1.2.3", "(unclosed") is None


class TestVersionChecker:
    def _task(self, **kwargs) -> TaskDefinition:
        return TaskDefinition(id="jq", name="jq", **kwargs)

    def test_no_command(self, runner: MockProcessRunner):
        result = VersionChecker(runner, platform="linux").check(self._task())
        assert not result.installed
        assert result.needs_update
        assert runner.call_count == 0

    def test_satisfied(self, runner: MockProcessRunner):
        runner.set_output("sh -c jq --version", stdout="jq-1.7.1")
        task = self._task(versionCommand="jq --version")
        result = VersionChecker(runner, platform="linux").check(task, "^1.6.0")
        assert result.installed
        assert not result.needs_update
        assert result.current_version == "1.7.1"
        assert result.satisfied

    def test_needs_update(self, runner: MockProcessRunner):
        runner.set_output("sh -c jq --version", stdout="jq-1.5")
        task = self._task(versionCommand="jq --version")
        result = VersionChecker(runner, platform="linux").check(task, ">=1.6")
        assert result.installed
        assert result.needs_update

    def test_version_on_stderr(self, runner: MockProcessRunner):
        runner.set_output("sh -c java -version", stderr='openjdk version "21.0.2"')
        task = self._task(versionCommand="java -version")
        result = VersionChecker(runner, platform="linux").check(task)
        assert result.current_version == "21.0.2"

    def test_command_fails(self, runner: MockProcessRunner):
        runner.set_failure("sh -c jq", returncode=127)
        result = VersionChecker(runner, platform="linux").check(self._task(versionCommand="jq --version"))
        assert not result.installed
        assert result.needs_update

    def test_timeout_means_not_installed(self, runner: MockProcessRunner):
        runner.set_timeout("sh -c jq")
        result = VersionChecker(runner, platform="linux").check(self._task(versionCommand="jq --version"))
        assert not result.installed

    def test_timeout_passed_to_runner(self, runner: MockProcessRunner):
        VersionChecker(runner, timeout=3, platform="linux").check(self._task(versionCommand="jq --version"))
        assert runner.call_log[0].timeout == 3

    def test_unparsable_output_counts_as_installed(self, runner: MockProcessRunner):
        runner.set_output("sh -c jq --version", stdout="jq (development build)")
        result = VersionChecker(runner, platform="linux").check(self._task(versionCommand="jq --version"), "^9.0.0")
        assert result.installed
        assert not result.needs_update
        assert result.current_version is None


# ── Formula executor ────────────────────────────────────────────


class TestFilterTasks:
    def test_no_selection(self, make_task):
        tasks = [make_task("a"), make_task("b")]
        assert filter_tasks(tasks) == tasks

    def test_by_id_and_category(self, make_task):
        tasks = [make_task("a", category="x"), make_task("b", category="y"), make_task("c", category="x")]
        assert [t.id for t in filter_tasks(tasks, ["a", "b"], ["x"])] == ["a"]


class TestFormulaExecutor:
    def test_installs_in_dependency_order(self, runner, make_task, make_formula):
        formula = make_formula(
            make_task("b", category="x", dependencies=("a",)),
            make_task("a", category="x"),
        )
        result = _executor(runner).execute(formula)
        assert result.success
        assert [r.task.id for r in result.tasks] == ["a", "b"]
        assert runner.lines == ["sh -c install-a", "sh -c install-b"]

    def test_selected_categories(self, runner, make_task, make_formula):
        formula = make_formula(
            make_task("a", category="x"),
            make_task("b", category="y"),
            make_task("c", category="x"),
        )
        result = _executor(runner).execute(formula, ExecutorOptions(selected_categories=["x"]))
        assert [r.task.id for r in result.tasks] == ["a", "c"]
        assert all(r.task.category == "x" for r in result.tasks)

    def test_empty_selection_is_success(self, runner, make_task, make_formula):
        formula = make_formula(make_task("a"))
        result = _executor(runner).execute(formula, ExecutorOptions(selected_tasks=["zzz"]))
        assert result.success
        assert result.tasks == ()
        assert runner.call_count == 0

    def test_idempotent_when_version_satisfied(self, runner, make_task, make_formula):
        runner.set_output("sh -c tool --version", stdout="tool 2.0.0")
        formula = make_formula(
            make_task("tool", version="^2.0.0", version_command="tool --version"),
        )
        executor = _executor(runner)

        for _ in range(2):
            result = executor.execute(formula)
            assert result.success
            task_result = result.tasks[0]
            assert task_result.skipped
            assert task_result.success
            assert task_result.current_version == "2.0.0"

        assert "sh -c install-tool" not in runner.lines

    def test_outdated_version_installs(self, runner, make_task, make_formula):
        runner.set_output("sh -c tool --version", stdout="tool 1.4.0")
        formula = make_formula(
            make_task("tool", version="^2.0.0", version_command="tool --version"),
        )
        result = _executor(runner).execute(formula)
        assert result.tasks[0].status == "ok"
        assert "sh -c install-tool" in runner.lines

    def test_force_skips_version_gate(self, runner, make_task, make_formula):
        runner.set_output("sh -c tool --version", stdout="tool 2.0.0")
        formula = make_formula(make_task("tool", version_command="tool --version"))
        result = _executor(runner).execute(formula, ExecutorOptions(force_install=True))
        assert not result.tasks[0].skipped
        assert runner.lines[0] == "sh -c install-tool"

    def test_post_install_version_recorded(self, runner, make_task, make_formula):
        runner.set_failure("sh -c tool --version", returncode=127)
        formula = make_formula(make_task("tool", version_command="tool --version"))
        original_run = runner.run

        def run(cmd, **kwargs):
            if cmd[-1] == "install-tool":
                runner.set_output("sh -c tool --version", stdout="tool 3.1.0")
            return original_run(cmd, **kwargs)

        runner.run = run
        result = _executor(runner).execute(formula)
        assert result.tasks[0].current_version == "3.1.0"
        assert result.installed[0].task.id == "tool"

    def test_optional_step_failure_keeps_going(self, runner, make_task, make_formula):
        runner.set_failure("sh -c first", stderr="nope")
        formula = make_formula(make_task("a", steps=("first", "second"), optional=True))
        result = _executor(runner).execute(formula)
        assert result.success
        steps = result.tasks[0].steps
        assert len(steps) == 2
        assert steps[0].success and steps[0].error == "nope"

    def test_hard_failure_stops_task(self, runner, make_task, make_formula):
        runner.set_failure("sh -c first", stderr="nope")
        formula = make_formula(make_task("a", steps=("first", "second")))
        result = _executor(runner).execute(formula)
        assert not result.success
        task_result = result.tasks[0]
        assert not task_result.success
        assert len(task_result.steps) == 1
        assert "sh -c second" not in runner.lines

    def test_stops_after_failure_by_default(self, runner, make_task, make_formula):
        runner.set_failure("sh -c install-a")
        formula = make_formula(make_task("a"), make_task("b"))
        result = _executor(runner).execute(formula)
        assert not result.success
        assert [r.task.id for r in result.tasks] == ["a"]

    def test_continue_on_error(self, runner, make_task, make_formula):
        runner.set_failure("sh -c install-a")
        formula = make_formula(make_task("a"), make_task("b"))
        result = _executor(runner).execute(formula, ExecutorOptions(continue_on_error=True))
        assert not result.success
        assert [r.status for r in result.tasks] == ["failed", "ok"]

    def test_dependent_of_failed_task_skipped(self, runner, make_task, make_formula):
        runner.set_failure("sh -c install-a")
        formula = make_formula(make_task("a"), make_task("b", dependencies=("a",)))
        result = _executor(runner).execute(formula, ExecutorOptions(continue_on_error=True))
        b = result.tasks[1]
        assert b.skipped and not b.success
        assert b.skip_reason == "Missing dependencies: a"
        assert "sh -c install-b" not in runner.lines
        assert result.skipped == [b]

    def test_skipped_task_unblocks_its_dependents(self, runner, make_task, make_formula):
        runner.set_failure("sh -c install-a")
        formula = make_formula(
            make_task("a"),
            make_task("b", dependencies=("a",)),
            make_task("c", dependencies=("b",)),
        )
        result = _executor(runner).execute(formula, ExecutorOptions(continue_on_error=True))
        assert [r.status for r in result.tasks] == ["failed", "skipped", "ok"]

    def test_dependency_outside_selection_blocks(self, runner, make_task, make_formula):
        formula = make_formula(make_task("a"), make_task("b", dependencies=("a",)))
        result = _executor(runner).execute(formula, ExecutorOptions(selected_tasks=["b"]))
        assert result.tasks[0].skipped
        assert "a" in result.tasks[0].skip_reason

    def test_dependency_outside_formula_ignored(self, runner, make_task, make_formula):
        formula = make_formula(make_task("b", dependencies=("elsewhere",)))
        result = _executor(runner).execute(formula)
        assert result.tasks[0].status == "ok"

    def test_dry_run_runs_nothing(self, runner, make_task, make_formula):
        formula = make_formula(
            make_task("a", steps=("one", "two"), version_command="a --version"),
        )
        result = _executor(runner).execute(formula, ExecutorOptions(dry_run=True))
        assert result.success
        assert runner.call_count == 0
        steps = result.tasks[0].steps
        assert [s.output for s in steps] == [DRY_RUN_OUTPUT, DRY_RUN_OUTPUT]
        assert all(s.duration_ms == 0 for s in steps)

    def test_installed_set_reset_between_runs(self, runner, make_task, make_formula):
        executor = _executor(runner)
        executor.execute(make_formula(make_task("a")))

        runner.set_failure("sh -c install-a")
        formula = make_formula(make_task("a"), make_task("b", dependencies=("a",)))
        result = executor.execute(formula, ExecutorOptions(continue_on_error=True))
        assert result.tasks[1].skipped

    def test_timestamps_and_summary(self, runner, make_task, make_formula):
        result = _executor(runner).execute(make_formula(make_task("a")))
        assert result.end_time >= result.start_time
        data = result.to_dict()
        assert data["installed"] == 1
        assert data["tasks"][0]["status"] == "ok"


@pytest.mark.parametrize("flag", ["force_install", "skip_version_check", "dry_run"])
def test_version_gate_bypassed(flag, runner, make_task, make_formula):
    formula = make_formula(make_task("a", version_command="a --version"))
    _executor(runner).execute(formula, ExecutorOptions(**{flag: True}))
    expected = [] if flag == "dry_run" else ["sh -c install-a", "sh -c a --version"]
    assert runner.lines == expected


# ── Real processes ──────────────────────────────────────────────


@pytest.mark.skipif(sys.platform == "win32", reason="uses sh and printf")
class TestBinaryOutput:
    """Installers and version commands that print bytes that are not UTF-8."""

    def _executor(self) -> FormulaExecutor:
        return FormulaExecutor(SubprocessRunner(), platform=sys.platform)

    def test_step_output_is_recorded(self, make_task, make_formula):
        formula = make_formula(make_task("raw", steps=("printf '\\377\\376 done'",)))
        result = self._executor().execute(formula, ExecutorOptions(skip_version_check=True))
        assert result.success
        assert result.tasks[0].steps[0].output.endswith(" done")

    def test_version_command_output_is_parsed(self, make_task, make_formula):
        formula = make_formula(
            make_task("raw", version="^1.0.0", version_command="printf 'tool \\377 1.0.0'"),
        )
        result = self._executor().execute(formula)
        task_result = result.tasks[0]
        assert task_result.skipped and task_result.success
        assert task_result.current_version == "1.0.0"
