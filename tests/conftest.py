"""
Shared test fixtures and configuration.
"""

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from initbox.adapters.mock import MockFetcher, MockProcessRunner
from initbox.core.config.catalog import TaskCatalog
from initbox.core.models.formula import ResolvedFormula
from initbox.core.models.step import InstallStep
from initbox.core.models.task import ResolvedTask, TaskDefinition


@pytest.fixture
def runner() -> MockProcessRunner:
    """A process runner where every command succeeds silently."""
    return MockProcessRunner()


@pytest.fixture
def fetcher() -> MockFetcher:
    return MockFetcher()


@pytest.fixture
def make_task() -> Callable[..., ResolvedTask]:
    """Factory for resolved tasks with one shell step per entry in ``steps``."""

    def _make(
        task_id: str,
        category: str = "tools",
        dependencies: tuple[str, ...] = (),
        steps: tuple[str, ...] | None = None,
        version: str | None = None,
        version_command: str | None = None,
        **step_overrides,
    ) -> ResolvedTask:
        commands = steps if steps is not None else (f"install-{task_id}",)
        return ResolvedTask(
            id=task_id,
            name=task_id.title(),
            category=category,
            version=version,
            dependencies=dependencies,
            version_command=version_command,
            steps=tuple(
                InstallStep(name=f"step {i}", type="shell", command=cmd, **step_overrides)
                for i, cmd in enumerate(commands)
            ),
        )

    return _make


@pytest.fixture
def make_formula() -> Callable[..., ResolvedFormula]:
    def _make(*tasks: ResolvedTask, name: str = "dev-setup") -> ResolvedFormula:
        return ResolvedFormula(name=name, version="1.0.0", tasks=tasks)

    return _make


@pytest.fixture
def catalog() -> TaskCatalog:
    """Small in-memory catalog: git, curl, and node (depends on curl)."""
    return TaskCatalog.from_definitions([
        TaskDefinition(
            id="git",
            name="Git",
            versionCommand="git --version",
            steps=[InstallStep(name="Install git", type="apt", command="git")],
        ),
        TaskDefinition(
            id="curl",
            name="curl",
            versionCommand="curl --version",
            steps=[InstallStep(name="Install curl", type="apt", command="curl")],
        ),
        TaskDefinition(
            id="node",
            name="Node.js",
            dependencies=["curl"],
            steps=[InstallStep(name="Install node", type="brew", command="node")],
        ),
    ])


@pytest.fixture
def formula_file(tmp_path: Path) -> Path:
    """A formula document on disk using only catalog tasks."""
    path = tmp_path / "formula.yaml"
    path.write_text(textwrap.dedent("""\
        name: dev-setup
        version: "1.0.0"
        description: Base developer machine
        author: platform-team
        tasks:
          - id: node
            category: runtimes
          - id: curl
            category: core
    """))
    return path


@pytest.fixture
def tasks_dir(tmp_path: Path) -> Path:
    """A catalog directory with two tasks in ``<id>/task.yaml`` layout."""
    root = tmp_path / "tasks"
    (root / "hello").mkdir(parents=True)
    (root / "hello" / "task.yaml").write_text(textwrap.dedent("""\
        id: hello
        name: Hello
        versionCommand: hello --version
        steps:
          - name: Say hello
            type: shell
            command: echo hello
    """))
    (root / "world").mkdir()
    (root / "world" / "task.yml").write_text(textwrap.dedent("""\
        id: world
        name: World
        dependencies: [hello]
        steps:
          - name: Say world
            type: shell
            command: echo world
    """))
    return root
