"""Shared fixtures: a fake home directory and canonical-tree builders."""

from pathlib import Path
from typing import Dict, Optional

import pytest
import yaml


def make_agents(
    base: Path,
    agents_md: Optional[str] = None,
    claude_md: Optional[str] = None,
    commands: Optional[Dict[str, str]] = None,
    skills: Optional[Dict[str, str]] = None,
    hooks: Optional[Dict[str, str]] = None,
    config: Optional[dict] = None,
) -> Path:
    """
    Build `<base>/.agents`.

    skills/hooks map a directory name to the content of its main file
    (SKILL.md / hook.sh).
    """
    root = Path(base) / ".agents"
    root.mkdir(parents=True, exist_ok=True)
    if agents_md is not None:
        (root / "AGENTS.md").write_text(agents_md, encoding="utf-8")
    if claude_md is not None:
        (root / "CLAUDE.md").write_text(claude_md, encoding="utf-8")
    if commands is not None:
        (root / "commands").mkdir(exist_ok=True)
        for name, content in commands.items():
            (root / "commands" / name).write_text(content, encoding="utf-8")
    if skills is not None:
        for name, content in skills.items():
            (root / "skills" / name).mkdir(parents=True, exist_ok=True)
            (root / "skills" / name / "SKILL.md").write_text(content, encoding="utf-8")
        (root / "skills").mkdir(exist_ok=True)
    if hooks is not None:
        for name, content in hooks.items():
            (root / "hooks" / name).mkdir(parents=True, exist_ok=True)
            (root / "hooks" / name / "hook.sh").write_text(content, encoding="utf-8")
        (root / "hooks").mkdir(exist_ok=True)
    if config is not None:
        (root / "config.yaml").write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
    return root


@pytest.fixture
def home(tmp_path, monkeypatch):
    """An empty home directory; HOME points at it."""
    home_dir = (tmp_path / "home").resolve()
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("USERPROFILE", str(home_dir))
    return home_dir


@pytest.fixture
def tmp_project(home):
    """A project directory under the fake home with a basic .agents tree."""
    project = home / "work" / "app"
    project.mkdir(parents=True)
    make_agents(
        project,
        agents_md="# App\n",
        commands={"build.md": "build"},
        skills={"review": "review skill"},
        hooks={"pre": "echo pre"},
    )
    return project


@pytest.fixture
def monorepo(home):
    """
    home/work/repo/.agents            (parent)
    home/work/repo/packages/web/.agents  (child)
    """
    repo = home / "work" / "repo"
    child = repo / "packages" / "web"
    child.mkdir(parents=True)
    make_agents(repo, agents_md="# Repo\n", commands={"build.md": "repo build", "deploy.md": "repo deploy"})
    make_agents(child, agents_md="# Web\n", commands={"local.md": "web local"})
    return repo, child
