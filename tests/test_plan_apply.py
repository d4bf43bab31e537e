"""Tests for link planning and applying."""

import os
import shutil

import pytest

from agent_linker.core.apply import apply_link_plan
from agent_linker.core.backup import create_backup_session
from agent_linker.core.errors import LinkConflictError, LinkIOError
from agent_linker.core.plan import build_link_plan, build_scope_link_plan, points_to
from agent_linker.core.types import (
    Client,
    ConflictTask,
    EnsureSourceTask,
    LinkTask,
    Mapping,
    NoopTask,
    Scope,
    SourceKind,
)


def _plan(project, home):
    return build_scope_link_plan(Scope.PROJECT, project, home, [Client.CLAUDE])


def test_fresh_project_plan(tmp_project, home):
    plan = _plan(tmp_project, home)

    assert len(plan.tasks) == 3
    assert all(isinstance(t, LinkTask) for t in plan.tasks)
    assert len(plan.changes) == 3
    assert plan.conflicts == []


def test_apply_creates_symlinks(tmp_project, home):
    result = apply_link_plan(_plan(tmp_project, home))

    assert result.applied == 3
    assert result.created == 3
    for name in ("commands", "hooks", "skills"):
        target = tmp_project / ".claude" / name
        assert target.is_symlink()
        assert points_to(target, tmp_project / ".agents" / name)


def test_apply_is_idempotent(tmp_project, home):
    apply_link_plan(_plan(tmp_project, home))

    plan = _plan(tmp_project, home)
    assert plan.changes == []
    assert all(isinstance(t, NoopTask) for t in plan.tasks)

    result = apply_link_plan(plan)
    assert result.applied == 0
    assert result.skipped == 3


def test_stale_symlink_is_replaced(tmp_project, home, tmp_path):
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    target = tmp_project / ".claude" / "commands"
    target.parent.mkdir()
    target.symlink_to(elsewhere, target_is_directory=True)

    plan = _plan(tmp_project, home)
    task = next(t for t in plan.tasks if t.target == target)
    assert isinstance(task, LinkTask) and task.replace_symlink

    result = apply_link_plan(plan)

    assert result.updated == 1
    assert points_to(target, tmp_project / ".agents" / "commands")


def test_real_directory_is_a_conflict(tmp_project, home):
    target = tmp_project / ".claude" / "skills"
    target.mkdir(parents=True)
    (target / "mine.md").write_text("keep me")

    plan = _plan(tmp_project, home)

    assert len(plan.conflicts) == 1
    assert plan.conflicts[0].target == target
    assert "not a symlink" in plan.conflicts[0].reason


def test_conflict_without_force_touches_nothing(tmp_project, home):
    target = tmp_project / ".claude" / "skills"
    target.mkdir(parents=True)

    with pytest.raises(LinkConflictError) as exc:
        apply_link_plan(_plan(tmp_project, home))

    assert str(target) in str(exc.value)
    assert exc.value.conflicts[0].target == target
    assert not (tmp_project / ".claude" / "commands").exists()


def test_conflict_with_force_skips_it(tmp_project, home):
    target = tmp_project / ".claude" / "skills"
    target.mkdir(parents=True)
    (target / "mine.md").write_text("keep me")

    result = apply_link_plan(_plan(tmp_project, home), force=True)

    assert result.applied == 2
    assert result.conflicts == 1
    assert not target.is_symlink()
    assert (target / "mine.md").read_text() == "keep me"


def test_dry_run_counts_only(tmp_project, home):
    result = apply_link_plan(_plan(tmp_project, home), dry_run=True)

    assert result.dry_run
    assert result.applied == 3
    assert not (tmp_project / ".claude").exists()


def test_missing_source_is_ensure_source(home):
    project = home / "work" / "bare"
    (project / ".agents").mkdir(parents=True)

    plan = _plan(project, home)

    assert all(isinstance(t, EnsureSourceTask) for t in plan.tasks)
    assert plan.changes == []
    assert apply_link_plan(plan).skipped == 3


def test_file_mapping(tmp_path):
    source = tmp_path / "AGENTS.md"
    source.write_text("# hi")
    target = tmp_path / "client" / "CLAUDE.md"
    mapping = Mapping(name="claude-md", source=source, targets=(target,), kind=SourceKind.FILE)

    apply_link_plan(build_link_plan([mapping]))

    assert target.is_symlink()
    assert target.read_text() == "# hi"


def test_real_file_conflict_reason(tmp_path):
    source = tmp_path / "AGENTS.md"
    source.write_text("# hi")
    target = tmp_path / "CLAUDE.md"
    target.write_text("mine")
    mapping = Mapping(name="claude-md", source=source, targets=(target,), kind=SourceKind.FILE)

    task = build_link_plan([mapping]).tasks[0]

    assert isinstance(task, ConflictTask)
    assert task.reason == "existing file is not a symlink"


def test_identical_real_file_is_still_a_conflict(tmp_path):
    source = tmp_path / "AGENTS.md"
    source.write_text("# hi")
    target = tmp_path / "CLAUDE.md"
    shutil.copy2(source, target)
    mapping = Mapping(name="claude-md", source=source, targets=(target,), kind=SourceKind.FILE)

    task = build_link_plan([mapping]).tasks[0]

    assert isinstance(task, ConflictTask)
    assert target.read_bytes() == source.read_bytes()


def test_copied_directory_is_still_a_conflict(tmp_project, home):
    target = tmp_project / ".claude" / "skills"
    target.parent.mkdir(parents=True)
    shutil.copytree(tmp_project / ".agents" / "skills", target)

    plan = _plan(tmp_project, home)

    assert [t.target for t in plan.conflicts] == [target]
    assert all(isinstance(t, ConflictTask) for t in plan.conflicts)
    assert not target.is_symlink()


def test_io_failure_is_wrapped_and_rolled_back(tmp_project, home, monkeypatch):
    plan = _plan(tmp_project, home)
    failing = plan.changes[1].target
    real_symlink_to = type(failing).symlink_to

    def flaky(self, *args, **kwargs):
        if self == failing:
            raise PermissionError("denied")
        return real_symlink_to(self, *args, **kwargs)

    monkeypatch.setattr(type(failing), "symlink_to", flaky)
    backup = create_backup_session(tmp_project / ".agents", Scope.PROJECT, "apply")

    with pytest.raises(LinkIOError) as exc:
        apply_link_plan(plan, backup=backup)

    assert exc.value.target == failing
    assert (tmp_project / ".claude" / "commands").is_symlink()

    assert backup.rollback() == []
    assert not os.path.lexists(tmp_project / ".claude" / "commands")


def test_backup_failure_is_wrapped_and_rolled_back(tmp_project, home, monkeypatch):
    plan = _plan(tmp_project, home)
    failing = plan.changes[1].target
    backup = create_backup_session(tmp_project / ".agents", Scope.PROJECT, "apply")
    real_record = backup.record

    def record(target):
        if target == failing:
            raise OSError("disk full")
        real_record(target)

    monkeypatch.setattr(backup, "record", record)

    with pytest.raises(LinkIOError) as exc:
        apply_link_plan(plan, backup=backup)

    assert exc.value.target == failing
    assert "disk full" in str(exc.value)
    assert not os.path.lexists(failing)

    assert backup.rollback() == []
    assert not os.path.lexists(plan.changes[0].target)
