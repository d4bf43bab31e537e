"""Tests for the merge engine."""

import pytest

from agent_linker.core.errors import MergeError
from agent_linker.core.merge import (
    SEPARATOR,
    clean_merged_dir,
    get_merged_dir,
    merge_agents_md,
    merge_directory_chain,
    merge_markdown_chain,
)
from agent_linker.core.types import ExtendBehavior


def _write(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _listing(directory):
    return sorted(p.relative_to(directory).as_posix() for p in directory.rglob("*") if p.is_file())


@pytest.fixture
def roots(tmp_path):
    """(current, parent, global) canonical roots, all empty."""
    current = tmp_path / "repo" / "pkg" / ".agents"
    parent = tmp_path / "repo" / ".agents"
    global_root = tmp_path / "home" / ".agents"
    for root in (current, parent, global_root):
        root.mkdir(parents=True)
    return current, parent, global_root


# --- markdown ---------------------------------------------------------------


def test_merged_dir_path(tmp_path):
    assert get_merged_dir(tmp_path / ".agents") == tmp_path / ".agents" / "merged"


def test_markdown_chain_trims_around_separator(tmp_path):
    _write(tmp_path / "parent.md", "# Parent\n\n\n")
    _write(tmp_path / "child.md", "\n\n\n# Child")

    result = merge_markdown_chain([tmp_path / "parent.md", tmp_path / "child.md"])

    assert result == f"# Parent{SEPARATOR}# Child"


def test_markdown_chain_skips_missing_and_blank(tmp_path):
    _write(tmp_path / "a.md", "# A")
    _write(tmp_path / "b.md", "   \n")
    _write(tmp_path / "c.md", "# C")

    result = merge_markdown_chain([tmp_path / "a.md", tmp_path / "b.md", tmp_path / "missing.md", tmp_path / "c.md"])

    assert result == "# A\n\n---\n\n# C"


def test_markdown_chain_empty(tmp_path):
    assert merge_markdown_chain([]) == ""
    assert merge_markdown_chain([tmp_path / "missing.md"]) == ""


# --- AGENTS.md --------------------------------------------------------------


def test_agents_md_none_anywhere(roots):
    current, parent, global_root = roots
    assert merge_agents_md([current, parent, global_root], current, ExtendBehavior.EXTEND) is None


def test_agents_md_override_prefers_claude_md(roots):
    current, parent, _ = roots
    _write(current / "CLAUDE.md", "# Claude")
    _write(current / "AGENTS.md", "# Agents")
    _write(parent / "AGENTS.md", "# Parent")

    assert merge_agents_md([current, parent], current, ExtendBehavior.OVERRIDE) == current / "CLAUDE.md"


def test_agents_md_override_without_local_file(roots):
    current, parent, _ = roots
    _write(parent / "AGENTS.md", "# Parent")

    assert merge_agents_md([current, parent], current, ExtendBehavior.OVERRIDE) is None


def test_agents_md_inherit_first_found(roots):
    current, parent, global_root = roots
    _write(parent / "AGENTS.md", "# Parent")
    _write(global_root / "AGENTS.md", "# Global")

    assert merge_agents_md([current, parent, global_root], current, ExtendBehavior.INHERIT) == parent / "AGENTS.md"


def test_agents_md_extend_single_file_is_not_copied(roots):
    current, parent, _ = roots
    _write(parent / "AGENTS.md", "# Parent")

    result = merge_agents_md([current, parent], current, ExtendBehavior.EXTEND)

    assert result == parent / "AGENTS.md"
    assert not get_merged_dir(current).exists()


def test_agents_md_extend_farthest_first(roots):
    current, parent, global_root = roots
    _write(current / "AGENTS.md", "# Current")
    _write(parent / "AGENTS.md", "# Parent")
    _write(global_root / "AGENTS.md", "# Global")

    result = merge_agents_md([current, parent, global_root], current, ExtendBehavior.EXTEND)

    assert result == current / "merged" / "AGENTS.md"
    assert result.read_text() == f"# Global{SEPARATOR}# Parent{SEPARATOR}# Current"


def test_agents_md_extend_mixes_claude_and_agents(roots):
    current, parent, _ = roots
    _write(current / "CLAUDE.md", "# Current Claude")
    _write(parent / "AGENTS.md", "# Parent Agents")

    result = merge_agents_md([current, parent], current, ExtendBehavior.EXTEND)

    assert result.read_text() == f"# Parent Agents{SEPARATOR}# Current Claude"


def test_agents_md_stale_output_removed(roots):
    current, parent, _ = roots
    _write(current / "merged" / "AGENTS.md", "stale")
    _write(parent / "AGENTS.md", "# Parent")

    merge_agents_md([current, parent], current, ExtendBehavior.INHERIT)

    assert not (current / "merged" / "AGENTS.md").exists()


def test_agents_md_all_blank_gives_none(roots):
    current, parent, _ = roots
    _write(current / "AGENTS.md", "\n")
    _write(parent / "AGENTS.md", "  ")

    assert merge_agents_md([current, parent], current, ExtendBehavior.EXTEND) is None


# --- merge_directory_chain --------------------------------------------------


def test_chain_nothing_anywhere(roots):
    current, parent, global_root = roots
    for behavior in ExtendBehavior:
        assert merge_directory_chain([current, parent, global_root], current, "commands", behavior) is None


def test_chain_override(roots):
    current, parent, _ = roots
    _write(current / "commands" / "cmd.md", "# Current")
    _write(parent / "commands" / "other.md", "# Parent")

    assert merge_directory_chain([current, parent], current, "commands", ExtendBehavior.OVERRIDE) == current / "commands"


def test_chain_override_without_local(roots):
    current, parent, _ = roots
    _write(parent / "commands" / "other.md", "# Parent")

    assert merge_directory_chain([current, parent], current, "commands", ExtendBehavior.OVERRIDE) is None


def test_chain_inherit_first_available(roots):
    current, parent, global_root = roots
    _write(parent / "skills" / "a" / "SKILL.md", "a")
    _write(global_root / "skills" / "b" / "SKILL.md", "b")

    result = merge_directory_chain([current, parent, global_root], current, "skills", ExtendBehavior.INHERIT)

    assert result == parent / "skills"


def test_chain_extend_single_dir_not_copied(roots):
    current, parent, _ = roots
    _write(parent / "commands" / "x.md", "x")

    result = merge_directory_chain([current, parent], current, "commands", ExtendBehavior.EXTEND)

    assert result == parent / "commands"
    assert not (current / "merged" / "commands").exists()


def test_chain_extend_union_nearest_wins(roots):
    current, parent, global_root = roots
    _write(global_root / "commands" / "g.md", "global")
    _write(global_root / "commands" / "same.md", "global same")
    _write(parent / "commands" / "p.md", "parent")
    _write(parent / "commands" / "same.md", "parent same")
    _write(current / "commands" / "c.md", "current")

    result = merge_directory_chain([current, parent, global_root], current, "commands", ExtendBehavior.EXTEND)

    assert result == current / "merged" / "commands"
    assert _listing(result) == ["c.md", "g.md", "p.md", "same.md"]
    assert (result / "same.md").read_text() == "parent same"


def test_chain_extend_rebuilds_from_scratch(roots):
    current, parent, _ = roots
    _write(parent / "commands" / "p.md", "parent")
    _write(current / "commands" / "c.md", "current")
    _write(current / "merged" / "commands" / "deleted.md", "stale")

    result = merge_directory_chain([current, parent], current, "commands", ExtendBehavior.EXTEND)

    assert _listing(result) == ["c.md", "p.md"]


def test_chain_extend_applies_exclude(roots):
    current, parent, _ = roots
    _write(parent / "commands" / "deploy.test.md", "test")
    _write(parent / "commands" / "deploy.md", "deploy")
    _write(current / "commands" / "drafts" / "wip.md", "wip")
    _write(current / "commands" / "c.md", "current")

    result = merge_directory_chain(
        [current, parent],
        current,
        "commands",
        ExtendBehavior.EXTEND,
        exclude=["commands/*.test.md", "commands/drafts/**"],
    )

    assert _listing(result) == ["c.md", "deploy.md"]


def test_chain_extend_nearer_dir_replaces_farther_file(roots):
    current, parent, _ = roots
    _write(parent / "skills" / "review", "parent file")
    _write(current / "skills" / "review" / "SKILL.md", "current skill")

    result = merge_directory_chain([current, parent], current, "skills", ExtendBehavior.EXTEND)

    assert _listing(result) == ["review/SKILL.md"]
    assert (result / "review" / "SKILL.md").read_text() == "current skill"


def test_chain_extend_nearer_file_replaces_farther_dir(roots):
    current, parent, _ = roots
    _write(parent / "commands" / "build.md" / "x", "parent nested")
    _write(current / "commands" / "build.md", "current build")

    result = merge_directory_chain([current, parent], current, "commands", ExtendBehavior.EXTEND)

    assert _listing(result) == ["build.md"]
    assert (result / "build.md").read_text() == "current build"


def test_chain_extend_unreadable_entry_names_root(roots, tmp_path):
    current, parent, _ = roots
    _write(current / "commands" / "c.md", "current")
    (parent / "commands").mkdir()
    (parent / "commands" / "gone.md").symlink_to(tmp_path / "missing.md")

    with pytest.raises(MergeError) as exc:
        merge_directory_chain([current, parent], current, "commands", ExtendBehavior.EXTEND)

    assert exc.value.root == parent
    assert exc.value.resource == "commands"
    assert str(parent) in str(exc.value)


def test_agents_md_undecodable_names_root(roots):
    current, parent, _ = roots
    _write(current / "AGENTS.md", "# Current")
    (parent / "AGENTS.md").write_bytes(b"\xff\xfe\xfa")

    with pytest.raises(MergeError) as exc:
        merge_agents_md([current, parent], current, ExtendBehavior.EXTEND)

    assert exc.value.root == parent
    assert exc.value.resource == "AGENTS.md"


def test_chain_unknown_behavior(roots):
    current, _, _ = roots
    with pytest.raises(ValueError):
        merge_directory_chain([current], current, "commands", "merge")


# --- compose ----------------------------------------------------------------


def test_compose_no_include_no_current(roots):
    current, parent, _ = roots
    _write(parent / "commands" / "build.md", "build")

    assert merge_directory_chain([current, parent], current, "commands", ExtendBehavior.COMPOSE) is None


def test_compose_empty_include_uses_current(roots):
    current, parent, _ = roots
    _write(parent / "commands" / "build.md", "build")
    _write(current / "commands" / "local.md", "local")

    result = merge_directory_chain([current, parent], current, "commands", ExtendBehavior.COMPOSE, include_list=[])

    assert result == current / "commands"


def test_compose_picks_included_plus_local(roots):
    current, parent, _ = roots
    _write(parent / "commands" / "build.md", "build")
    _write(parent / "commands" / "deploy.md", "deploy")
    _write(current / "commands" / "local.md", "local")

    result = merge_directory_chain(
        [current, parent], current, "commands", ExtendBehavior.COMPOSE, include_list=["build.md"]
    )

    assert result == current / "merged" / "commands"
    assert _listing(result) == ["build.md", "local.md"]


def test_compose_local_overrides_included(roots):
    current, parent, _ = roots
    _write(parent / "commands" / "build.md", "parent build")
    _write(current / "commands" / "build.md", "local build")

    result = merge_directory_chain(
        [current, parent], current, "commands", ExtendBehavior.COMPOSE, include_list=["build.md"]
    )

    assert (result / "build.md").read_text() == "local build"


def test_compose_skill_dirs_with_trailing_slash(roots):
    current, parent, global_root = roots
    _write(parent / "skills" / "shared" / "SKILL.md", "parent shared")
    _write(global_root / "skills" / "shared" / "SKILL.md", "global shared")
    _write(global_root / "skills" / "other" / "SKILL.md", "other")

    result = merge_directory_chain(
        [current, parent, global_root], current, "skills", ExtendBehavior.COMPOSE, include_list=["shared/"]
    )

    assert _listing(result) == ["shared/SKILL.md"]
    assert (result / "shared" / "SKILL.md").read_text() == "parent shared"


def test_compose_skips_missing_items(roots):
    current, parent, _ = roots
    _write(parent / "commands" / "build.md", "build")

    result = merge_directory_chain(
        [current, parent], current, "commands", ExtendBehavior.COMPOSE, include_list=["build.md", "nope.md"]
    )

    assert _listing(result) == ["build.md"]


def test_compose_nothing_found_in_parents(roots):
    current, parent, _ = roots
    (parent / "commands").mkdir()

    result = merge_directory_chain(
        [current, parent], current, "commands", ExtendBehavior.COMPOSE, include_list=["nonexistent.md"]
    )

    assert result is None


def test_compose_excluded_item_not_copied(roots):
    current, parent, _ = roots
    _write(parent / "commands" / "build.md", "build")
    _write(parent / "commands" / "build.test.md", "test")

    result = merge_directory_chain(
        [current, parent],
        current,
        "commands",
        ExtendBehavior.COMPOSE,
        include_list=["build.md", "build.test.md"],
        exclude=["commands/*.test.md"],
    )

    assert _listing(result) == ["build.md"]


def test_compose_accepts_backslash_marker(roots):
    current, parent, _ = roots
    _write(parent / "skills" / "shared" / "SKILL.md", "shared")

    result = merge_directory_chain(
        [current, parent], current, "skills", ExtendBehavior.COMPOSE, include_list=["shared\\"]
    )

    assert _listing(result) == ["shared/SKILL.md"]


def test_compose_local_dir_replaces_included_file(roots):
    current, parent, _ = roots
    _write(parent / "skills" / "review", "parent file")
    _write(current / "skills" / "review" / "SKILL.md", "local skill")

    result = merge_directory_chain(
        [current, parent], current, "skills", ExtendBehavior.COMPOSE, include_list=["review"]
    )

    assert _listing(result) == ["review/SKILL.md"]


def test_compose_local_file_replaces_included_dir(roots):
    current, parent, _ = roots
    _write(parent / "commands" / "build.md" / "x", "parent nested")
    _write(current / "commands" / "build.md", "local build")

    result = merge_directory_chain(
        [current, parent], current, "commands", ExtendBehavior.COMPOSE, include_list=["build.md"]
    )

    assert _listing(result) == ["build.md"]
    assert (result / "build.md").read_text() == "local build"


# --- clean ------------------------------------------------------------------


def test_clean_merged_dir(roots):
    current, _, _ = roots
    _write(current / "merged" / "commands" / "deep" / "x.md", "x")

    clean_merged_dir(current)
    assert not (current / "merged").exists()

    # no-op when absent
    clean_merged_dir(current)
