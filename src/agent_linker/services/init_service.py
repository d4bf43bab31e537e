"""
Business logic for 'agent-linker init'.

Creates the skeleton of a canonical tree; never touches existing files.
"""

from pathlib import Path
from typing import Optional

from agent_linker.core.chain import detect_chain, has_parent
from agent_linker.core.config import CONFIG_FILENAME, save_config
from agent_linker.core.errors import InitError
from agent_linker.core.paths import resolve_roots
from agent_linker.core.types import InitResult, NodeConfig, Scope

AGENTS_MD_TEMPLATE = """# AGENTS.md

This file provides instructions and context for AI coding assistants.

## Project Overview

<!-- Describe your project here -->

## Code Style

<!-- Document your coding conventions -->

## Architecture

<!-- Explain the project structure and key patterns -->

## Testing

<!-- Describe testing approach and how to run tests -->
"""

CONFIG_YAML_TEMPLATE = """# How this .agents folder inherits from parent .agents folders.
#
# true  = inherit every resource from the nearest parent that has it
# false = use only local resources
extends: true

# Per-resource configuration (optional)
# extends:
#   AGENTS.md: inherit   # inherit | override | extend | compose
#   commands: compose
#   skills: extend
#   hooks: inherit
#   default: inherit
#
# Items to pick from parents when a resource uses compose
# include:
#   commands: [build.md]
#   skills: [shared-skill/]
#
# Paths never copied into merged output
# exclude:
#   - "**/*.test.md"
"""

RESOURCE_DIRS = ["commands", "hooks", "skills"]


def init_agents_folder(
    scope: Scope,
    project_root: Optional[Path] = None,
    home_dir: Optional[Path] = None,
    create_config: bool = False,
    config: Optional[NodeConfig] = None,
) -> InitResult:
    """
    Scaffold a canonical tree.

    Args:
        scope: global (~/.agents) or project (<project>/.agents)
        create_config: Also write config.yaml (template, or `config`)
        config: Explicit config to write instead of the template

    Returns:
        InitResult listing created and skipped items

    Raises:
        InitError: The tree could not be written
    """
    roots = resolve_roots(scope, project_root, home_dir)
    result = InitResult(agents_root=roots.canonical_root)
    try:
        _scaffold(result, create_config, config)
    except OSError as e:
        raise InitError(roots.canonical_root, str(e)) from e

    if scope == Scope.PROJECT:
        chain = detect_chain(roots.project_root, home_dir)
        result.is_monorepo = has_parent(chain)

    return result


def _scaffold(result: InitResult, create_config: bool, config: Optional[NodeConfig]) -> None:
    agents_root = result.agents_root
    agents_root.mkdir(parents=True, exist_ok=True)

    agents_md = agents_root / "AGENTS.md"
    if agents_md.exists():
        result.skipped.append("AGENTS.md")
    else:
        agents_md.write_text(AGENTS_MD_TEMPLATE, encoding="utf-8")
        result.created.append("AGENTS.md")

    for name in RESOURCE_DIRS:
        path = agents_root / name
        if path.exists():
            result.skipped.append(f"{name}/")
        else:
            path.mkdir(parents=True)
            result.created.append(f"{name}/")

    if create_config or config is not None:
        config_path = agents_root / CONFIG_FILENAME
        if config_path.exists():
            result.skipped.append(CONFIG_FILENAME)
        elif config is not None:
            save_config(agents_root, config)
            result.created.append(CONFIG_FILENAME)
        else:
            config_path.write_text(CONFIG_YAML_TEMPLATE, encoding="utf-8")
            result.created.append(CONFIG_FILENAME)
