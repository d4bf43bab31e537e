"""
Interactive prompts for agent-linker.

All questionary prompts live here so cli.py stays a dispatcher.
"""

from typing import Dict, List, Optional

import questionary
from questionary import Separator, Style

from agent_linker.core.config import create_compose_config, create_detailed_config
from agent_linker.core.discover import discover_parent_resources
from agent_linker.core.types import (
    ExtendBehavior,
    InheritanceChain,
    LinkPlan,
    NodeConfig,
    ResourceName,
)
from agent_linker.utils import Colors

CUSTOM_STYLE = Style(
    [
        ("qmark", "fg:#00d4ff bold"),
        ("question", "bold"),
        ("answer", "fg:#00d4ff bold"),
        ("pointer", "fg:#00d4ff bold"),
        ("highlighted", "fg:#00d4ff bold bg:default"),
        ("selected", "fg:#00d4ff bold bg:default"),
        ("checkbox", "fg:#888888"),
        ("checkbox-selected", "fg:#00d4ff bold"),
    ]
)

BEHAVIOR_LABELS = {
    ExtendBehavior.INHERIT: "inherit  - use the nearest parent's version",
    ExtendBehavior.OVERRIDE: "override - local only",
    ExtendBehavior.EXTEND: "extend   - parents + local (local wins)",
    ExtendBehavior.COMPOSE: "compose  - pick items from parents + local",
}

# compose only makes sense for directory resources
_COMPOSABLE = {"commands", "skills", "hooks"}


def print_plan(plan: LinkPlan) -> None:
    for task in plan.changes:
        verb = "relink" if task.replace_symlink else "link"
        print(f"  {Colors.GREEN}{verb}{Colors.ENDC} {task.target} -> {task.source}")
    for task in plan.conflicts:
        print(f"  {Colors.RED}conflict{Colors.ENDC} {task.target} ({task.reason})")


def confirm_apply(plan: LinkPlan) -> bool:
    """Show pending changes and ask before touching anything."""
    print(f"\n{Colors.HEADER}Planned changes:{Colors.ENDC}")
    print_plan(plan)
    if plan.conflicts:
        print(f"{Colors.YELLOW}Conflicting targets will be left untouched.{Colors.ENDC}")

    answer = questionary.confirm(
        f"Apply {len(plan.changes)} change(s)?", default=True, style=CUSTOM_STYLE
    ).ask()
    if not answer:
        print(f"{Colors.YELLOW}Cancelled.{Colors.ENDC}")
        return False
    return True


def choose_config(chain: InheritanceChain) -> Optional[NodeConfig]:
    """
    Ask how each resource inherits from the parent roots.

    Returns:
        The config to write, or None if cancelled
    """
    behaviors: Dict[str, ExtendBehavior] = {}
    for resource in ResourceName:
        choices = [
            questionary.Choice(label, value=behavior)
            for behavior, label in BEHAVIOR_LABELS.items()
            if behavior is not ExtendBehavior.COMPOSE or resource.value in _COMPOSABLE
        ]
        picked = questionary.select(
            f"{resource.value}:",
            choices=choices,
            style=CUSTOM_STYLE,
        ).ask()
        if picked is None:
            print(f"{Colors.YELLOW}Cancelled.{Colors.ENDC}")
            return None
        behaviors[resource.value] = picked

    composed = [name for name, b in behaviors.items() if b is ExtendBehavior.COMPOSE]
    if not composed:
        return create_detailed_config(behaviors)

    include: Dict[str, List[str]] = {}
    available = discover_parent_resources(chain)
    for name in composed:
        items = available.get(name, [])
        if not items:
            print(f"  {Colors.YELLOW}No {name} found in parent folders.{Colors.ENDC}")
            include[name] = []
            continue
        choices = [Separator(f"-- {name} in parents --")] + [
            questionary.Choice(f"{item.name} ({item.source})", value=item.name) for item in items
        ]
        selected = questionary.checkbox(
            f"Pick {name} to include:",
            choices=choices,
            style=CUSTOM_STYLE,
            instruction="Space=toggle, Enter=confirm",
        ).ask()
        if selected is None:
            print(f"{Colors.YELLOW}Cancelled.{Colors.ENDC}")
            return None
        include[name] = list(selected)

    return create_compose_config(behaviors, include)
