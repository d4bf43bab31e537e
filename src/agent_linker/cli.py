"""
CLI entry point: thin dispatcher only.

Parse args -> call service -> print result.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from agent_linker.core.errors import AgentLinkerError
from agent_linker.core.types import Client, Scope
from agent_linker.utils import Colors

STATUS_COLORS = {"linked": Colors.GREEN, "missing": Colors.YELLOW, "conflict": Colors.RED}


def main():
    try:
        _main()
    except KeyboardInterrupt:
        print(f"\n{Colors.YELLOW}Cancelled.{Colors.ENDC}")
        sys.exit(130)
    except AgentLinkerError as e:
        print(f"{Colors.RED}{e}{Colors.ENDC}")
        sys.exit(1)


def _main():
    parser = argparse.ArgumentParser(
        description="Agent Linker - link one canonical .agents folder into every AI client"
    )
    sub = parser.add_subparsers(dest="command", help="Command")
    scopes = [s.value for s in Scope]

    # --- init ---
    p_init = sub.add_parser("init", help="Create a .agents folder")
    p_init.add_argument("--scope", choices=["global", "project"], default="project")
    p_init.add_argument("--config", action="store_true", help="Also write config.yaml")
    p_init.add_argument("--no-interactive", action="store_true", help="Write the template config without prompts")

    # --- apply ---
    p_apply = sub.add_parser("apply", help="Link the canonical tree into client folders")
    p_apply.add_argument("--scope", choices=scopes, default=None, help="Default: detected from cwd")
    p_apply.add_argument("--clients", default=None, help="Comma-separated, e.g. claude,codex")
    p_apply.add_argument("--dry-run", action="store_true", help="Show what would change, touch nothing")
    p_apply.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    p_apply.add_argument("--force", "-f", action="store_true", help="Skip conflicting targets instead of failing")

    # --- status ---
    p_status = sub.add_parser("status", help="Show link status per client target")
    p_status.add_argument("--scope", choices=scopes, default=None)
    p_status.add_argument("--clients", default=None)

    # --- repair ---
    p_repair = sub.add_parser("repair", help="Quietly recreate missing or stale links")
    p_repair.add_argument("--clients", default=None)

    # --- watch ---
    p_watch = sub.add_parser("watch", help="Rebuild links when any .agents folder in the chain changes")
    p_watch.add_argument("--clients", default=None)

    # --- chain ---
    sub.add_parser("chain", help="Show the .agents inheritance chain")

    args = parser.parse_args()

    if args.command == "init":
        _handle_init(args)
    elif args.command == "apply":
        _handle_apply(args, parser)
    elif args.command == "status":
        _handle_status(args, parser)
    elif args.command == "repair":
        _handle_repair(args, parser)
    elif args.command == "watch":
        _handle_watch(args, parser)
    elif args.command == "chain":
        _handle_chain()
    else:
        parser.print_help()


def _parse_clients(value: Optional[str], parser: argparse.ArgumentParser) -> Optional[List[Client]]:
    if not value:
        return None
    try:
        return [Client.parse(v) for v in value.split(",") if v.strip()]
    except ValueError as e:
        parser.error(str(e))


def _resolve_scope(value: Optional[str]) -> Optional[Scope]:
    from agent_linker.services.repair_service import NO_TREE_MESSAGE, detect_scope

    if value:
        return Scope(value)
    detected = detect_scope(Path.cwd(), Path.home())
    if detected is None:
        print(f"{Colors.RED}{NO_TREE_MESSAGE}{Colors.ENDC}")
        sys.exit(1)
    return detected[0]


def _handle_init(args):
    from agent_linker.core.chain import detect_chain, has_parent
    from agent_linker.services.init_service import init_agents_folder

    scope = Scope(args.scope)
    config = None
    if args.config and scope == Scope.PROJECT and not args.no_interactive:
        chain = detect_chain(Path.cwd(), Path.home())
        if has_parent(chain):
            from agent_linker.tui import choose_config

            print(f"{Colors.CYAN}Parent .agents folders found. Configure inheritance:{Colors.ENDC}\n")
            config = choose_config(chain)
            if config is None:
                return

    result = init_agents_folder(scope, Path.cwd(), Path.home(), create_config=args.config, config=config)

    print(f"{Colors.HEADER}Initialized {result.agents_root}{Colors.ENDC}")
    for item in result.created:
        print(f"  {Colors.GREEN}+ {item}{Colors.ENDC}")
    for item in result.skipped:
        print(f"  {Colors.YELLOW}= {item} (exists){Colors.ENDC}")
    if result.is_monorepo:
        print(f"\n{Colors.CYAN}Inside a .agents chain. Use 'agent-linker apply --scope monorepo'.{Colors.ENDC}")


def _handle_apply(args, parser):
    from agent_linker.services.apply_service import run_apply
    from agent_linker.services.repair_service import default_clients
    from agent_linker.tui import confirm_apply, print_plan

    scope = _resolve_scope(args.scope)
    clients = _parse_clients(args.clients, parser) or default_clients(Path.home())
    confirm = None if (args.yes or args.dry_run) else confirm_apply

    outcome = run_apply(
        scope,
        clients,
        Path.cwd(),
        Path.home(),
        dry_run=args.dry_run,
        force=args.force,
        confirm=confirm,
    )

    if outcome.error:
        print(f"{Colors.RED}{outcome.error}{Colors.ENDC}")
        sys.exit(1)
    if outcome.cancelled:
        return

    result = outcome.result
    if args.dry_run:
        print(f"{Colors.HEADER}Dry run ({scope.value}):{Colors.ENDC}")
        print_plan(outcome.plan)
        print(f"\n{Colors.CYAN}Would apply {result.applied} link(s), {result.conflicts} conflict(s).{Colors.ENDC}")
        return

    if not outcome.plan.changes:
        print(f"{Colors.GREEN}Everything is already linked.{Colors.ENDC}")
        return

    print(
        f"{Colors.GREEN}Applied {result.applied} link(s) "
        f"({result.created} created, {result.updated} updated).{Colors.ENDC}"
    )
    if result.conflicts:
        print(f"{Colors.YELLOW}Skipped {result.conflicts} conflicting target(s).{Colors.ENDC}")
    if outcome.backup_path:
        print(f"  Backup: {outcome.backup_path}")


def _handle_status(args, parser):
    from agent_linker.core.chain import detect_chain
    from agent_linker.core.mappings import get_mappings, get_monorepo_mappings
    from agent_linker.core.status import get_link_status

    scope = _resolve_scope(args.scope)
    clients = _parse_clients(args.clients, parser)

    if scope == Scope.MONOREPO:
        mappings = get_monorepo_mappings(detect_chain(Path.cwd(), Path.home()), Path.cwd(), Path.home(), clients)
    else:
        mappings = get_mappings(scope, Path.cwd(), Path.home(), clients)

    print(f"{Colors.HEADER}Link status ({scope.value}):{Colors.ENDC}\n")
    for status in get_link_status(mappings):
        print(f"  {Colors.BOLD}{status.name}{Colors.ENDC} <- {status.source}")
        for target in status.targets:
            color = STATUS_COLORS.get(target.status, "")
            print(f"    {color}{target.status:<8}{Colors.ENDC} {target.path}")


def _handle_repair(args, parser):
    from agent_linker.services.repair_service import run_repair

    result = run_repair(Path.cwd(), Path.home(), _parse_clients(args.clients, parser))
    for error in result.errors:
        print(f"{Colors.YELLOW}{error}{Colors.ENDC}")
    if result.created or result.updated:
        print(f"{Colors.GREEN}Repaired {result.created + result.updated} link(s) ({result.scope.value}).{Colors.ENDC}")


def _handle_watch(args, parser):
    from agent_linker.core.chain import detect_chain
    from agent_linker.services.watch_service import run_watch

    chain = detect_chain(Path.cwd(), Path.home())
    print(f"{Colors.HEADER}Agent Linker watch{Colors.ENDC}")
    run_watch(
        chain,
        _parse_clients(args.clients, parser),
        Path.home(),
        on_error=lambda e: print(f"{Colors.RED}{e}{Colors.ENDC}"),
    )
    print(f"\n{Colors.YELLOW}Stopped watching.{Colors.ENDC}")


def _handle_chain():
    from agent_linker.core.chain import detect_chain, format_inheritance_display

    chain = detect_chain(Path.cwd(), Path.home())
    lines = format_inheritance_display(chain)
    if not lines:
        print(f"{Colors.YELLOW}No .agents folder found between {Path.cwd()} and {Path.home()}.{Colors.ENDC}")
        return
    for line in lines:
        print(line)


if __name__ == "__main__":
    main()
