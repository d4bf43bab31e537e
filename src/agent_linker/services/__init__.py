"""
Services: business logic kept out of the CLI.

Each service drives one flow: init, apply, repair, watch.
"""

from agent_linker.services.apply_service import run_apply
from agent_linker.services.init_service import init_agents_folder
from agent_linker.services.repair_service import run_repair
from agent_linker.services.watch_service import WatchDaemon, run_watch

__all__ = ["init_agents_folder", "run_apply", "run_repair", "run_watch", "WatchDaemon"]
