"""
Client detection: which of the supported tools look installed.

Probes are read-only and independent, so they run on a small thread pool.
"""

import shutil
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional

from .types import ALL_CLIENTS, Client, DetectionResult

# client -> (home-relative config dirs, executable name)
_PROBES: Dict[Client, tuple] = {
    Client.CLAUDE: ([".claude"], "claude"),
    Client.FACTORY: ([".factory"], "factory"),
    Client.CODEX: ([".codex"], "codex"),
    Client.CURSOR: ([".cursor"], None),
    Client.OPENCODE: ([".opencode", ".config/opencode"], "opencode"),
}

CURSOR_MAC_APP = Path("/Applications/Cursor.app")


def detect_client(client: Client, home_dir: Optional[Path] = None) -> DetectionResult:
    home = Path(home_dir) if home_dir else Path.home()
    config_dirs, command = _PROBES[client]

    for relative in config_dirs:
        if (home / relative).exists():
            return DetectionResult(client, True, f"~/{relative} exists")

    if client == Client.CURSOR and sys.platform == "darwin" and CURSOR_MAC_APP.exists():
        return DetectionResult(client, True, "Cursor.app installed")

    if command and shutil.which(command):
        return DetectionResult(client, True, f"{command} command available")

    return DetectionResult(client, False)


def detect_all_clients(home_dir: Optional[Path] = None) -> Dict[Client, DetectionResult]:
    with ThreadPoolExecutor(max_workers=len(ALL_CLIENTS)) as pool:
        results = list(pool.map(lambda c: detect_client(c, home_dir), ALL_CLIENTS))
    return {client: result for client, result in zip(ALL_CLIENTS, results)}


def get_detected_clients(home_dir: Optional[Path] = None) -> List[Client]:
    return [client for client, result in detect_all_clients(home_dir).items() if result.detected]
