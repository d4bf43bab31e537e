"""
Agent Linker - one canonical .agents folder, symlinked into every AI client.

Projects a canonical tree (AGENTS.md, commands/, hooks/, skills/) into:
- Claude Code (.claude/)
- Factory (.factory/)
- Codex (.codex/)
- Cursor (.cursor/)
- OpenCode (.opencode/, ~/.config/opencode/)

Nested .agents folders form an inheritance chain and are merged per
resource before linking.
"""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "core",
    "services",
    "tui",
    "utils",
]
