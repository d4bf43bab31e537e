import os
import time


# ANSI colors
class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    ENDC = '\033[0m'


if os.environ.get("NO_COLOR"):
    for _name in ("HEADER", "BLUE", "CYAN", "GREEN", "YELLOW", "RED", "BOLD", "ENDC"):
        setattr(Colors, _name, "")


def timestamp() -> str:
    """Wall-clock time for log prefixes, e.g. 14:03:27."""
    return time.strftime("%H:%M:%S")
