"""Output helpers shared by the CLI and the load test engine."""

from typing import Callable

# ANSI color codes
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
CYAN = "\033[96m"
BOLD = "\033[1m"
RESET = "\033[0m"

# Anything that accepts one line of text, e.g. print or list.append
Sink = Callable[[str], None]
