# extsync Output Module
# Rich console output

from extsync.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
