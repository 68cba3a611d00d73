# SITEPUB Output Module
# Rich console output

from sitepub.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
