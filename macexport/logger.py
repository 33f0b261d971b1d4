from rich.console import Console
from functools import lru_cache

_verbose = False


@lru_cache(maxsize=1)
def get_console() -> Console:
    """Get or create the shared Console instance"""
    return Console()


def set_verbose(enabled: bool) -> None:
    """Toggle debug output on the shared console"""
    global _verbose
    _verbose = enabled


def is_verbose() -> bool:
    return _verbose


def log_debug(message: str) -> None:
    """Print a dimmed debug line, only in verbose mode"""
    if _verbose:
        get_console().print(f"[dim]{message}[/]")
