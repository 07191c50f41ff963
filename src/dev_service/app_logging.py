import logging

from rich.console import Console
from rich.logging import RichHandler


def verbosity_level(verbose: int, default: str = "WARNING") -> str:
    match verbose:
        case 0:
            return default
        case 1:
            return "INFO"
        case _:
            return "DEBUG"


def setup_logging(level: str = "WARNING") -> None:
    """Route every ``logging.getLogger(__name__)`` logger to stderr through rich."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())
