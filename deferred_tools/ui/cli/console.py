"""
Console utilities for CLI.
"""

import logging
import os
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


def _build_theme(theme_name: str) -> Theme:
    if theme_name == "light":
        return Theme(
            {
                "answer": "black",
                "accent": "dark_green",
                "warning": "dark_orange",
                "error": "red",
                "success": "green",
                "muted": "grey42",
                "tool": "bold blue",
                "corrected": "magenta",
            }
        )
    # dark
    return Theme(
        {
            "answer": "white",
            "accent": "cyan",
            "warning": "yellow",
            "error": "bold red",
            "success": "green",
            "muted": "grey70",
            "tool": "bold cyan",
            "corrected": "bright_magenta",
        }
    )


def _should_enable_color(enable: Optional[bool]) -> bool:
    """
    Respect NO_COLOR; when enable is None auto-detect via isatty.
    """
    if os.getenv("NO_COLOR") is not None:
        return False
    if enable is None:
        return bool(getattr(sys.stdout, "isatty", lambda: False)())
    return bool(enable)


def make_console(theme_name: str = "dark", use_color: Optional[bool] = None) -> Console:
    """Create a Rich console with the selected theme and color policy."""
    color = _should_enable_color(use_color)
    return Console(
        theme=_build_theme(theme_name),
        no_color=not color,
        color_system=("standard" if color else None),
        highlight=False,
        markup=False,
    )


def configure_logging(console: Console, level: Optional[str] = None) -> None:
    """Route log records through the console; level from DEFERRED_TOOLS_LOG_LEVEL."""
    level_name = (level or os.getenv("DEFERRED_TOOLS_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
