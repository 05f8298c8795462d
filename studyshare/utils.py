"""
studyshare/utils.py — shared helpers: logging, download paths, filename sanitisation.
"""
import logging
import os
import re
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

console = Console()


# ─── Logging ──────────────────────────────────────────────────────────────────

def setup_logging(level: int = logging.INFO) -> None:
    """Configure Rich-based logging for the whole application."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


log = logging.getLogger("study_share")


# ─── Filename / path helpers ───────────────────────────────────────────────────

_ILLEGAL_CHARS = re.compile(r'[\\/:*?"<>|]')
_WHITESPACE    = re.compile(r'\s+')


def sanitize(name: str) -> str:
    """
    Strip characters that are illegal in file names and collapse runs of
    whitespace into a single space.
    """
    name = _ILLEGAL_CHARS.sub("_", name)
    name = _WHITESPACE.sub(" ", name).strip()
    return name or "unnamed"


def available_path(directory: Path, filename: str) -> Path:
    """
    Return directory/filename, or the first free "name (n).ext" sibling
    when that file already exists — the same way a browser names repeated
    downloads.

    Example:
        available_path(Path("~/Downloads"), "Calculus Exam.pdf")
        → ~/Downloads/Calculus Exam (1).pdf   (if the plain name is taken)
    """
    candidate = directory / sanitize(filename)
    n = 1
    while candidate.exists():
        candidate = candidate.with_name(f"{Path(sanitize(filename)).stem} ({n}){candidate.suffix}")
        n += 1
    return candidate


def get_download_root() -> Path:
    """
    Read DOWNLOAD_ROOT from the environment.
    Falls back to a local ./downloads directory.
    """
    root = Path(os.getenv("DOWNLOAD_ROOT", "./downloads"))
    root.mkdir(parents=True, exist_ok=True)
    return root
