"""
Helpers for the plain-text pronunciation lexicon format.

A lexicon has one entry per line: the word, a single space, then its
pronunciation (which may itself contain spaces).

Example:
    kia k i a
    ora o r a
"""

import logging
from os import PathLike
from pathlib import Path
from typing import Mapping


logger = logging.getLogger(__name__)


def parse_lexicon(text: str) -> dict[str, str]:
    """
    Parse lexicon text into an ordered word -> pronunciation mapping.

    Lines without a space after the word are skipped with a warning; blank
    lines are skipped silently.

    Example:
        >>> parse_lexicon("kia k i a\\nora o r a\\n")
        {'kia': 'k i a', 'ora': 'o r a'}
    """
    lexicon: dict[str, str] = {}
    for number, line in enumerate(text.split("\n")):
        line = line.rstrip("\r")
        if not line:
            continue
        first_space = line.find(" ")
        if first_space <= 0:
            logger.warning("Ignoring lexicon line %d as it contains no space: %s", number, line)
            continue
        lexicon[line[:first_space]] = line[first_space + 1:]
    return lexicon


def format_lexicon(lexicon: Mapping[str, str]) -> str:
    """Render a word -> pronunciation mapping as lexicon text."""
    return "".join(f"{word} {pronunciation}\n" for word, pronunciation in lexicon.items())


def read_lexicon_file(path: str | PathLike) -> str:
    """
    Read a lexicon file as UTF-8 text.

    Line endings are normalized to '\\n' and non-empty content always ends
    with exactly one newline.
    """
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    content = "\n".join(lines)
    if lines and lines[-1]:
        content += "\n"
    return content
