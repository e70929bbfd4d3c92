"""Normalise asset file names so the host keeps them unchanged on upload."""

from __future__ import annotations

import logging
import re
import unicodedata
from pathlib import Path
from typing import Iterable, List

from .errors import ConfigurationError, NotFoundError

logger = logging.getLogger(__name__)

_EXTENSION = re.compile(r"\.([A-Za-z0-9]+)$")

# Latin letters that NFKD does not decompose into an ASCII base letter.
_LATIN_ASCII = str.maketrans(
    {
        "ß": "ss",
        "ẞ": "SS",
        "Æ": "AE",
        "æ": "ae",
        "Œ": "OE",
        "œ": "oe",
        "Ø": "O",
        "ø": "o",
        "Đ": "D",
        "đ": "d",
        "Ð": "D",
        "ð": "d",
        "Ł": "L",
        "ł": "l",
        "Þ": "TH",
        "þ": "th",
    }
)


def normalized_name(name: str, *, to_lower: bool = False, sep: str = "_") -> str:
    """Return ``name`` with its stem reduced to ASCII letters, digits and ``sep``."""

    if not sep:
        raise ConfigurationError("Separator must be a non-empty string")
    match = _EXTENSION.search(name)
    stem, ext = (name[: match.start()], match.group(1)) if match else (name, "")
    if to_lower:
        stem = stem.lower()

    stem = unicodedata.normalize("NFKD", stem.translate(_LATIN_ASCII))
    stem = stem.encode("ascii", "ignore").decode("ascii")
    stem = re.sub(r"[^A-Za-z0-9]+", sep, stem)
    escaped = re.escape(sep)
    stem = re.sub(f"(?:{escaped})+", sep, stem)
    stem = re.sub(f"^(?:{escaped})|(?:{escaped})$", "", stem)

    return f"{stem}.{ext}" if ext else stem


def normalize_file_names(
    files: Iterable[str | Path],
    *,
    dry_run: bool = False,
    to_lower: bool = False,
    sep: str = "_",
) -> List[Path]:
    """Rename ``files`` to their normalised names and return the new paths.

    With ``dry_run`` nothing is renamed; the would-be paths are returned.
    """

    new_paths: List[Path] = []
    for entry in files:
        path = Path(entry).absolute()
        if not path.exists():
            raise NotFoundError(f"File not found: {entry}")

        new_path = path.with_name(normalized_name(path.name, to_lower=to_lower, sep=sep))
        new_paths.append(new_path)

        if new_path == path:
            logger.debug("Already normalized: %s", path.name)
            continue
        if new_path.exists():
            raise ConfigurationError(f"Cannot rename {path.name} to {new_path.name}: target exists")
        if dry_run:
            logger.info("Would rename %s -> %s", path.name, new_path.name)
            continue
        path.rename(new_path)
        logger.info("Renamed %s -> %s", path.name, new_path.name)
    return new_paths


__all__ = ["normalize_file_names", "normalized_name"]
