"""Derive on-disk filenames for new VDIs from their labels."""

import re
from typing import Iterable

_INVALID = re.compile(r"[^A-Za-z0-9\-_+]")


def sanitize(name_label: str) -> str:
    """Replace characters that are not allowed in filenames with '_'."""
    if name_label == "":
        return "unknown"
    return _INVALID.sub("_", name_label)


def _suffix_number(suffix: str) -> int:
    try:
        return int(suffix)
    except ValueError:
        return 0


def choose_filename(name_label: str, existing: Iterable[str]) -> str:
    """
    Pick a filename for ``name_label`` that is not in ``existing``.

    A label already in use becomes a stem and gets a numeric suffix one
    above the highest ``stem.N`` present, so ``report`` is followed by
    ``report.1``, ``report.2`` and so on.
    """
    existing = set(existing)
    candidate = sanitize(name_label)
    if candidate not in existing:
        return candidate

    stem = candidate + "."
    highest = max(
        (_suffix_number(name[len(stem):]) for name in existing if name.startswith(stem)),
        default=0,
    )
    return f"{stem}{highest + 1}"
