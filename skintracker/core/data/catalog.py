from __future__ import annotations

import re
from dataclasses import dataclass


WEAR_OPTIONS: tuple[str, ...] = (
    "Factory New",
    "Minimal Wear",
    "Field-Tested",
    "Well-Worn",
    "Battle-Scarred",
)

DEFAULT_ACCOUNTS: tuple[str, ...] = (
    "Panda main",
    "Panda_cs1",
    "Titalium",
    "Maleek",
)


@dataclass(frozen=True)
class PendingSkin:
    name: str
    wear: str


def _clean_cell(value: object) -> str:
    return re.sub(r"\s+", " ", str(value or "").strip())


def canonical_wear(value: object) -> str | None:
    raw = _clean_cell(value).casefold()
    if not raw:
        return None
    for wear in WEAR_OPTIONS:
        if wear.casefold() == raw:
            return wear
    return None


def row_to_label(row: list[str]) -> str:
    """Build the searchable label for one names-sheet row.

    Column A is the skin name. Column B, when it holds a known wear, is
    appended so the label reads ``"<name> <wear>"``. Anything else in
    column B is ignored.
    """
    if not row:
        return ""
    name = _clean_cell(row[0])
    if not name:
        return ""
    wear = canonical_wear(row[1]) if len(row) > 1 else None
    if wear and split_label(name)[1] is None:
        return f"{name} {wear}"
    return name


def split_label(label: str) -> tuple[str, str | None]:
    """Split a catalog label into ``(name, wear)``.

    The wear is only recognised when the label ends with one of the known
    wear values, so multi-word wears like "Factory New" stay intact.
    """
    clean = _clean_cell(label)
    folded = clean.casefold()
    for wear in WEAR_OPTIONS:
        suffix = wear.casefold()
        if folded == suffix:
            continue
        if folded.endswith(" " + suffix):
            name = clean[: -len(wear)].rstrip()
            if name:
                return name, wear
    return clean, None
