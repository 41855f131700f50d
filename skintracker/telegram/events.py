from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union


PAGE_RESULTS = "results"
PAGE_ACCOUNTS = "accounts"
PageTarget = Literal["results", "accounts"]

MENU_STATS = "stats"
MENU_RECENT = "recent"
MENU_HELP = "help"
MENU_LAST_LOG = "last"
_MENU_SET = {MENU_STATS, MENU_RECENT, MENU_HELP, MENU_LAST_LOG}


@dataclass(frozen=True)
class TextInput:
    text: str


@dataclass(frozen=True)
class StartAdding:
    pass


@dataclass(frozen=True)
class FinishLog:
    pass


@dataclass(frozen=True)
class SelectItem:
    index: int
    search_id: int


@dataclass(frozen=True)
class SelectWear:
    index: int


@dataclass(frozen=True)
class SelectAccount:
    index: int


@dataclass(frozen=True)
class Paginate:
    target: PageTarget
    page: int


@dataclass(frozen=True)
class ShowMenu:
    name: str


@dataclass(frozen=True)
class Noop:
    pass


ConversationEvent = Union[StartAdding, FinishLog, SelectItem, SelectWear, SelectAccount, Paginate, TextInput]
CallbackEvent = Union[StartAdding, FinishLog, SelectItem, SelectWear, SelectAccount, Paginate, ShowMenu, Noop]


def encode_callback(event: CallbackEvent) -> str:
    """Serialize a button event into Telegram callback data (max 64 bytes)."""
    if isinstance(event, StartAdding):
        return "add"
    if isinstance(event, FinishLog):
        return "finish"
    if isinstance(event, SelectItem):
        return f"item:{int(event.search_id)}:{int(event.index)}"
    if isinstance(event, SelectWear):
        return f"wear:{int(event.index)}"
    if isinstance(event, SelectAccount):
        return f"acct:{int(event.index)}"
    if isinstance(event, Paginate):
        return f"page:{event.target}:{int(event.page)}"
    if isinstance(event, ShowMenu):
        return f"menu:{event.name}"
    if isinstance(event, Noop):
        return "noop"
    raise TypeError(f"unsupported callback event: {event!r}")


def _parse_index(raw: str) -> int | None:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    if value < 0:
        return None
    return value


def decode_callback(data: str) -> CallbackEvent | None:
    """Parse callback data back into an event. Unknown payloads give ``None``."""
    raw = str(data or "").strip()
    if raw == "add":
        return StartAdding()
    if raw == "finish":
        return FinishLog()
    if raw == "noop":
        return Noop()

    head, _, tail = raw.partition(":")
    if head == "menu":
        return ShowMenu(tail) if tail in _MENU_SET else None
    if head == "page":
        target, _, page_raw = tail.partition(":")
        page = _parse_index(page_raw)
        if target not in {PAGE_RESULTS, PAGE_ACCOUNTS} or page is None:
            return None
        return Paginate(target=target, page=page)  # type: ignore[arg-type]

    if head == "item":
        search_raw, _, index_raw = tail.partition(":")
        search_id = _parse_index(search_raw)
        item_index = _parse_index(index_raw)
        if search_id is None or item_index is None:
            return None
        return SelectItem(index=item_index, search_id=search_id)

    index = _parse_index(tail)
    if index is None:
        return None
    if head == "wear":
        return SelectWear(index)
    if head == "acct":
        return SelectAccount(index)
    return None
