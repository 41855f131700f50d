from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Callable, Sequence

from skintracker.core.data.catalog import WEAR_OPTIONS, PendingSkin, split_label
from skintracker.core.data.name_cache import NameCache
from skintracker.core.errors import (
    EmptyLogError,
    EmptyPage,
    UpstreamFetchError,
    UpstreamWriteError,
    ValidationError,
)
from skintracker.core.search import fuzzy
from skintracker.core.search.paginator import DEFAULT_PAGE_SIZE, Page, paginate
from skintracker.core.trade_log import TradeLog, format_recent, format_statistics
from skintracker.infra import text_library as _text_library
from skintracker.telegram.events import (
    PAGE_ACCOUNTS,
    PAGE_RESULTS,
    CallbackEvent,
    ConversationEvent,
    FinishLog,
    Noop,
    Paginate,
    SelectAccount,
    SelectItem,
    SelectWear,
    StartAdding,
    TextInput,
)


LOG = logging.getLogger(__name__)

STEP_ADD_SKIN = "addSkin"
STEP_SEARCH_SKIN = "searchSkin"
STEP_SELECT_WEAR = "selectWear"
STEP_ENTER_PRICE = "enterPrice"
STEP_SELECT_ACCOUNT = "selectAccount"

DEFAULT_IDLE_SECONDS = 3600.0
# Prices must stay below 10**13 to fit in a sheet cell.
MAX_PRICE_EXPONENT = 12


def _text(key: str, **vars: object) -> str:
    return _text_library.pick(key, **vars)


@dataclass(frozen=True)
class MenuButton:
    label: str
    event: CallbackEvent


@dataclass
class TurnOutput:
    text: str
    menu: list[list[MenuButton]] | None = None


@dataclass
class SearchState:
    query: str = ""
    results: list[str] = field(default_factory=list)
    page: int = 0
    search_id: int = 0


@dataclass
class SkinLogSession:
    user_id: int
    last_activity: float = 0.0
    step: str = STEP_ADD_SKIN
    pending_skins: list[PendingSkin] = field(default_factory=list)
    current_skin: str | None = None
    price: Decimal | None = None
    search: SearchState = field(default_factory=SearchState)
    account_page: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def clear(self) -> None:
        self.step = STEP_ADD_SKIN
        self.pending_skins = []
        self.current_skin = None
        self.price = None
        self.search = SearchState()
        self.account_page = 0


class SessionStore:
    """Per-user conversation state with idle expiry.

    Expired sessions are swept on every ``get_or_create`` call, so cleanup
    follows traffic and needs no timer. A session whose lock is held is
    never swept.
    """

    def __init__(
        self,
        *,
        idle_seconds: float = DEFAULT_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.idle_seconds = max(0.0, float(idle_seconds))
        self._clock = clock
        self._sessions: dict[int, SkinLogSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, user_id: int) -> SkinLogSession | None:
        return self._sessions.get(int(user_id))

    def get_or_create(self, user_id: int) -> SkinLogSession:
        now = self._clock()
        self._sweep(now)
        session = self._sessions.get(int(user_id))
        if session is None:
            session = SkinLogSession(user_id=int(user_id), last_activity=now)
            self._sessions[int(user_id)] = session
            return session
        session.last_activity = now
        return session

    def reset(self, user_id: int) -> SkinLogSession:
        session = self._sessions.get(int(user_id))
        if session is None:
            return self.get_or_create(user_id)
        session.clear()
        session.last_activity = self._clock()
        return session

    def sweep(self) -> int:
        return self._sweep(self._clock())

    def active_sessions(self) -> list[SkinLogSession]:
        return list(self._sessions.values())

    def _sweep(self, now: float) -> int:
        expired = [
            uid
            for uid, session in self._sessions.items()
            if (now - session.last_activity) > self.idle_seconds and not session.lock.locked()
        ]
        for uid in expired:
            del self._sessions[uid]
        if expired:
            LOG.debug("swept %s idle session(s)", len(expired))
        return len(expired)


def parse_price(text: str) -> Decimal:
    raw = str(text or "").strip().lstrip("$").strip()
    try:
        price = Decimal(raw)
    except (InvalidOperation, ValueError):
        raise ValidationError(_text("error.price.not_a_number")) from None
    if not price.is_finite():
        raise ValidationError(_text("error.price.not_a_number"))
    if price <= 0:
        raise ValidationError(_text("error.price.not_positive"))
    if price.adjusted() > MAX_PRICE_EXPONENT:
        raise ValidationError(_text("error.price.too_large"))
    return price


def _nav_row(page: Page, target: str) -> list[MenuButton]:
    row: list[MenuButton] = []
    if page.total_pages <= 1:
        return row
    if page.has_prev:
        row.append(MenuButton(_text("ui.button.prev"), Paginate(target=target, page=page.page_index - 1)))  # type: ignore[arg-type]
    row.append(MenuButton(_text("ui.button.page_indicator", page=page.page_index + 1, total=page.total_pages), Noop()))
    if page.has_next:
        row.append(MenuButton(_text("ui.button.next"), Paginate(target=target, page=page.page_index + 1)))  # type: ignore[arg-type]
    return row


def add_skin_menu() -> list[list[MenuButton]]:
    return [[MenuButton(_text("ui.button.add_skin"), StartAdding())]]


class ConversationMachine:
    """Drives the trade logging conversation for each user.

    Steps: addSkin -> searchSkin -> (selectWear) -> addSkin ... -> enterPrice
    -> selectAccount -> commit, then back to addSkin. Each event produces
    exactly one ``TurnOutput``.
    """

    def __init__(
        self,
        *,
        sessions: SessionStore,
        name_cache: NameCache,
        trade_log: TradeLog,
        accounts: Sequence[str],
        page_size: int = DEFAULT_PAGE_SIZE,
        reset_on_write_failure: bool = True,
    ) -> None:
        self.sessions = sessions
        self.name_cache = name_cache
        self.trade_log = trade_log
        self.accounts = tuple(accounts)
        self.page_size = max(1, int(page_size))
        self.reset_on_write_failure = bool(reset_on_write_failure)
        # Result buttons carry the id of the search that produced them.
        self._search_ids = itertools.count(1)

    async def handle(self, user_id: int, event: ConversationEvent) -> TurnOutput:
        session = self.sessions.get_or_create(user_id)
        async with session.lock:
            try:
                return await self._dispatch(session, event)
            except ValidationError as exc:
                return TurnOutput(text=str(exc))
            except EmptyLogError:
                return TurnOutput(text=_text("error.finish.no_skins"), menu=add_skin_menu())

    async def _dispatch(self, session: SkinLogSession, event: ConversationEvent) -> TurnOutput:
        step = session.step

        if isinstance(event, StartAdding):
            return self._start_search(session)
        if isinstance(event, FinishLog) and step in {STEP_ADD_SKIN, STEP_SEARCH_SKIN}:
            return self._finish(session)
        if isinstance(event, TextInput):
            if step == STEP_SEARCH_SKIN:
                return await self._search(session, event.text)
            if step == STEP_ENTER_PRICE:
                return self._enter_price(session, event.text)
        if isinstance(event, Paginate):
            if event.target == PAGE_RESULTS and step == STEP_SEARCH_SKIN:
                return self._paginate_results(session, event.page)
            if event.target == PAGE_ACCOUNTS and step == STEP_SELECT_ACCOUNT:
                return self._paginate_accounts(session, event.page)
        if isinstance(event, SelectItem) and step == STEP_SEARCH_SKIN:
            return self._select_item(session, event.index, event.search_id)
        if isinstance(event, SelectWear) and step == STEP_SELECT_WEAR:
            return self._select_wear(session, event.index)
        if isinstance(event, SelectAccount) and step == STEP_SELECT_ACCOUNT:
            return await self._select_account(session, event.index)

        return TurnOutput(text=_text("ui.hint.use_menu"))

    # ---------- search ----------
    def _start_search(self, session: SkinLogSession) -> TurnOutput:
        session.step = STEP_SEARCH_SKIN
        session.search = SearchState()
        session.current_skin = None
        session.price = None
        return TurnOutput(text=_text("ui.search.prompt"))

    async def _search(self, session: SkinLogSession, query: str) -> TurnOutput:
        clean = str(query or "").strip()
        if not clean:
            return TurnOutput(text=_text("ui.search.prompt"))
        try:
            corpus = await asyncio.to_thread(self.name_cache.get)
        except UpstreamFetchError:
            LOG.exception("skin list unavailable for user %s", session.user_id)
            return TurnOutput(text=_text("error.search.fetch_failed"))

        results = fuzzy.search(corpus, clean)
        session.search = SearchState(query=clean, results=results, page=0, search_id=next(self._search_ids))
        if not results:
            return TurnOutput(text=_text("ui.search.no_results"))
        return self._results_output(session, 0)

    def _results_output(self, session: SkinLogSession, page_index: int) -> TurnOutput:
        page = paginate(session.search.results, page_index, self.page_size)
        session.search.page = page.page_index
        menu = [
            [MenuButton(label, SelectItem(index=page.offset + idx, search_id=session.search.search_id))]
            for idx, label in enumerate(page.items)
        ]
        nav = _nav_row(page, PAGE_RESULTS)
        if nav:
            menu.append(nav)
        text = _text("ui.search.results", page=page.page_index + 1, total=page.total_pages)
        return TurnOutput(text=text, menu=menu)

    def _paginate_results(self, session: SkinLogSession, page_index: int) -> TurnOutput:
        if not session.search.results:
            return TurnOutput(text=_text("ui.search.no_stored_results"))
        try:
            return self._results_output(session, page_index)
        except EmptyPage:
            return TurnOutput(text=_text("ui.search.no_more_results"))

    def _select_item(self, session: SkinLogSession, index: int, search_id: int) -> TurnOutput:
        if search_id != session.search.search_id:
            raise ValidationError(_text("error.selection.stale_results"))
        results = session.search.results
        if index < 0 or index >= len(results):
            raise ValidationError(_text("error.selection.invalid_skin"))

        name, wear = split_label(results[index])
        if wear is None:
            session.current_skin = name
            session.step = STEP_SELECT_WEAR
            menu = [[MenuButton(option, SelectWear(idx))] for idx, option in enumerate(WEAR_OPTIONS)]
            return TurnOutput(text=_text("ui.wear.prompt", name=name), menu=menu)
        return self._add_pending(session, PendingSkin(name=name, wear=wear))

    def _select_wear(self, session: SkinLogSession, index: int) -> TurnOutput:
        if session.current_skin is None:
            return TurnOutput(text=_text("ui.hint.use_menu"))
        if index < 0 or index >= len(WEAR_OPTIONS):
            raise ValidationError(_text("error.selection.invalid_wear"))
        skin = PendingSkin(name=session.current_skin, wear=WEAR_OPTIONS[index])
        session.current_skin = None
        return self._add_pending(session, skin)

    def _add_pending(self, session: SkinLogSession, skin: PendingSkin) -> TurnOutput:
        session.pending_skins.append(skin)
        session.step = STEP_ADD_SKIN
        menu = [
            [MenuButton(_text("ui.button.add_another"), StartAdding())],
            [MenuButton(_text("ui.button.finish"), FinishLog())],
        ]
        return TurnOutput(text=_text("ui.skin.added", name=skin.name, wear=skin.wear), menu=menu)

    # ---------- price / account ----------
    def _finish(self, session: SkinLogSession) -> TurnOutput:
        if not session.pending_skins:
            raise EmptyLogError("no skins added")
        session.step = STEP_ENTER_PRICE
        return TurnOutput(text=_text("ui.price.prompt"))

    def _enter_price(self, session: SkinLogSession, text: str) -> TurnOutput:
        session.price = parse_price(text)
        session.step = STEP_SELECT_ACCOUNT
        return self._accounts_output(session, 0)

    def _accounts_output(self, session: SkinLogSession, page_index: int, *, text: str | None = None) -> TurnOutput:
        page = paginate(self.accounts, page_index, self.page_size)
        session.account_page = page.page_index
        menu = [[MenuButton(account, SelectAccount(page.offset + idx))] for idx, account in enumerate(page.items)]
        nav = _nav_row(page, PAGE_ACCOUNTS)
        if nav:
            menu.append(nav)
        return TurnOutput(text=text or _text("ui.account.prompt"), menu=menu)

    def _paginate_accounts(self, session: SkinLogSession, page_index: int) -> TurnOutput:
        try:
            return self._accounts_output(session, page_index)
        except EmptyPage:
            return TurnOutput(text=_text("ui.search.no_more_results"))

    async def _select_account(self, session: SkinLogSession, index: int) -> TurnOutput:
        if index < 0 or index >= len(self.accounts):
            raise ValidationError(_text("error.selection.invalid_account"))
        if not session.pending_skins or session.price is None or session.price <= 0:
            return TurnOutput(text=_text("ui.hint.use_menu"))

        account = self.accounts[index]
        items = list(session.pending_skins)
        try:
            await asyncio.to_thread(self.trade_log.append, items, session.price, account)
        except UpstreamWriteError:
            LOG.exception("trade log write failed for user %s", session.user_id)
            if self.reset_on_write_failure:
                self.sessions.reset(session.user_id)
                return TurnOutput(text=_text("error.commit.failed"), menu=add_skin_menu())
            return self._accounts_output(session, session.account_page, text=_text("error.commit.failed_retry"))

        self.sessions.reset(session.user_id)
        return TurnOutput(text=_text("ui.commit.saved"), menu=add_skin_menu())


class HistoryViews:
    """Read-side summaries of the trade log, rendered as chat text."""

    def __init__(self, trade_log: TradeLog, *, recent_count: int = 5) -> None:
        self.trade_log = trade_log
        self.recent_count = max(1, int(recent_count))

    async def last_log(self) -> str:
        try:
            return await asyncio.to_thread(self.trade_log.last_log)
        except UpstreamFetchError:
            LOG.exception("last log unavailable")
            return _text("error.history.last_log")

    async def statistics(self) -> str:
        try:
            stats = await asyncio.to_thread(self.trade_log.statistics)
        except UpstreamFetchError:
            LOG.exception("statistics unavailable")
            return _text("error.history.stats")
        return format_statistics(stats)

    async def recent(self) -> list[str]:
        try:
            trades = await asyncio.to_thread(self.trade_log.recent, self.recent_count)
        except UpstreamFetchError:
            LOG.exception("recent trades unavailable")
            return [_text("error.history.recent")]
        if not trades:
            return [_text("log.recent.none")]
        return [_text("log.recent.header")] + [format_recent(trade, idx) for idx, trade in enumerate(trades, start=1)]
