from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from skintracker.core.data.name_cache import NameCache, names_fetcher
from skintracker.core.data.row_store import GoogleSheetsRowStore, RowStore, build_credentials
from skintracker.core.trade_log import TradeLog
from skintracker.infra.config import Settings
from skintracker.telegram.runtime import ConversationMachine, HistoryViews, SessionStore


@dataclass(frozen=True)
class TrackerServices:
    settings: Settings
    row_store: RowStore
    name_cache: NameCache
    trade_log: TradeLog
    sessions: SessionStore
    machine: ConversationMachine
    history: HistoryViews


def build_services(
    settings: Settings,
    *,
    row_store: RowStore | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> TrackerServices:
    store = row_store
    if store is None:
        credentials = build_credentials(info=settings.credentials_info, filename=settings.credentials_file)
        store = GoogleSheetsRowStore(credentials)

    name_cache = NameCache(
        names_fetcher(store, settings.names_sheet_id),
        ttl_seconds=settings.cache_ttl_seconds,
        clock=clock,
    )
    trade_log = TradeLog(store, settings.log_sheet_id)
    sessions = SessionStore(idle_seconds=settings.session_idle_seconds, clock=clock)
    machine = ConversationMachine(
        sessions=sessions,
        name_cache=name_cache,
        trade_log=trade_log,
        accounts=settings.accounts,
        page_size=settings.page_size,
        reset_on_write_failure=settings.reset_on_write_failure,
    )
    return TrackerServices(
        settings=settings,
        row_store=store,
        name_cache=name_cache,
        trade_log=trade_log,
        sessions=sessions,
        machine=machine,
        history=HistoryViews(trade_log, recent_count=settings.recent_count),
    )
