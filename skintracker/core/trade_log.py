from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Callable, Sequence

from pydantic import BaseModel, Field

from skintracker.core.data.catalog import PendingSkin
from skintracker.core.data.row_store import RowStore
from skintracker.core.errors import EmptyLogError
from skintracker.infra import text_library as _text_library


LOG = logging.getLogger(__name__)

READ_RANGE = "Sheet1!A2:F"
APPEND_RANGE = "Sheet1!A:F"

COL_DATE = 0
COL_SKIN = 1
COL_WEAR = 2
COL_PRICE = 3
COL_RESERVED = 4
COL_ACCOUNT = 5


def _text(key: str, **vars: object) -> str:
    return _text_library.pick(key, **vars)


class TradeStatistics(BaseModel):
    total_trades: int = 0
    total_spent: str = "0.00"
    most_traded_skin: str = "N/A"
    most_used_account: str = "N/A"


class RecentTrade(BaseModel):
    date: str = Field("", description="ISO day the trade was logged.")
    skin_name: str = ""
    wear: str = ""
    price: str = ""
    account: str = ""


def _cell(row: Sequence[str], index: int) -> str:
    if index >= len(row):
        return ""
    return str(row[index] or "").strip()


def _as_amount(value: str) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount


def _most_frequent(values: list[str]) -> str:
    counts = Counter(value for value in values if value)
    if not counts:
        return "N/A"
    return counts.most_common(1)[0][0]


def _sheet_number(price: Decimal) -> int | float:
    if price == price.to_integral_value():
        return int(price)
    return float(price)


class TradeLog:
    """Append-only trade log stored as 6-column rows in the log sheet."""

    def __init__(
        self,
        store: RowStore,
        sheet_id: str,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.sheet_id = sheet_id
        self._today = today

    def _rows(self) -> list[list[str]]:
        return self.store.get_range(self.sheet_id, READ_RANGE)

    def build_rows(self, items: Sequence[PendingSkin], price: Decimal, account: str) -> list[list[object]]:
        day = self._today().isoformat()
        amount = _sheet_number(price)
        return [[day, item.name, item.wear, amount, "", account] for item in items]

    def append(self, items: Sequence[PendingSkin], price: Decimal, account: str) -> int:
        """Write one row per item, all sharing today's date, the price and the account.

        The row store gives no all-or-nothing guarantee: a failed call can
        leave some rows written.
        """
        rows = self.build_rows(items, price, account)
        if not rows:
            raise EmptyLogError("no skins to log")
        self.store.append_rows(self.sheet_id, APPEND_RANGE, rows)
        LOG.info("trade logged: %s skin(s), price=%s, account=%s", len(rows), price, account)
        return len(rows)

    def last_log(self) -> str:
        rows = [row for row in self._rows() if _cell(row, COL_DATE)]
        if not rows:
            return _text("log.none")

        last_day = max(_cell(row, COL_DATE) for row in rows)
        group = [row for row in rows if _cell(row, COL_DATE) == last_day]
        lines = [_text("log.last.header", date=last_day)]
        for idx, row in enumerate(group, start=1):
            lines.append(
                _text(
                    "log.last.skin_line",
                    index=idx,
                    name=_cell(row, COL_SKIN) or "N/A",
                    wear=_cell(row, COL_WEAR) or "N/A",
                )
            )
        lines.append(_text("log.last.price", price=_cell(group[0], COL_PRICE) or "N/A"))
        lines.append(_text("log.last.account", account=_cell(group[0], COL_ACCOUNT) or "N/A"))
        return "\n".join(lines)

    def statistics(self) -> TradeStatistics:
        rows = self._rows()
        if not rows:
            return TradeStatistics()

        total = sum(_as_amount(_cell(row, COL_PRICE)) for row in rows)
        return TradeStatistics(
            total_trades=len(rows),
            total_spent=f"{total:.2f}",
            most_traded_skin=_most_frequent([_cell(row, COL_SKIN) for row in rows]),
            most_used_account=_most_frequent([_cell(row, COL_ACCOUNT) for row in rows]),
        )

    def recent(self, count: int = 5) -> list[RecentTrade]:
        if count <= 0:
            return []
        rows = self._rows()
        return [
            RecentTrade(
                date=_cell(row, COL_DATE),
                skin_name=_cell(row, COL_SKIN),
                wear=_cell(row, COL_WEAR),
                price=_cell(row, COL_PRICE),
                account=_cell(row, COL_ACCOUNT),
            )
            for row in reversed(rows[-count:])
        ]


def format_statistics(stats: TradeStatistics) -> str:
    return _text(
        "log.stats",
        total_trades=stats.total_trades,
        total_spent=stats.total_spent,
        most_traded_skin=stats.most_traded_skin,
        most_used_account=stats.most_used_account,
    )


def format_recent(trade: RecentTrade, position: int) -> str:
    return _text(
        "log.recent.entry",
        position=position,
        date=trade.date or "N/A",
        name=trade.skin_name or "N/A",
        wear=trade.wear or "N/A",
        price=trade.price or "N/A",
        account=trade.account or "N/A",
    )
