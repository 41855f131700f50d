from datetime import date
from decimal import Decimal

import pytest

from skintracker.core.data.catalog import PendingSkin
from skintracker.core.errors import EmptyLogError, UpstreamFetchError, UpstreamWriteError
from skintracker.core.trade_log import APPEND_RANGE, READ_RANGE, TradeLog, format_recent, format_statistics


class _FakeRowStore:
    def __init__(self, rows: list[list[object]] | None = None) -> None:
        self.rows: list[list[object]] = [list(row) for row in rows or []]
        self.appends: list[tuple[str, str, list[list[object]]]] = []
        self.fail_reads = False
        self.fail_writes = False

    def get_range(self, sheet_id: str, range_spec: str) -> list[list[str]]:
        assert range_spec == READ_RANGE
        if self.fail_reads:
            raise UpstreamFetchError("read failed")
        return [[str(cell) for cell in row] for row in self.rows]

    def append_rows(self, sheet_id: str, range_spec: str, rows: list[list[object]]) -> None:
        if self.fail_writes:
            raise UpstreamWriteError("append failed")
        self.appends.append((sheet_id, range_spec, rows))
        self.rows.extend(list(row) for row in rows)


def _log(store: _FakeRowStore, day: date = date(2025, 3, 1)) -> TradeLog:
    return TradeLog(store, "log-sheet", today=lambda: day)


def test_append_writes_one_row_per_skin() -> None:
    store = _FakeRowStore()
    skins = [PendingSkin("AK-47 | Redline", "Field-Tested"), PendingSkin("AWP | Asiimov", "Battle-Scarred")]

    written = _log(store).append(skins, Decimal("42.50"), "Titalium")

    assert written == 2
    assert store.appends == [
        (
            "log-sheet",
            APPEND_RANGE,
            [
                ["2025-03-01", "AK-47 | Redline", "Field-Tested", 42.5, "", "Titalium"],
                ["2025-03-01", "AWP | Asiimov", "Battle-Scarred", 42.5, "", "Titalium"],
            ],
        )
    ]


def test_append_keeps_whole_prices_as_integers() -> None:
    store = _FakeRowStore()
    _log(store).append([PendingSkin("AWP | Asiimov", "Field-Tested")], Decimal("30"), "Maleek")
    assert store.appends[0][2][0][3] == 30


def test_append_failure_is_reported() -> None:
    store = _FakeRowStore()
    store.fail_writes = True
    with pytest.raises(UpstreamWriteError):
        _log(store).append([PendingSkin("AWP | Asiimov", "Field-Tested")], Decimal("30"), "Maleek")


def test_append_requires_items() -> None:
    with pytest.raises(EmptyLogError):
        _log(_FakeRowStore()).append([], Decimal("10"), "Maleek")


def test_append_then_recent_returns_newest_first() -> None:
    store = _FakeRowStore([["2025-01-01", "Old | Skin", "Well-Worn", "5", "", "Maleek"]])
    trade_log = _log(store)
    skins = [
        PendingSkin("Glock-18 | Fade", "Factory New"),
        PendingSkin("M4A1-S | Fade", "Minimal Wear"),
        PendingSkin("Karambit | Fade", "Field-Tested"),
    ]
    trade_log.append(skins, Decimal("12.5"), "Panda main")

    recent = trade_log.recent(3)

    assert [trade.skin_name for trade in recent] == ["Karambit | Fade", "M4A1-S | Fade", "Glock-18 | Fade"]
    assert [trade.wear for trade in recent] == ["Field-Tested", "Minimal Wear", "Factory New"]
    assert all(trade.date == "2025-03-01" for trade in recent)
    assert all(trade.price == "12.5" for trade in recent)
    assert all(trade.account == "Panda main" for trade in recent)


def test_recent_handles_short_and_empty_logs() -> None:
    store = _FakeRowStore([["2025-01-01", "AWP | Asiimov", "Field-Tested", "30", "", "Maleek"]])
    assert len(_log(store).recent(5)) == 1
    assert _log(store).recent(0) == []
    assert _log(_FakeRowStore()).recent() == []


def test_last_log_without_rows() -> None:
    assert _log(_FakeRowStore()).last_log() == "No previous logs found."


def test_last_log_groups_rows_of_latest_date() -> None:
    store = _FakeRowStore(
        [
            ["2025-01-05", "AWP | Asiimov", "Field-Tested", "30", "", "Maleek"],
            ["2025-02-10", "AK-47 | Redline", "Minimal Wear", "55", "", "Titalium"],
            ["2025-02-10", "M4A4 | Howl", "Factory New", "55", "", "Titalium"],
            ["2025-01-20", "Glock-18 | Fade", "Factory New", "12", "", "Panda_cs1"],
        ]
    )

    text = _log(store).last_log()

    assert text.splitlines() == [
        "Last Log (Date: 2025-02-10):",
        "Skin 1: AK-47 | Redline (Minimal Wear)",
        "Skin 2: M4A4 | Howl (Factory New)",
        "Price Paid: 55",
        "Account: Titalium",
    ]


def test_last_log_fills_missing_cells() -> None:
    store = _FakeRowStore([["2025-02-10", "AK-47 | Redline"]])
    text = _log(store).last_log()
    assert "Skin 1: AK-47 | Redline (N/A)" in text
    assert "Price Paid: N/A" in text
    assert "Account: N/A" in text


def test_statistics_on_empty_log() -> None:
    stats = _log(_FakeRowStore()).statistics()
    assert stats.total_trades == 0
    assert stats.total_spent == "0.00"
    assert stats.most_traded_skin == "N/A"
    assert stats.most_used_account == "N/A"


def test_statistics_aggregates_rows() -> None:
    store = _FakeRowStore(
        [
            ["2025-01-05", "AWP | Asiimov", "Field-Tested", "30.25", "", "Maleek"],
            ["2025-01-06", "AK-47 | Redline", "Minimal Wear", "abc", "", "Titalium"],
            ["2025-01-07", "AK-47 | Redline", "Field-Tested", "10", "", "Titalium"],
            ["2025-01-08", "AWP | Asiimov", "Factory New"],
            ["2025-01-09", "M4A4 | Howl", "Factory New", "nan", "", "Maleek"],
        ]
    )

    stats = _log(store).statistics()

    assert stats.total_trades == 5
    assert stats.total_spent == "40.25"
    assert stats.most_traded_skin == "AWP | Asiimov"
    assert stats.most_used_account == "Maleek"
    assert "Total Spent: $40.25" in format_statistics(stats)


def test_reads_propagate_upstream_errors() -> None:
    store = _FakeRowStore()
    store.fail_reads = True
    with pytest.raises(UpstreamFetchError):
        _log(store).statistics()


def test_format_recent_entry() -> None:
    store = _FakeRowStore([["2025-01-05", "AWP | Asiimov", "Field-Tested", "30", "", "Maleek"]])
    trade = _log(store).recent(1)[0]
    assert format_recent(trade, 1).splitlines() == [
        "Trade 1:",
        "Date: 2025-01-05",
        "Skin: AWP | Asiimov (Field-Tested)",
        "Price: 30",
        "Account: Maleek",
    ]
