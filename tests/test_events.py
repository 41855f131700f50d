import pytest

from skintracker.telegram.events import (
    FinishLog,
    Noop,
    Paginate,
    SelectAccount,
    SelectItem,
    SelectWear,
    ShowMenu,
    StartAdding,
    TextInput,
    decode_callback,
    encode_callback,
)


@pytest.mark.parametrize(
    ("event", "data"),
    [
        (StartAdding(), "add"),
        (FinishLog(), "finish"),
        (SelectItem(7, 3), "item:3:7"),
        (SelectWear(2), "wear:2"),
        (SelectAccount(0), "acct:0"),
        (Paginate("results", 3), "page:results:3"),
        (Paginate("accounts", 1), "page:accounts:1"),
        (ShowMenu("stats"), "menu:stats"),
        (Noop(), "noop"),
    ],
)
def test_callback_data_format(event, data: str) -> None:
    assert encode_callback(event) == data
    assert decode_callback(data) == event


def test_callback_data_fits_telegram_limit() -> None:
    assert len(encode_callback(Paginate("accounts", 10**12)).encode("utf-8")) <= 64
    assert len(encode_callback(SelectItem(10**9, 10**15)).encode("utf-8")) <= 64


@pytest.mark.parametrize(
    "data",
    ["", "bogus", "item:", "item:7", "item:abc", "item:1:-1", "item:-1:2", "item:1:2:3", "acct:x", "page:other:1", "page:results:-2", "menu:admin", "sell:1"],
)
def test_unknown_callback_data_is_rejected(data: str) -> None:
    assert decode_callback(data) is None


def test_text_input_cannot_be_a_button() -> None:
    with pytest.raises(TypeError):
        encode_callback(TextInput("hello"))  # type: ignore[arg-type]
