import json

import pytest

from skintracker.core.data.catalog import DEFAULT_ACCOUNTS
from skintracker.core.errors import ConfigError
from skintracker.infra.config import load_settings


def _base_env(**extra: str) -> dict[str, str]:
    env = {
        "TELEGRAM_BOT_TOKEN": "123:abc",
        "LOG_SPREADSHEET_ID": "log-sheet",
        "SKIN_SPREADSHEET_ID": "names-sheet",
        "GOOGLE_CREDENTIALS": json.dumps({"type": "service_account", "client_email": "bot@example.iam"}),
    }
    env.update(extra)
    return env


def test_defaults() -> None:
    settings = load_settings(_base_env())

    assert settings.telegram_token == "123:abc"
    assert settings.log_sheet_id == "log-sheet"
    assert settings.names_sheet_id == "names-sheet"
    assert settings.credentials_info == {"type": "service_account", "client_email": "bot@example.iam"}
    assert settings.credentials_file is None
    assert settings.accounts == DEFAULT_ACCOUNTS
    assert settings.page_size == 5
    assert settings.cache_ttl_seconds == 3600
    assert settings.reset_on_write_failure is True
    assert settings.log_level == "INFO"


def test_missing_required_settings_are_listed() -> None:
    env = _base_env()
    del env["TELEGRAM_BOT_TOKEN"]
    env["SKIN_SPREADSHEET_ID"] = "  "

    with pytest.raises(ConfigError) as exc_info:
        load_settings(env)

    message = str(exc_info.value)
    assert "TELEGRAM_BOT_TOKEN" in message
    assert "SKIN_SPREADSHEET_ID" in message
    assert "LOG_SPREADSHEET_ID" not in message


def test_invalid_inline_credentials() -> None:
    with pytest.raises(ConfigError):
        load_settings(_base_env(GOOGLE_CREDENTIALS="{not json"))
    with pytest.raises(ConfigError):
        load_settings(_base_env(GOOGLE_CREDENTIALS="[1, 2]"))


def test_credentials_file(tmp_path) -> None:
    path = tmp_path / "service.json"
    path.write_text("{}", encoding="utf-8")
    env = _base_env(GOOGLE_CREDENTIALS_FILE=str(path))
    del env["GOOGLE_CREDENTIALS"]

    settings = load_settings(env)

    assert settings.credentials_file == str(path)
    assert settings.credentials_info is None


def test_missing_credentials_file(tmp_path) -> None:
    env = _base_env(GOOGLE_CREDENTIALS_FILE=str(tmp_path / "absent.json"))
    del env["GOOGLE_CREDENTIALS"]

    with pytest.raises(ConfigError):
        load_settings(env)


def test_optional_overrides_and_clamps() -> None:
    settings = load_settings(
        _base_env(
            TRADE_ACCOUNTS=" Main , ,Alt ",
            SEARCH_PAGE_SIZE="0",
            SESSION_IDLE_SECONDS="5",
            RECENT_TRADES_COUNT="nope",
            RESET_ON_WRITE_FAILURE="off",
            LOG_LEVEL="debug",
        )
    )

    assert settings.accounts == ("Main", "Alt")
    assert settings.page_size == 1
    assert settings.session_idle_seconds == 60
    assert settings.recent_count == 5
    assert settings.reset_on_write_failure is False
    assert settings.log_level == "DEBUG"
