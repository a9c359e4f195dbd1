import pytest
import tzlocal

from stats_bot.config import Settings


def make_settings(**overrides) -> Settings:
    values = dict(
        mongodb_uri="mongodb://localhost:27017",
        telegram_bot_token="123456:TEST-TOKEN",
        chat_id="-1001234567890",
        timezone="Europe/Berlin",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def berlin_server_zone(monkeypatch):
    """Server zone set through TZ, as on a host without TIMEZONE configured"""
    monkeypatch.setenv("TZ", "Europe/Berlin")
    tzlocal.reload_localzone()
    yield
    monkeypatch.undo()
    tzlocal.reload_localzone()
