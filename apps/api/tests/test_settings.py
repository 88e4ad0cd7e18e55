import pytest
from pydantic import ValidationError

from cowork_api.core.settings import Settings
from cowork_api.observability.tracing import _parse_headers


def test_settings_defaults(monkeypatch) -> None:
    monkeypatch.delenv("PERKS_TIMEZONE", raising=False)
    config = Settings(_env_file=None)

    assert config.perks_timezone == "UTC"
    assert config.meeting_room_slot_minutes == 30
    assert config.perk_usage_history_limit == 50
    assert config.expose_error_details is True


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("PERKS_TIMEZONE", "Europe/Lisbon")
    monkeypatch.setenv("MEETING_ROOM_SLOT_MINUTES", "15")

    config = Settings(_env_file=None)

    assert config.perks_timezone == "Europe/Lisbon"
    assert config.meeting_room_slot_minutes == 15


@pytest.mark.parametrize("minutes", ["0", "2000"])
def test_slot_minutes_must_fit_in_a_day(monkeypatch, minutes) -> None:
    monkeypatch.setenv("MEETING_ROOM_SLOT_MINUTES", minutes)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_otlp_header_parsing_skips_malformed_pairs() -> None:
    assert _parse_headers(None) is None
    assert _parse_headers("api-key=abc, broken,=x, team = core") == {"api-key": "abc", "team": "core"}
