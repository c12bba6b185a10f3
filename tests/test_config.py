from __future__ import annotations

from fsmcp.config import Config


def test_parse_port() -> None:
    assert Config.parse_port(None) == 3000
    assert Config.parse_port("") == 3000
    assert Config.parse_port("abc") == 3000
    assert Config.parse_port("8080") == 8080
    assert Config.parse_port(" 4000 ") == 4000
    assert Config.parse_port("70000") == 3000


def test_reload_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "5050")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    Config.reload()
    assert Config.PORT == 5050
    assert Config.LOG_LEVEL == "DEBUG"

    monkeypatch.setenv("PORT", "not-a-port")
    monkeypatch.delenv("LOG_LEVEL")
    Config.reload()
    assert Config.PORT == 3000
    assert Config.LOG_LEVEL == "INFO"
