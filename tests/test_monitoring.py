"""Tests for structured events, routine heartbeats and Telegram alerts."""

from __future__ import annotations

import logging
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from arbitrageur.models.trading import FtxSide
from arbitrageur.monitoring.events import format_params, log_error_event, log_event
from arbitrageur.monitoring.heartbeat import RoutineHeartbeat
from arbitrageur.monitoring.telegram import TelegramAlerter

logger = logging.getLogger("tests.monitoring")


# ===========================================================================
# Structured events
# ===========================================================================


class TestEvents:
    def test_format_params(self):
        text = format_params({"market": "vETH", "side": FtxSide.BUY, "size": Decimal("3.000"), "ratio": None})
        assert text == "market=vETH side=buy size=3.000 ratio=None"

    def test_log_event_attaches_name_and_params(self, caplog):
        caplog.set_level(logging.INFO)
        log_event(logger, "Spread", market="vETH", ftxPrice=Decimal("1800.5"))

        [record] = caplog.records
        assert record.event == "Spread"
        assert record.params == {"market": "vETH", "ftxPrice": Decimal("1800.5")}
        assert record.getMessage() == "[Spread] market=vETH ftxPrice=1800.5"
        assert record.levelno == logging.INFO

    def test_log_event_without_params(self, caplog):
        caplog.set_level(logging.INFO)
        log_event(logger, "NotTriggered")
        assert caplog.records[0].getMessage() == "[NotTriggered]"

    def test_log_event_level(self, caplog):
        caplog.set_level(logging.DEBUG)
        log_event(logger, "Noise", level=logging.DEBUG, a=1)
        assert caplog.records[0].levelno == logging.DEBUG

    def test_log_error_event_includes_error(self, caplog):
        err = ValueError("boom")
        log_error_event(logger, "ArbitrageError", err, market="vETH")

        [record] = caplog.records
        assert record.levelno == logging.ERROR
        assert record.params == {"err": "ValueError('boom')", "market": "vETH"}
        assert record.exc_info is not None


# ===========================================================================
# Heartbeat
# ===========================================================================


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRoutineHeartbeat:
    def test_never_seen_is_not_alive(self):
        heartbeat = RoutineHeartbeat(clock=FakeClock())
        assert heartbeat.last_seen("BalanceRoutine") is None
        assert heartbeat.is_alive("BalanceRoutine", 60) is False

    def test_alive_within_max_age(self):
        clock = FakeClock()
        heartbeat = RoutineHeartbeat(clock=clock)
        heartbeat.mark_alive("BalanceRoutine")
        clock.now += 30
        assert heartbeat.is_alive("BalanceRoutine", 60) is True
        clock.now += 31
        assert heartbeat.is_alive("BalanceRoutine", 60) is False
        assert heartbeat.status() == {"BalanceRoutine": 61.0}

    def test_marker_file_written(self, tmp_path):
        heartbeat = RoutineHeartbeat(str(tmp_path / "hb"), clock=FakeClock(12.5))
        heartbeat.mark_alive("ArbitrageRoutine")
        assert (tmp_path / "hb" / "ArbitrageRoutine").read_text() == "12.500\n"

    def test_unwritable_dir_only_warns(self, tmp_path, caplog):
        blocker = tmp_path / "file"
        blocker.write_text("")
        heartbeat = RoutineHeartbeat(str(blocker), clock=FakeClock())
        heartbeat.mark_alive("ArbitrageRoutine")
        assert heartbeat.last_seen("ArbitrageRoutine") == 100.0
        assert "Failed to write heartbeat" in caplog.text


# ===========================================================================
# Telegram
# ===========================================================================


@pytest.fixture
def alerter():
    return TelegramAlerter(bot_token="fake_token", chat_id="12345")


class TestTelegramAlerter:
    def test_disabled_without_tokens(self):
        assert TelegramAlerter().enabled is False
        assert TelegramAlerter(bot_token="t").enabled is False

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "t")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "1")
        assert TelegramAlerter.from_env().enabled is True

    async def test_disabled_is_noop(self):
        alerter = TelegramAlerter()
        with patch.object(alerter, "_send_message", new_callable=AsyncMock) as mock_send:
            await alerter.alert_event("ArbitrageError", market="vETH")
        mock_send.assert_not_awaited()

    async def test_alert_event_text(self, alerter):
        with patch.object(alerter, "_send_message", new_callable=AsyncMock) as mock_send:
            await alerter.alert_event("ArbitrageError", market="vETH", err="RuntimeError('<x>')")
        text = mock_send.await_args.args[0]
        assert "<b>ArbitrageError</b>" in text
        assert "market=vETH" in text
        assert "&lt;x&gt;" in text

    async def test_send_failure_swallowed(self, alerter, caplog):
        with patch.object(alerter, "_send_message", new_callable=AsyncMock, side_effect=OSError("down")):
            await alerter.alert_event("BalanceError")
        assert "Failed to send BalanceError alert" in caplog.text
