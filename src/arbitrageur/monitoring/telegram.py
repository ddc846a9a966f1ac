"""Telegram Bot API alerts for error events.

봇 토큰 미설정 시 모든 메서드가 no-op. Alert delivery never raises.
"""

from __future__ import annotations

import html
import logging
import os

import aiohttp

from arbitrageur.monitoring.events import format_params

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"
SEND_TIMEOUT = 10  # seconds


class TelegramAlerter:
    """Telegram 알림 발송기.

    Args:
        bot_token: Telegram Bot API token. None = disabled.
        chat_id: Target chat id. None = disabled.
    """

    def __init__(
        self,
        bot_token: str | None = None,
        chat_id: str | None = None,
    ):
        self._bot_token = bot_token
        self._chat_id = chat_id

    @classmethod
    def from_env(cls) -> TelegramAlerter:
        return cls(
            bot_token=os.environ.get("TELEGRAM_BOT_TOKEN"),
            chat_id=os.environ.get("TELEGRAM_CHAT_ID"),
        )

    @property
    def enabled(self) -> bool:
        """토큰과 chat_id 모두 설정됐을 때만 활성."""
        return bool(self._bot_token and self._chat_id)

    async def alert_event(self, event: str, level: str = "error", **params) -> None:
        """Send a structured event as an alert."""
        if not self.enabled:
            return
        try:
            emoji = "🚨" if level == "error" else "⚠️"
            text = f"{emoji} <b>{event}</b>\n{html.escape(format_params(params))}"
            await self._send_message(text)
        except Exception as exc:
            logger.error("Failed to send %s alert: %s", event, exc)

    async def _send_message(self, text: str, parse_mode: str = "HTML") -> None:
        url = f"{TELEGRAM_API_URL}/bot{self._bot_token}/sendMessage"
        payload = {
            "chat_id": self._chat_id,
            "text": text[:4000],
            "parse_mode": parse_mode,
        }
        timeout = aiohttp.ClientTimeout(total=SEND_TIMEOUT)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, json=payload) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    logger.warning("Telegram API %d: %s", resp.status, body[:200])
