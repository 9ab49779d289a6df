import asyncio
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import requests
from pydantic import BaseModel

from src.config import Settings
from src.errors import ConfigurationError, RemoteAPIError, TransportError
from src.utils.logger import get_logger, truncate_message

logger = get_logger(__name__)


class Channel(str, Enum):
    """通知先チャンネル"""

    MAIN = "main"
    DEBUG = "debug"


class FormatMode(str, Enum):
    """メッセージの書式（Telegramの parse_mode に対応）"""

    PLAIN = "plain"
    MARKDOWN = "markdown"
    HTML = "html"


PARSE_MODES = {
    FormatMode.PLAIN: None,
    FormatMode.MARKDOWN: "MarkdownV2",
    FormatMode.HTML: "HTML",
}


class NotificationRoute(BaseModel):
    """通知の送信先と書式"""

    channel: Channel = Channel.MAIN
    format_mode: FormatMode = FormatMode.PLAIN


class TelegramNotifier:
    """Telegram Bot APIでメッセージを送信する"""

    def __init__(self, settings: Settings):
        self.settings = settings

    def has_route(self, channel: Channel) -> bool:
        """指定チャンネルの送信に必要な設定が揃っているか"""
        try:
            self._resolve_target(channel)
        except ConfigurationError:
            return False
        return True

    def _resolve_target(self, channel: Channel) -> Tuple[str, str, str]:
        """チャンネルから (bot token, chat id, thread id) を解決

        デバッグ用のbot tokenが未設定ならメインのtokenを使う。
        chat id はチャンネルごとに必須。
        """
        s = self.settings
        if channel == Channel.DEBUG:
            token = s.TELEGRAM_DEBUG_BOT_TOKEN or s.TELEGRAM_BOT_TOKEN
            chat_id, thread_id = s.TELEGRAM_DEBUG_CHAT_ID, s.TELEGRAM_DEBUG_TOPIC_ID
            names = ("TELEGRAM_DEBUG_BOT_TOKEN", "TELEGRAM_DEBUG_CHAT_ID")
        else:
            token = s.TELEGRAM_BOT_TOKEN
            chat_id, thread_id = s.TELEGRAM_CHAT_ID, s.TELEGRAM_TOPIC_ID
            names = ("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID")

        missing = [name for name, value in zip(names, (token, chat_id)) if not value]
        if missing:
            raise ConfigurationError(
                f"Missing Telegram configuration for {channel.value} channel: {', '.join(missing)}"
            )
        return token, chat_id, thread_id

    def build_request(
        self, message: str, route: Optional[NotificationRoute] = None
    ) -> Tuple[str, Dict[str, Any]]:
        """sendMessage のURLとリクエストボディを組み立てる"""
        route = route or NotificationRoute()
        token, chat_id, thread_id = self._resolve_target(route.channel)

        body: Dict[str, Any] = {"chat_id": chat_id, "text": truncate_message(message)}
        if thread_id:
            body["message_thread_id"] = int(thread_id)

        parse_mode = PARSE_MODES[route.format_mode]
        if parse_mode:
            body["parse_mode"] = parse_mode

        url = f"{self.settings.TELEGRAM_API_URL.rstrip('/')}/bot{token}/sendMessage"
        return url, body

    def send(self, message: str, route: Optional[NotificationRoute] = None) -> bool:
        """メッセージを送信（ブロッキング）

        Args:
            message: 本文
            route: 送信先（省略時はメインチャンネル、プレーンテキスト）

        Returns:
            bool: 成功ならTrue（失敗は例外）

        Raises:
            ConfigurationError: 送信先の認証情報が不足している場合
            TransportError: ネットワークレベルの失敗
            RemoteAPIError: Telegramが失敗ステータスを返した場合（レスポンス本文を含む）
        """
        url, body = self.build_request(message, route)

        try:
            response = requests.post(url, json=body, timeout=self.settings.HTTP_TIMEOUT_SECONDS)
        except requests.RequestException as e:
            # URLにはbot tokenが含まれるので例外メッセージは記録しない
            logger.error(f"Network error while sending message to Telegram: {type(e).__name__}")
            raise TransportError(
                f"Network error or failure while sending message: {type(e).__name__}"
            ) from e

        if not response.ok:
            logger.error(f"Telegram returned HTTP {response.status_code}: {response.text}")
            raise RemoteAPIError(
                f"Failed to send message to Telegram: {response.text}",
                status_code=response.status_code,
            )

        return True

    async def notify(self, message: str, route: Optional[NotificationRoute] = None) -> bool:
        """メッセージを送信（非同期）。send をデフォルトexecutorで実行する"""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, lambda: self.send(message, route))
