import logging
import queue
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Telegramのメッセージ上限(4096)に余裕を持たせる
MAX_FORWARD_LENGTH = 4000

# 通知モジュール自身のログは転送しない（送信失敗が再帰するため）
NOTIFIER_LOGGER = "src.notify"


def get_logger(name: str) -> logging.Logger:
    """ロガーインスタンスを取得

    Args:
        name: ロガー名（通常は__name__を渡す）

    Returns:
        logging.Logger: ロガーインスタンス（ハンドラは configure_logging で設定）
    """
    return logging.getLogger(name)


def configure_logging(level: str = "INFO", log_file: str = "") -> logging.Logger:
    """ルートロガーにコンソール/ファイルハンドラを設定

    Args:
        level: ログレベル名
        log_file: ログファイルのパス（空ならファイル出力なし）

    Returns:
        logging.Logger: 設定済みのルートロガー
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level or "INFO"))

    if not root.handlers:
        # フォーマッタ
        formatter = logging.Formatter(LOG_FORMAT)

        # コンソールハンドラ
        ch = logging.StreamHandler()
        ch.setLevel(logging.DEBUG)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        # ファイルハンドラ
        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            fh = logging.FileHandler(log_path, encoding="utf-8")
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(formatter)
            root.addHandler(fh)

    return root


def truncate_message(text: str, max_length: int = MAX_FORWARD_LENGTH) -> str:
    """上限を超えるメッセージを "..." 付きで切り詰める"""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


class TelegramLogHandler(logging.Handler):
    """ログレコードをTelegramのデバッグチャンネルへ転送するハンドラ

    グローバルなロギング関数を置き換えるのではなく、通常のハンドラとして
    ロガーに追加する。送信はブロッキングなので attach_notifier_sink 経由で
    キューの裏側に置くこと。
    """

    def __init__(self, notifier, level: int = logging.WARNING):
        super().__init__(level=level)
        self.notifier = notifier
        self.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        self.addFilter(lambda record: not record.name.startswith(NOTIFIER_LOGGER))

    def format_record(self, record: logging.LogRecord) -> str:
        """[LEVEL] timestamp + 本文 の形式に整形"""
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        return truncate_message(f"[{record.levelname}] {timestamp}\n{self.format(record)}")

    def emit(self, record: logging.LogRecord):
        from src.notify.telegram import Channel, NotificationRoute

        try:
            self.notifier.send(
                self.format_record(record), NotificationRoute(channel=Channel.DEBUG)
            )
        except Exception:
            self.handleError(record)


def attach_notifier_sink(
    notifier, level: str = "WARNING", logger: Optional[logging.Logger] = None
) -> QueueListener:
    """指定レベル以上のログをデバッグチャンネルへ転送するシンクを追加

    Args:
        notifier: TelegramNotifier インスタンス
        level: 転送する最小ログレベル
        logger: 追加先ロガー（省略時はルートロガー）

    Returns:
        QueueListener: 開始済みのリスナー。終了時に stop() を呼ぶこと
    """
    target = logger or logging.getLogger()
    log_queue: queue.Queue = queue.Queue(-1)

    queue_handler = QueueHandler(log_queue)
    queue_handler.setLevel(getattr(logging, level))
    target.addHandler(queue_handler)

    listener = QueueListener(
        log_queue,
        TelegramLogHandler(notifier, level=getattr(logging, level)),
        respect_handler_level=True,
    )
    listener.start()
    return listener
