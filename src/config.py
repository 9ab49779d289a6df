from enum import Enum
from functools import lru_cache
from typing import Dict

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.errors import ConfigurationError


class TaskStatus(str, Enum):
    """Projectボード上の論理ステータス"""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    IN_REVIEW = "IN_REVIEW"
    DONE = "DONE"


class Settings(BaseSettings):
    """アプリケーション設定

    境界（main.py / create_app）で一度だけ生成し、各コンポーネントの
    コンストラクタに渡す。必須値の不足は起動時ではなく、その値を使う
    操作の直前に ConfigurationError として検出する。
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Webhook
    WEBHOOK_SECRET: str = ""

    # GitHub
    GITHUB_TOKEN: str = ""
    GITHUB_API_URL: str = "https://api.github.com/graphql"
    GITHUB_PROJECT_ID: str = ""
    GITHUB_STATUS_FIELD_ID: str = ""

    # ステータスごとのオプションID
    STATUS_OPTION_TODO: str = ""
    STATUS_OPTION_IN_PROGRESS: str = ""
    STATUS_OPTION_IN_REVIEW: str = ""
    STATUS_OPTION_DONE: str = ""

    # Telegram
    TELEGRAM_API_URL: str = "https://api.telegram.org"
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: str = ""
    TELEGRAM_TOPIC_ID: str = ""
    TELEGRAM_DEBUG_BOT_TOKEN: str = ""
    TELEGRAM_DEBUG_CHAT_ID: str = ""
    TELEGRAM_DEBUG_TOPIC_ID: str = ""

    # 受信イベントをデバッグチャンネルに通知する
    ANNOUNCE_EVENTS: bool = True

    # GitHub login -> Telegram username
    USER_MAPPING_FILE: str = "user_mappings.json"

    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""
    LOG_FORWARD_LEVEL: str = "WARNING"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    @field_validator("LOG_LEVEL", "LOG_FORWARD_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """ログレベル名の検証（LOG_FORWARD_LEVELは空で転送無効）"""
        v = v.upper()
        if v and v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return v

    def require(self, *names: str) -> None:
        """指定した設定値がすべて設定されていることを確認

        Raises:
            ConfigurationError: 未設定の値がある場合（不足分をすべて列挙）
        """
        missing = [name for name in names if not str(getattr(self, name)).strip()]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )

    def status_option_ids(self) -> Dict[TaskStatus, str]:
        """論理ステータス -> オプションIDの完全なマッピングを取得

        Raises:
            ConfigurationError: いずれかのオプションIDが未設定の場合
        """
        self.require(*(f"STATUS_OPTION_{status.value}" for status in TaskStatus))
        return {
            status: getattr(self, f"STATUS_OPTION_{status.value}")
            for status in TaskStatus
        }


@lru_cache()
def get_settings() -> Settings:
    """設定のシングルトンインスタンスを取得"""
    return Settings()
