from typing import Optional


class TaskRelayError(Exception):
    """タスクリレー処理の基底エラー"""

    pass


class SignatureError(TaskRelayError):
    """Webhook署名が一致しない"""

    pass


class MalformedPayloadError(TaskRelayError):
    """ペイロードがJSONとして不正、または想定した形式でない"""

    pass


class ConfigurationError(TaskRelayError):
    """必須の設定値が不足している（イベント単位ではなくデプロイ時の不備）"""

    pass


class NotFoundError(TaskRelayError):
    """Projectボード上にタスクが存在しない"""

    pass


class RemoteAPIError(TaskRelayError):
    """外部APIが失敗ステータスまたはエラーを返した"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportError(TaskRelayError):
    """外部APIに到達できない（DNS、タイムアウト、接続リセット等）"""

    pass
