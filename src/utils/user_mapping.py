import json
from pathlib import Path
from typing import Dict, Iterable, Optional
from src.utils.logger import get_logger

logger = get_logger(__name__)


class UserMapping:
    """GitHub loginとTelegramユーザー名のマッピング（読み取り専用）

    マッピングファイルの例:
        {"octocat": "octo_tg", "alice": "@alice"}
    """

    def __init__(self, mapping_file: str = "user_mappings.json"):
        self.mapping_file = Path(mapping_file) if mapping_file else None
        self.mappings = self._load_mappings()

    def _load_mappings(self) -> Dict[str, str]:
        """マッピングファイルを読み込み"""
        if self.mapping_file is None:
            return {}

        if not self.mapping_file.exists():
            logger.info(f"User mapping file {self.mapping_file} not found, using GitHub logins as-is")
            return {}

        try:
            with open(self.mapping_file, "r", encoding="utf-8") as f:
                mappings = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load user mappings from {self.mapping_file}: {e}")
            return {}

        if not isinstance(mappings, dict):
            logger.error(f"User mapping file {self.mapping_file} must contain a JSON object")
            return {}

        logger.info(f"Loaded {len(mappings)} user mappings")
        return {str(k).lower(): str(v) for k, v in mappings.items()}

    def get_telegram_username(self, github_login: str) -> Optional[str]:
        """GitHub loginからTelegramユーザー名を取得（大文字小文字は区別しない）"""
        if not github_login:
            return None
        username = self.mappings.get(github_login.lower())
        if username and not username.startswith("@"):
            username = "@" + username
        return username

    def display_name(self, github_login: Optional[str]) -> str:
        """通知用の表示名（マッピングがなければGitHub loginのまま）"""
        if not github_login:
            return ""
        return self.get_telegram_username(github_login) or github_login

    def display_names(self, github_logins: Iterable[str]) -> str:
        """複数ユーザーの表示名をカンマ区切りで返す"""
        return ", ".join(self.display_name(login) for login in github_logins if login)
