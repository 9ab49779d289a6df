from typing import Optional, Union
from src.config import Settings
from src.github.client import GitHubClient
from src.github.models import TaskItem
from src.github.mutations import UPDATE_PROJECT_FIELD
from src.github.queries import GET_PROJECT_ITEMS
from src.errors import RemoteAPIError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class BoardClient:
    """GitHub Projectボードのステータス読み書き

    各操作は外部状態に対して冪等。読み取りと書き込みの間に他の呼び出しが
    割り込んだ場合は後勝ちになる（検出しない）。
    """

    REQUIRED_SETTINGS = ("GITHUB_TOKEN", "GITHUB_PROJECT_ID", "GITHUB_STATUS_FIELD_ID")

    def __init__(self, settings: Settings, client: Optional[GitHubClient] = None):
        self.settings = settings
        self.client = client or GitHubClient(settings)

    @property
    def project_id(self) -> str:
        return self.settings.GITHUB_PROJECT_ID

    @property
    def status_field_id(self) -> str:
        return self.settings.GITHUB_STATUS_FIELD_ID

    async def find_item_by_issue_number(self, issue_number: Union[int, str]) -> Optional[TaskItem]:
        """Issue番号からProjectアイテムを検索

        先頭100件のアイテムだけを取得して線形に探索する。番号は数値として
        比較するため "007" と 7 は一致する。

        Args:
            issue_number: Issue番号

        Returns:
            Optional[TaskItem]: 見つからない場合はNone

        Raises:
            ConfigurationError: 必須設定が不足している場合（通信前に検出）
            RemoteAPIError, TransportError: API呼び出しに失敗した場合
        """
        self.settings.require(*self.REQUIRED_SETTINGS)
        wanted = int(issue_number)

        data = await self.client.execute_query(GET_PROJECT_ITEMS, {"projectId": self.project_id})

        project = data.get("node")
        if project is None:
            raise RemoteAPIError(f"Project {self.project_id} not found or not accessible")

        nodes = (project.get("items") or {}).get("nodes") or []
        logger.debug(f"Fetched {len(nodes)} items from project {self.project_id}")

        for node in nodes:
            if not node:
                continue
            item = TaskItem.from_node(node, self.status_field_id)
            if item is not None and item.issue_number == wanted:
                return item

        return None

    def current_status_option_id(self, item: TaskItem) -> Optional[str]:
        """アイテムの現在のステータスオプションIDを取得"""
        return item.status_option_id

    async def set_status(self, item: TaskItem, status_option_id: str) -> bool:
        """アイテムのステータスを更新（ミューテーション1回）

        Args:
            item: 対象アイテム
            status_option_id: 設定するオプションID

        Returns:
            bool: 成功ならTrue（失敗は例外）
        """
        self.settings.require(*self.REQUIRED_SETTINGS)

        await self.client.execute_query(
            UPDATE_PROJECT_FIELD,
            {
                "projectId": self.project_id,
                "itemId": item.id,
                "fieldId": self.status_field_id,
                "value": {"singleSelectOptionId": status_option_id},
            },
        )
        logger.info(f"Set status of issue #{item.issue_number} (item {item.id}) to option {status_option_id}")
        return True
