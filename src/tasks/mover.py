from pydantic import BaseModel
from typing import Union
from src.config import Settings, TaskStatus
from src.github.board import BoardClient
from src.errors import NotFoundError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class MoveResult(BaseModel):
    """ステータス移動の結果"""

    issue_number: int
    issue_url: str = ""
    status: TaskStatus
    already_in_target_status: bool = False


class StatusMover:
    """タスクを指定ステータスへ移動する

    IN_PROGRESS / IN_REVIEW / DONE のいずれも同じ move_task_to_status を通る。
    """

    def __init__(self, board: BoardClient, settings: Settings):
        self.board = board
        self.settings = settings

    async def move_task_to_status(
        self, issue_number: Union[int, str], target: TaskStatus
    ) -> MoveResult:
        """タスクを target ステータスへ移動

        既に target にある場合はミューテーションを発行せずに返すため、
        同じ移動を続けて呼んでも二重適用もエラーも起きない。

        Args:
            issue_number: Issue番号
            target: 移動先ステータス

        Returns:
            MoveResult: 移動結果

        Raises:
            ConfigurationError: ステータスのオプションIDが揃っていない場合
            NotFoundError: ボード上にタスクが存在しない場合
        """
        option_ids = self.settings.status_option_ids()
        target_option_id = option_ids[target]

        item = await self.board.find_item_by_issue_number(issue_number)
        if item is None:
            raise NotFoundError(f"Issue with number {issue_number} not found in project.")

        if self.board.current_status_option_id(item) == target_option_id:
            logger.info(f"Issue {issue_number} is already in {target.value}. No update required.")
            return MoveResult(
                issue_number=item.issue_number,
                issue_url=item.url,
                status=target,
                already_in_target_status=True,
            )

        await self.board.set_status(item, target_option_id)
        logger.info(f"Issue {issue_number} has been successfully moved to {target.value}.")
        return MoveResult(
            issue_number=item.issue_number,
            issue_url=item.url,
            status=target,
            already_in_target_status=False,
        )
