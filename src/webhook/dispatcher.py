"""GitHub webhookイベントのディスパッチ

(イベント種別, action) の組ごとに処理を選ぶ。イベント間で保持する状態はない。

| event        | action                         | 処理                         |
|--------------|--------------------------------|------------------------------|
| create       | (branch)                       | IN_PROGRESS へ移動 + 通知    |
| pull_request | opened                         | IN_REVIEW へ移動 + 通知      |
| pull_request | closed                         | DONE へ移動 + 通知           |
| pull_request | review_requested / _removed    | 通知のみ                     |
| pull_request | assigned / unassigned          | 通知のみ                     |
| その他       |                                | ログのみ（200を返す）        |

移動・通知で発生したエラーはここで捕捉してログと通知に変換し、
HTTPレスポンスには影響させない。
"""

from typing import Any, Awaitable, Callable, Dict, Optional, Type

from pydantic import BaseModel, ValidationError

from src.config import TaskStatus
from src.errors import MalformedPayloadError
from src.notify import messages
from src.notify.telegram import Channel, NotificationRoute, TelegramNotifier
from src.tasks.mover import StatusMover
from src.utils.branch_parser import extract_issue_number
from src.utils.logger import get_logger
from src.utils.user_mapping import UserMapping
from src.webhook.models import CreatePayload, DispatchResult, PullRequestPayload

logger = get_logger(__name__)

DEBUG_ROUTE = NotificationRoute(channel=Channel.DEBUG)


def _nested_str(payload: Dict[str, Any], key: str, field: str) -> str:
    value = payload.get(key)
    if not isinstance(value, dict):
        return ""
    result = value.get(field)
    return result if isinstance(result, str) else ""


class EventDispatcher:
    """Webhookイベントを処理に振り分ける"""

    def __init__(
        self,
        mover: StatusMover,
        notifier: TelegramNotifier,
        user_mapping: Optional[UserMapping] = None,
        announce_events: bool = False,
    ):
        self.mover = mover
        self.notifier = notifier
        self.user_mapping = user_mapping or UserMapping(mapping_file="")
        self.announce_events = announce_events

        self._event_handlers: Dict[str, Callable[[Any], Awaitable[DispatchResult]]] = {
            "create": self._handle_create,
            "pull_request": self._handle_pull_request,
        }
        self._payload_models: Dict[str, Type[BaseModel]] = {
            "create": CreatePayload,
            "pull_request": PullRequestPayload,
        }
        self._pull_request_handlers: Dict[str, Callable[[PullRequestPayload], Awaitable[DispatchResult]]] = {
            "opened": self._handle_pr_opened,
            "closed": self._handle_pr_closed,
            "review_requested": self._handle_pr_reviewer,
            "review_request_removed": self._handle_pr_reviewer,
            "assigned": self._handle_pr_assignee,
            "unassigned": self._handle_pr_assignee,
        }

    async def dispatch(self, event_type: str, payload: Dict[str, Any]) -> DispatchResult:
        """1件のWebhook配信を処理

        Args:
            event_type: X-GitHub-Event ヘッダの値
            payload: パース済みのペイロード

        Returns:
            DispatchResult: 処理内容

        Raises:
            MalformedPayloadError: 処理対象イベントのペイロード形式が不正な場合
                （ボード・通知の呼び出し前に送出）
        """
        event_type = event_type or ""
        action = payload.get("action") or ""
        if not isinstance(action, str):
            action = ""

        event = None
        model = self._payload_models.get(event_type)
        if model is not None:
            try:
                event = model.model_validate(payload)
            except ValidationError as e:
                logger.warning(f"Invalid {event_type} payload: {e}")
                raise MalformedPayloadError(f"Invalid {event_type} payload") from e

        logger.info(f"Received event: {event_type} ({action or '-'})")
        await self._announce(event_type, action, payload)

        handler = self._event_handlers.get(event_type)
        if handler is None:
            logger.info(f"Unhandled event type: {event_type or '(missing)'}")
            return DispatchResult(event=event_type, action=action)

        return await handler(event)

    async def _announce(self, event_type: str, action: str, payload: Dict[str, Any]):
        """受信イベントをデバッグチャンネルに通知（ベストエフォート）"""
        if not self.announce_events or not self.notifier.has_route(Channel.DEBUG):
            return

        repository = _nested_str(payload, "repository", "full_name")
        sender = _nested_str(payload, "sender", "login")
        await self._safe_notify(
            messages.format_event_received(event_type, action, repository, sender),
            DEBUG_ROUTE,
        )

    async def _safe_notify(self, message: str, route: Optional[NotificationRoute] = None) -> bool:
        """通知を送信。失敗はログに残すだけで呼び出し元には伝播しない"""
        try:
            return await self.notifier.notify(message, route)
        except Exception as e:
            logger.error(f"Failed to send notification: {e}", exc_info=True)
            return False

    async def _move_and_notify(
        self,
        result: DispatchResult,
        issue_number: int,
        target: TaskStatus,
        event_label: str,
        repository: str,
        actor: str = "",
        link: str = "",
        reviewers=None,
        note: str = "",
    ) -> DispatchResult:
        """タスクを移動し、結果（成功・移動済み・エラー）を通知"""
        result.issue_number = issue_number
        result.target_status = target

        try:
            move = await self.mover.move_task_to_status(issue_number, target)
        except Exception as e:
            logger.error(f"Error moving issue {issue_number} to {target.value}: {e}", exc_info=True)
            result.error = str(e)
            result.notified = await self._safe_notify(
                messages.format_move_error(issue_number, target, e)
            )
            return result

        result.move = move
        result.notified = await self._safe_notify(
            messages.format_status_change(
                event_label,
                repository,
                move,
                actor=actor,
                link=link,
                reviewers=reviewers,
                note=note,
            )
        )
        return result

    async def _handle_create(self, event: CreatePayload) -> DispatchResult:
        result = DispatchResult(event="create", handled=True)

        if event.ref_type != "branch":
            logger.info(f"Ignoring create event for {event.ref_type} '{event.ref}'")
            result.handled = False
            return result

        issue_number = extract_issue_number(event.ref)
        if issue_number is None:
            logger.warning(f'Branch name "{event.ref}" does not match the expected pattern.')
            return result

        actor = self.user_mapping.display_name(event.sender.login if event.sender else "")
        return await self._move_and_notify(
            result,
            issue_number,
            TaskStatus.IN_PROGRESS,
            "create",
            event.repository.full_name,
            actor=actor,
        )

    async def _handle_pull_request(self, event: PullRequestPayload) -> DispatchResult:
        handler = self._pull_request_handlers.get(event.action)
        if handler is None:
            logger.info(f"Unhandled pull_request action: {event.action or '(missing)'}")
            return DispatchResult(event="pull_request", action=event.action)
        return await handler(event)

    def _pr_issue_number(self, event: PullRequestPayload) -> Optional[int]:
        return extract_issue_number(event.pull_request.head.ref)

    def _pr_assignees(self, event: PullRequestPayload) -> str:
        return self.user_mapping.display_names(a.login for a in event.pull_request.assignees)

    async def _handle_pr_opened(self, event: PullRequestPayload) -> DispatchResult:
        result = DispatchResult(event="pull_request", action=event.action, handled=True)
        pr = event.pull_request

        issue_number = self._pr_issue_number(event)
        if issue_number is None:
            logger.warning(f'PR branch name "{pr.head.ref}" does not match the expected pattern.')
            return result

        reviewers = [self.user_mapping.display_name(r.login) for r in pr.requested_reviewers if r.login]
        return await self._move_and_notify(
            result,
            issue_number,
            TaskStatus.IN_REVIEW,
            "pull_request (opened)",
            event.repository.full_name,
            actor=self._pr_assignees(event),
            link=pr.html_url,
            reviewers=reviewers,
        )

    async def _handle_pr_closed(self, event: PullRequestPayload) -> DispatchResult:
        result = DispatchResult(event="pull_request", action=event.action, handled=True)
        pr = event.pull_request

        issue_number = self._pr_issue_number(event)
        if issue_number is None:
            logger.warning(f'PR branch name "{pr.head.ref}" does not match the expected pattern.')
            return result

        # マージ有無に関わらず DONE へ移動する。通知文にだけ反映
        note = "🟣 マージ済み" if pr.merged else "⚪ マージせずにクローズ"
        return await self._move_and_notify(
            result,
            issue_number,
            TaskStatus.DONE,
            "pull_request (closed)",
            event.repository.full_name,
            actor=self._pr_assignees(event),
            link=pr.html_url,
            note=note,
        )

    async def _handle_pr_reviewer(self, event: PullRequestPayload) -> DispatchResult:
        pr = event.pull_request
        if event.requested_reviewer is not None:
            reviewer = self.user_mapping.display_name(event.requested_reviewer.login)
        elif event.requested_team is not None:
            reviewer = f"team {event.requested_team.name}"
        else:
            reviewer = ""

        issue_number = self._pr_issue_number(event)
        message = messages.format_reviewer_change(
            event.action == "review_requested",
            event.repository.full_name,
            pr.number,
            pr.title,
            pr.html_url,
            reviewer,
            issue_number=issue_number,
        )
        return DispatchResult(
            event="pull_request",
            action=event.action,
            handled=True,
            issue_number=issue_number,
            notified=await self._safe_notify(message),
        )

    async def _handle_pr_assignee(self, event: PullRequestPayload) -> DispatchResult:
        pr = event.pull_request
        assignee = self.user_mapping.display_name(event.assignee.login if event.assignee else "")

        issue_number = self._pr_issue_number(event)
        message = messages.format_assignee_change(
            event.action == "assigned",
            event.repository.full_name,
            pr.number,
            pr.title,
            pr.html_url,
            assignee,
            issue_number=issue_number,
        )
        return DispatchResult(
            event="pull_request",
            action=event.action,
            handled=True,
            issue_number=issue_number,
            notified=await self._safe_notify(message),
        )
