from typing import List, Optional
from src.config import TaskStatus
from src.tasks.mover import MoveResult

NOT_ASSIGNED = "未割り当て"
NO_DATA = "不明"


def _issue_line(issue_number: Optional[int]) -> str:
    return f"🔢 Issue: #{issue_number}" if issue_number is not None else f"🔢 Issue: {NO_DATA}"


def format_status_change(
    event_label: str,
    repository: str,
    result: MoveResult,
    actor: str = "",
    link: str = "",
    reviewers: Optional[List[str]] = None,
    note: str = "",
) -> str:
    """ステータス移動の結果通知"""
    if result.already_in_target_status:
        status_line = f"⚠️ Issue #{result.issue_number} は既に {result.status.value} です"
    else:
        status_line = f"✅ Issue #{result.issue_number} を {result.status.value} に移動しました"

    lines = [
        f"🔔 GitHub Webhook: {event_label}",
        f"📂 Repository: {repository or NO_DATA}",
        _issue_line(result.issue_number),
        f"👤 担当: {actor or NOT_ASSIGNED}",
    ]
    if reviewers is not None:
        lines.append(f"👀 レビュアー: {', '.join(reviewers) or NOT_ASSIGNED}")
    lines.append(f"🔗 Issue: {result.issue_url or NO_DATA}")
    if link:
        lines.append(f"🔗 PR: {link}")
    if note:
        lines.append(note)
    lines.append(status_line)
    return "\n".join(lines)


def format_move_error(issue_number: int, target: TaskStatus, error: Exception) -> str:
    """ステータス移動に失敗したときの通知"""
    return f"❌ Issue #{issue_number} を {target.value} に移動できませんでした: {error}"


def format_reviewer_change(
    added: bool,
    repository: str,
    pr_number: int,
    pr_title: str,
    pr_url: str,
    reviewer: str,
    issue_number: Optional[int] = None,
) -> str:
    """レビュアーの追加/削除通知"""
    header = "👀 レビュー依頼" if added else "🚫 レビュー依頼取り消し"
    return "\n".join(
        [
            f"{header}: {reviewer or NO_DATA}",
            f"📂 Repository: {repository or NO_DATA}",
            f"🔀 PR #{pr_number}: {pr_title}",
            _issue_line(issue_number),
            f"🔗 PR: {pr_url or NO_DATA}",
        ]
    )


def format_assignee_change(
    assigned: bool,
    repository: str,
    pr_number: int,
    pr_title: str,
    pr_url: str,
    assignee: str,
    issue_number: Optional[int] = None,
) -> str:
    """担当者の追加/削除通知"""
    header = "👤 担当者追加" if assigned else "👤 担当者削除"
    return "\n".join(
        [
            f"{header}: {assignee or NO_DATA}",
            f"📂 Repository: {repository or NO_DATA}",
            f"🔀 PR #{pr_number}: {pr_title}",
            _issue_line(issue_number),
            f"🔗 PR: {pr_url or NO_DATA}",
        ]
    )


def format_event_received(event_type: str, action: str, repository: str, sender: str) -> str:
    """受信イベントの通知（デバッグチャンネル用）"""
    label = f"{event_type} ({action})" if action else event_type
    return f"📥 イベント受信: {label or NO_DATA}\n📂 Repository: {repository or NO_DATA}\n👤 Sender: {sender or NO_DATA}"
