from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from src.config import TaskStatus
from src.tasks.mover import MoveResult


class Account(BaseModel):
    """GitHubユーザー"""

    model_config = ConfigDict(extra="ignore")

    login: str = ""


class Team(BaseModel):
    """GitHubチーム（チーム単位のレビュー依頼）"""

    model_config = ConfigDict(extra="ignore")

    name: str = ""


class Repository(BaseModel):
    """GitHubリポジトリ"""

    model_config = ConfigDict(extra="ignore")

    full_name: str = ""


class BranchRef(BaseModel):
    """PRのhead/base"""

    model_config = ConfigDict(extra="ignore")

    ref: str = ""


class PullRequest(BaseModel):
    """GitHub Pull Request"""

    model_config = ConfigDict(extra="ignore")

    number: int = 0
    title: str = ""
    html_url: str = ""
    merged: bool = False
    head: BranchRef = Field(default_factory=BranchRef)
    user: Optional[Account] = None
    assignees: List[Account] = []
    requested_reviewers: List[Account] = []


class CreatePayload(BaseModel):
    """create イベント（ブランチ/タグ作成）"""

    model_config = ConfigDict(extra="ignore")

    ref: str = ""
    ref_type: str = "branch"
    repository: Repository = Field(default_factory=Repository)
    sender: Optional[Account] = None


class PullRequestPayload(BaseModel):
    """pull_request イベント"""

    model_config = ConfigDict(extra="ignore")

    action: str = ""
    pull_request: PullRequest
    repository: Repository = Field(default_factory=Repository)
    sender: Optional[Account] = None
    requested_reviewer: Optional[Account] = None
    requested_team: Optional[Team] = None
    assignee: Optional[Account] = None


class DispatchResult(BaseModel):
    """1件のWebhook配信に対してディスパッチャが行った処理"""

    event: str
    action: str = ""
    handled: bool = False
    issue_number: Optional[int] = None
    target_status: Optional[TaskStatus] = None
    move: Optional[MoveResult] = None
    notified: bool = False
    error: Optional[str] = None
