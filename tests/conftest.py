"""Pytest configuration and shared fakes for all tests."""

import hashlib
import hmac
from typing import Dict, List, Optional

import pytest

from src.config import Settings
from src.errors import RemoteAPIError
from src.github.models import TaskItem
from src.notify.telegram import Channel, NotificationRoute
from src.tasks.mover import StatusMover
from src.webhook.dispatcher import EventDispatcher

OPTION_IDS = {
    "TODO": "opt-todo",
    "IN_PROGRESS": "opt-progress",
    "IN_REVIEW": "opt-review",
    "DONE": "opt-done",
}

BASE_SETTINGS = {
    "WEBHOOK_SECRET": "s3cret",
    "GITHUB_TOKEN": "ghp_testtoken",
    "GITHUB_API_URL": "https://api.github.test/graphql",
    "GITHUB_PROJECT_ID": "PVT_project",
    "GITHUB_STATUS_FIELD_ID": "PVTSSF_status",
    "STATUS_OPTION_TODO": OPTION_IDS["TODO"],
    "STATUS_OPTION_IN_PROGRESS": OPTION_IDS["IN_PROGRESS"],
    "STATUS_OPTION_IN_REVIEW": OPTION_IDS["IN_REVIEW"],
    "STATUS_OPTION_DONE": OPTION_IDS["DONE"],
    "TELEGRAM_API_URL": "https://telegram.test",
    "TELEGRAM_BOT_TOKEN": "123:main-token",
    "TELEGRAM_CHAT_ID": "-1001",
    "TELEGRAM_TOPIC_ID": "",
    "TELEGRAM_DEBUG_BOT_TOKEN": "",
    "TELEGRAM_DEBUG_CHAT_ID": "",
    "TELEGRAM_DEBUG_TOPIC_ID": "",
    "ANNOUNCE_EVENTS": False,
    "USER_MAPPING_FILE": "",
    "LOG_FILE": "",
}


def build_settings(**overrides) -> Settings:
    values = {**BASE_SETTINGS, **overrides}
    return Settings(_env_file=None, **values)


def sign(body: bytes, secret: str = BASE_SETTINGS["WEBHOOK_SECRET"]) -> str:
    return "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


class FakeBoardClient:
    """In-memory board that counts lookups and mutations."""

    def __init__(self, items: List[TaskItem]):
        self.items: Dict[int, TaskItem] = {item.issue_number: item for item in items}
        self.lookups: List[int] = []
        self.mutations: List[tuple] = []

    async def find_item_by_issue_number(self, issue_number):
        self.lookups.append(int(issue_number))
        item = self.items.get(int(issue_number))
        return item.model_copy() if item else None

    def current_status_option_id(self, item: TaskItem) -> Optional[str]:
        return item.status_option_id

    async def set_status(self, item: TaskItem, status_option_id: str) -> bool:
        self.mutations.append((item.issue_number, status_option_id))
        self.items[item.issue_number] = self.items[item.issue_number].model_copy(
            update={"status_option_id": status_option_id}
        )
        return True


class FakeNotifier:
    """Records messages instead of calling Telegram."""

    def __init__(self, channels=(Channel.MAIN,), fail: bool = False):
        self.channels = set(channels)
        self.fail = fail
        self.sent: List[tuple] = []

    def has_route(self, channel: Channel) -> bool:
        return channel in self.channels

    def send(self, message: str, route: Optional[NotificationRoute] = None) -> bool:
        route = route or NotificationRoute()
        if self.fail:
            raise RemoteAPIError("Failed to send message to Telegram: chat not found", status_code=400)
        self.sent.append((message, route))
        return True

    async def notify(self, message: str, route: Optional[NotificationRoute] = None) -> bool:
        return self.send(message, route)

    def messages(self, channel: Channel = Channel.MAIN) -> List[str]:
        return [message for message, route in self.sent if route.channel == channel]


def make_item(issue_number: int, status: Optional[str] = "TODO") -> TaskItem:
    return TaskItem(
        id=f"PVTI_{issue_number}",
        issue_number=issue_number,
        title=f"Task {issue_number}",
        url=f"https://github.com/acme/widgets/issues/{issue_number}",
        status_option_id=OPTION_IDS[status] if status else None,
    )


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest.fixture
def board() -> FakeBoardClient:
    return FakeBoardClient(
        [
            make_item(42, "TODO"),
            make_item(7, "IN_PROGRESS"),
            make_item(8, "IN_REVIEW"),
            make_item(9, None),
        ]
    )


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def dispatcher(board, notifier, settings) -> EventDispatcher:
    return EventDispatcher(mover=StatusMover(board, settings), notifier=notifier)


@pytest.fixture
def make_settings():
    return build_settings


@pytest.fixture
def signer():
    return sign
