"""HTTP boundary tests for the webhook endpoint using FastAPI's TestClient."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from src.webhook.app import create_app, parse_payload
from src.errors import MalformedPayloadError, RemoteAPIError


@pytest.fixture
def client(settings, dispatcher):
    return TestClient(create_app(settings, dispatcher=dispatcher))


def _post(client, body: bytes, event: str = "", signature=None, path="/"):
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["X-Hub-Signature-256"] = signature
    if event:
        headers["X-GitHub-Event"] = event
    return client.post(path, content=body, headers=headers)


def test_create_event_moves_task(client, signer, board, notifier):
    body = json.dumps({"ref": "feature-x-42-thing", "ref_type": "branch", "repository": {"full_name": "acme/widgets"}}).encode()

    response = _post(client, body, event="create", signature=signer(body))

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["result"]["issue_number"] == 42
    assert data["result"]["target_status"] == "IN_PROGRESS"
    assert board.mutations == [(42, "opt-progress")]
    assert len(notifier.sent) == 1


def test_webhook_path_alias(client, signer, board):
    body = json.dumps({"ref": "fix-y-8-z", "ref_type": "branch"}).encode()

    response = _post(client, body, event="create", signature=signer(body), path="/webhook")

    assert response.status_code == 200
    assert board.mutations == [(8, "opt-progress")]


def test_unhandled_event_returns_200(client, signer, board, notifier):
    body = json.dumps({"action": "labeled"}).encode()

    response = _post(client, body, event="issues", signature=signer(body))

    assert response.status_code == 200
    assert response.json()["result"]["handled"] is False
    assert board.lookups == []
    assert notifier.sent == []


def test_lowercase_headers_are_accepted(client, signer):
    body = b'{"zen": "Design for failure."}'
    response = client.post(
        "/",
        content=body,
        headers={"x-hub-signature-256": signer(body), "x-github-event": "ping"},
    )
    assert response.status_code == 200


def test_missing_signature_is_rejected_before_parsing(client, board, notifier):
    with patch("src.webhook.app.parse_payload") as parse:
        response = _post(client, b'{"ref": "feature-x-42-thing"}', event="create")

    assert response.status_code == 400
    parse.assert_not_called()
    assert board.lookups == []
    assert notifier.sent == []


def test_bad_signature_is_unauthorized(client, signer, board, notifier):
    body = json.dumps({"ref": "feature-x-42-thing"}).encode()
    tampered = body.replace(b"42", b"43")

    response = _post(client, tampered, event="create", signature=signer(body))

    assert response.status_code == 401
    assert board.lookups == []
    assert notifier.sent == []


def test_unconfigured_secret_rejects_everything(make_settings, dispatcher, signer, board):
    client = TestClient(create_app(make_settings(WEBHOOK_SECRET=""), dispatcher=dispatcher))
    body = b"{}"

    response = _post(client, body, event="create", signature=signer(body))

    assert response.status_code == 401
    assert board.lookups == []


@pytest.mark.parametrize("body", [b"{not json", b"[1, 2, 3]", b"\xff\xfe"])
def test_malformed_json_is_bad_request(client, signer, board, notifier, body):
    response = _post(client, body, event="create", signature=signer(body))

    assert response.status_code == 400
    assert board.lookups == []
    assert notifier.sent == []


def test_invalid_payload_shape_is_bad_request(client, signer, board, notifier):
    body = json.dumps({"action": "opened", "pull_request": None}).encode()

    response = _post(client, body, event="pull_request", signature=signer(body))

    assert response.status_code == 400
    assert board.lookups == []
    assert notifier.sent == []


def test_remote_error_text_is_not_returned(client, signer, board, notifier):
    board.find_item_by_issue_number = AsyncMock(
        side_effect=RemoteAPIError("GraphQL errors: Could not resolve to a node with the global id of 'PVT_project'")
    )
    body = json.dumps({"ref": "feature-x-42-thing", "ref_type": "branch"}).encode()

    response = _post(client, body, event="create", signature=signer(body))

    assert response.status_code == 200
    assert "error" not in response.json()["result"]
    assert "PVT_project" not in response.text
    assert len(notifier.sent) == 1


def test_overlong_branch_number_is_skipped(client, signer, board, notifier):
    body = json.dumps({"ref": "feature-x-" + "1" * 5000 + "-thing", "ref_type": "branch"}).encode()

    response = _post(client, body, event="create", signature=signer(body))

    assert response.status_code == 200
    assert response.json()["result"]["issue_number"] is None
    assert board.lookups == []
    assert notifier.sent == []


def test_move_failure_still_acknowledged(client, signer, board, notifier):
    body = json.dumps({"ref": "feature-x-999-thing", "ref_type": "branch"}).encode()

    response = _post(client, body, event="create", signature=signer(body))

    assert response.status_code == 200
    assert "error" not in response.json()["result"]
    assert response.json()["result"]["issue_number"] == 999
    assert len(notifier.sent) == 1


@pytest.mark.parametrize("method", ["get", "put", "delete", "patch"])
def test_non_post_is_method_not_allowed(client, method):
    response = getattr(client, method)("/")
    assert response.status_code == 405


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_parse_payload_rejects_non_objects():
    assert parse_payload(b'{"a": 1}') == {"a": 1}
    with pytest.raises(MalformedPayloadError):
        parse_payload(b'"just a string"')
