"""Webhook受信エンドポイント（FastAPI）

レスポンス:
- 200: 処理完了（処理対象外イベントや移動・通知の失敗を含む）
- 400: 署名ヘッダなし / JSON不正
- 401: 署名不一致
- 405: POST以外
"""

import json
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.config import Settings
from src.errors import MalformedPayloadError
from src.github.board import BoardClient
from src.notify.telegram import TelegramNotifier
from src.tasks.mover import StatusMover
from src.utils.logger import get_logger
from src.utils.signature import verify_signature
from src.utils.user_mapping import UserMapping
from src.webhook.dispatcher import EventDispatcher

logger = get_logger(__name__)

SIGNATURE_HEADER = "x-hub-signature-256"
EVENT_HEADER = "x-github-event"
DELIVERY_HEADER = "x-github-delivery"


def parse_payload(raw_body: bytes) -> Dict[str, Any]:
    """リクエストボディをJSONオブジェクトとしてパース

    Raises:
        MalformedPayloadError: JSONとして不正、またはオブジェクトでない場合
    """
    try:
        payload = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedPayloadError(f"Invalid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedPayloadError("Payload must be a JSON object")
    return payload


def build_dispatcher(settings: Settings) -> EventDispatcher:
    """設定から各コンポーネントを組み立てる"""
    board = BoardClient(settings)
    return EventDispatcher(
        mover=StatusMover(board, settings),
        notifier=TelegramNotifier(settings),
        user_mapping=UserMapping(settings.USER_MAPPING_FILE),
        announce_events=settings.ANNOUNCE_EVENTS,
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


def create_app(settings: Settings, dispatcher: Optional[EventDispatcher] = None) -> FastAPI:
    """FastAPIアプリケーションを生成

    Args:
        settings: アプリケーション設定
        dispatcher: ディスパッチャ（省略時は settings から組み立て）

    Returns:
        FastAPI: アプリケーション
    """
    app = FastAPI(title="GitHub Task Relay")
    app.state.settings = settings
    app.state.dispatcher = dispatcher or build_dispatcher(settings)

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    @app.post("/")
    @app.post("/webhook")
    async def github_webhook(request: Request):
        delivery = request.headers.get(DELIVERY_HEADER, "")

        signature = request.headers.get(SIGNATURE_HEADER)
        if not signature:
            logger.warning(f"Rejected delivery {delivery or '-'}: missing {SIGNATURE_HEADER} header")
            return _error(400, "Missing X-Hub-Signature-256 header")

        raw_body = await request.body()
        secret = app.state.settings.WEBHOOK_SECRET
        if not secret:
            logger.error("WEBHOOK_SECRET is not configured; rejecting all deliveries")

        if not verify_signature(raw_body, secret, signature):
            logger.warning(f"Rejected delivery {delivery or '-'}: invalid signature")
            return _error(401, "Invalid signature")

        try:
            payload = parse_payload(raw_body)
        except MalformedPayloadError as e:
            logger.warning(f"Rejected delivery {delivery or '-'}: {e}")
            return _error(400, "Invalid JSON")

        event_type = request.headers.get(EVENT_HEADER, "")
        try:
            result = await app.state.dispatcher.dispatch(event_type, payload)
        except MalformedPayloadError as e:
            return _error(400, str(e))

        # エラー詳細はログにのみ残し、配信元には返さない
        return {"ok": True, "result": result.model_dump(mode="json", exclude={"error"})}

    return app
