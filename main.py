import uvicorn
from src.config import get_settings
from src.notify.telegram import Channel, TelegramNotifier
from src.utils.logger import attach_notifier_sink, configure_logging, get_logger
from src.webhook.app import create_app


def main():
    """メインエントリーポイント"""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    logger = get_logger(__name__)

    # WARNING以上のログをTelegramのデバッグチャンネルへ転送
    listener = None
    notifier = TelegramNotifier(settings)
    if settings.LOG_FORWARD_LEVEL and notifier.has_route(Channel.DEBUG):
        listener = attach_notifier_sink(notifier, settings.LOG_FORWARD_LEVEL)
        logger.info(f"Forwarding {settings.LOG_FORWARD_LEVEL}+ logs to Telegram debug channel")

    app = create_app(settings)

    logger.info("Starting GitHub Task Relay...")
    logger.info(f"Project: {settings.GITHUB_PROJECT_ID or '(not configured)'}")
    logger.info(f"Listening on {settings.HOST}:{settings.PORT}")

    try:
        uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)
    except KeyboardInterrupt:
        logger.info("Application stopped")
    finally:
        if listener is not None:
            listener.stop()


if __name__ == "__main__":
    main()
