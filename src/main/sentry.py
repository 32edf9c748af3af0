import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from loggers import get_logger
from src.main.config import config

logger = get_logger(__name__)

_sentry_initialized = False

FILTERED = "[Filtered]"


def scrub_event(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any]:
    """
    Strip credentials from the request part of an event before it leaves the
    process: the refresh cookie and the Authorization header.
    """
    request = event.get("request")
    if not isinstance(request, dict):
        return event

    headers = request.get("headers")
    if isinstance(headers, dict):
        for name in list(headers):
            if name.lower() in {"authorization", "cookie", "set-cookie"}:
                headers[name] = FILTERED

    cookies = request.get("cookies")
    if isinstance(cookies, dict) and config.jwt.REFRESH_TOKEN_COOKIE in cookies:
        cookies[config.jwt.REFRESH_TOKEN_COOKIE] = FILTERED

    return event


def init_sentry() -> None:
    """
    Initialize the Sentry client once using environment variables.
    """
    global _sentry_initialized

    if _sentry_initialized:
        return

    if config.app.DEBUG or config.app.TESTING:
        logger.info("DEBUG/TESTING enabled. Skipping Sentry initialization.")
        return

    if not config.sentry.SENTRY_ENABLED or not config.sentry.SENTRY_DSN:
        logger.info("Sentry disabled or DSN empty. Skipping Sentry initialization.")
        return

    sentry_sdk.init(
        dsn=config.sentry.SENTRY_DSN,
        environment=config.sentry.SENTRY_ENV,
        release=config.app.VERSION,
        send_default_pii=False,
        before_send=scrub_event,  # type: ignore[arg-type]
        integrations=[
            LoggingIntegration(
                level=logging.INFO,
                # Lower levels reach Sentry only through explicit capture
                event_level=logging.CRITICAL,
            ),
        ],
    )
    _sentry_initialized = True
    logger.info("Sentry initialized.")
