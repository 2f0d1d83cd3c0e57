import logging
import os

import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)


def init_sentry() -> bool:
    """Initialize Sentry if SENTRY_DSN present. Returns True if initialized."""
    dsn = os.getenv('SENTRY_DSN')
    if not dsn:
        return False

    # breadcrumbs from INFO, events only from ERROR logs
    logging_integration = LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
    try:
        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration(), logging_integration],
            traces_sample_rate=float(os.getenv('SENTRY_TRACES_SAMPLE_RATE', '0.1')),
            environment=os.getenv('ENVIRONMENT', 'dev'),
            release=os.getenv('RELEASE', 'local'),
            # LINE user ids are personal data; only hashes are attached
            send_default_pii=False,
        )
        return True
    except Exception:
        logger.exception('sentry init failed')
        return False


def capture_exception(exc: Exception):
    try:
        sentry_sdk.capture_exception(exc)
    except Exception:
        logger.debug('sentry capture failed', exc_info=True)


def set_user(user: dict):
    if not user:
        return
    try:
        sentry_sdk.set_user(user)
    except Exception:
        logger.debug('sentry set_user failed', exc_info=True)


def set_tag(key: str, value):
    try:
        sentry_sdk.set_tag(key, value)
    except Exception:
        logger.debug('sentry set_tag failed', exc_info=True)
