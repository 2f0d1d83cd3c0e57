"""Error kinds raised by the bot and the policy deciding which ones reach the user.

Soft outcomes (safety-blocked responses, truncated output that could not be
repaired, responses without a structured value) are not exceptions: the
task functions return ``None`` and the handler asks the user to retry.
"""
from typing import Optional, Tuple

from messages import ERROR_TEXTS, TOO_LARGE_TEXTS


class BotError(Exception):
    pass


class QuotaExceededError(BotError):
    pass


class PayloadTooLargeError(BotError):
    def __init__(self, category: str):
        super().__init__(f'{category} too large')
        self.category = category


class DownloadError(BotError):
    pass


class UpstreamError(BotError):
    """Model endpoint unavailable or returned a malformed response."""


# errors translated into a bilingual reply
MUST_REPORT: Tuple[type, ...] = (QuotaExceededError, PayloadTooLargeError, DownloadError)

# secondary failures: logged, never shown to the user
LOG_AND_CONTINUE = ('sheets_append', 'drive_upload')


def user_message(exc: BaseException) -> Optional[str]:
    """Return the bilingual text for a must-report error, or None."""
    if isinstance(exc, QuotaExceededError):
        return ERROR_TEXTS['quota']
    if isinstance(exc, PayloadTooLargeError):
        return TOO_LARGE_TEXTS.get(exc.category, TOO_LARGE_TEXTS['file'])
    if isinstance(exc, DownloadError):
        return ERROR_TEXTS['download']
    return None
