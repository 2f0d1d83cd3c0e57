"""Outbound replies split to fit LINE's per-message text limit.

The reply token of an event can be used once; everything after the first
segment goes out through the push API, which needs the user id.
"""
import logging
from typing import List, Optional

from linebot.exceptions import LineBotApiError
from linebot.models import TextSendMessage

import config
from messages import Affordance, build_quick_reply

logger = logging.getLogger(__name__)


def split_message(text: str, limit: int = None) -> List[str]:
    """Split text into segments of at most `limit` characters.

    Prefers the last newline inside the window when it sits at or past half
    the limit; otherwise cuts hard at the limit. Leading whitespace of each
    following remainder is dropped.
    """
    if limit is None:
        limit = config.MAX_LINE_MESSAGE_LENGTH
    if not text:
        return []
    segments: List[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= limit:
            segments.append(remaining)
            break
        cut = remaining.rfind('\n', 0, limit + 1)
        if cut == -1 or cut < limit * 0.5:
            cut = limit
        segments.append(remaining[:cut])
        remaining = remaining[cut:].lstrip()
    return segments


def _text_message(text: str, affordance: Optional[Affordance]) -> TextSendMessage:
    return TextSendMessage(text=text, quick_reply=build_quick_reply(affordance))


class ReplyChannel:
    """Single-use reply for one inbound event plus push fallback for overflow."""

    def __init__(self, line_bot_api, reply_token: str, user_id: Optional[str] = None, limit: int = None):
        self.api = line_bot_api
        self.reply_token = reply_token
        self.user_id = user_id
        self.limit = limit if limit is not None else config.MAX_LINE_MESSAGE_LENGTH
        self.used = False

    def _reply(self, text: str, affordance: Optional[Affordance]) -> None:
        self.used = True
        try:
            self.api.reply_message(self.reply_token, _text_message(text, affordance))
        except LineBotApiError as e:
            logger.error('reply failed: status=%s message=%s', e.status_code, e.message)

    def _push(self, text: str, affordance: Optional[Affordance]) -> None:
        if not self.user_id:
            logger.warning('no user id for push; dropping %d chars', len(text))
            return
        try:
            self.api.push_message(self.user_id, _text_message(text, affordance))
        except LineBotApiError as e:
            logger.error('push failed: status=%s message=%s', e.status_code, e.message)

    def send(self, text: str, affordance: Optional[Affordance] = Affordance.DEFAULT) -> int:
        """Deliver text; returns the number of segments sent or attempted."""
        segments = split_message(text, self.limit)
        if not segments:
            return 0
        if len(segments) > 1:
            logger.info('message of %d chars split into %d segments', len(text), len(segments))
        last = len(segments) - 1
        for i, seg in enumerate(segments):
            # only the final segment carries the buttons
            aff = affordance if i == last else None
            if i == 0 and not self.used:
                self._reply(seg, aff)
            else:
                if i == 0:
                    logger.warning('reply token already used; falling back to push')
                self._push(seg, aff)
        return len(segments)


def deliver(line_bot_api, reply_token: str, text: str, user_id: Optional[str] = None,
            affordance: Optional[Affordance] = Affordance.DEFAULT) -> int:
    return ReplyChannel(line_bot_api, reply_token, user_id).send(text, affordance)
