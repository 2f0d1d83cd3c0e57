import logging
from typing import Iterable, Optional

import config
import gemini_client
import state
import usage
from bookkeeping import ReceiptRecord, format_summary, parse_text_locally, to_record
from collector import ImageCollector
from delivery import ReplyChannel
from errors import LOG_AND_CONTINUE, MUST_REPORT, user_message
from media import classify_file, fetch_content
from messages import (AMULET_ENTER_TEXT, AMULET_FAILED_TEXT, AUDIO_FAILED_TEXT, AUDIO_NOT_RECORD_TEXT,
                      AUDIO_RESULT_TEXT, AUDIO_TOO_LONG_TEXT, CANCEL_TEXT, DESCRIPTION_SAVED_TEXT, ERROR_TEXTS,
                      EXAMPLE_TEXT, FORTUNE_ENTER_TEXT, FORTUNE_FAILED_TEXT, HELP_TEXT, IMAGE_LIMIT_TEXT,
                      IMAGE_RECEIVED_TEXT, IMAGES_CLEARED_TEXT, NO_IMAGES_TEXT, NO_MODE_TEXT, RECEIPT_FAILED_TEXT,
                      RECEIPT_PARTIAL_TEXT, RECEIPT_QUALITY_TEXT, RECEIPT_RETRY_TEXT, TEXT_NOT_RECORD_TEXT,
                      UNSUPPORTED_FILE_TEXT, VOICE_GUIDE_TEXT, Affordance)
from routing import Action, Route, match_command, route_media, route_text
from sentry_init import capture_exception as sentry_capture_exception
from sentry_init import set_tag as sentry_set_tag
from sentry_init import set_user as sentry_set_user
from sheets import SheetsClient, upload_receipt_image
from state import Mode, Session
from utils import compress_image_to_jpeg, hash_user, normalize_user_text, safe_log_event

logger = logging.getLogger(__name__)

_MODE_AFFORDANCE = {
    Mode.AMULET: Affordance.AMULET,
    Mode.FORTUNE: Affordance.FORTUNE,
}


def affordance_for(mode: Mode) -> Affordance:
    return _MODE_AFFORDANCE.get(mode, Affordance.DEFAULT)


def _fallback_affordance(session: Optional[Session]) -> Affordance:
    # the store may be the thing that failed; never read it again here
    return affordance_for(session.mode) if session is not None else Affordance.DEFAULT


class Dispatcher:
    """Routes each inbound LINE event by message type and the sender's session mode.

    `genai` is any object exposing the task functions of `gemini_client`;
    `upload` stores a receipt photo and returns its link.
    """

    def __init__(self, line_bot_api, store: Optional[state.StateBackend] = None, sheets: SheetsClient = None,
                 collector: ImageCollector = None, genai=None, upload=upload_receipt_image):
        self.api = line_bot_api
        self._store = store
        self.sheets = sheets if sheets is not None else SheetsClient()
        self.collector = collector if collector is not None else ImageCollector(store)
        self.genai = genai if genai is not None else gemini_client
        self.upload = upload

    @property
    def store(self) -> state.StateBackend:
        return self._store if self._store is not None else state.get_backend()

    def handle_events(self, events: Iterable) -> None:
        """Process one webhook delivery: sweep expired sessions, then each event in order."""
        try:
            removed = self.store.sweep_expired()
        except Exception as e:
            logger.exception('session sweep failed')
            sentry_capture_exception(e)
            removed = 0
        if removed:
            logger.info('swept %d expired sessions', removed)
        for event in events:
            self.handle_event(event)

    def handle_event(self, event) -> None:
        if getattr(event, 'type', None) != 'message':
            logger.debug('ignoring %s event', getattr(event, 'type', None))
            return
        user_id = getattr(event.source, 'user_id', None)
        kind = getattr(event.message, 'type', None)
        channel = ReplyChannel(self.api, event.reply_token, user_id)
        session = None

        try:
            session = self.store.get(user_id)
            sentry_set_user({'id': hash_user(user_id)})
            sentry_set_tag('event_type', kind)
            safe_log_event(logger, 'received_event', user=hash_user(user_id), event_type=kind,
                           mode=session.mode.value)
            if kind == 'text':
                self._on_text(event, user_id, session, channel)
            else:
                self._on_media(event, user_id, session, channel, kind)
        except MUST_REPORT as e:
            logger.warning('%s event for %s failed: %s', kind, hash_user(user_id), e)
            if not channel.used:
                channel.send(user_message(e), _fallback_affordance(session))
        except Exception as e:
            logger.exception('unhandled error processing %s event', kind)
            sentry_capture_exception(e)
            if not channel.used:
                channel.send(ERROR_TEXTS['default'], _fallback_affordance(session))

    # --- text ---

    def _on_text(self, event, user_id: str, session: Session, channel: ReplyChannel) -> None:
        text = normalize_user_text(event.message.text)
        route = route_text(session.mode, match_command(text))
        logger.debug('text route: %s -> %s', session.mode.value, route.action.value)
        aff = affordance_for(session.mode)

        if route.action == Action.HELP:
            channel.send(HELP_TEXT, aff)
        elif route.action == Action.QUOTA:
            channel.send(usage.summary(), aff)
        elif route.action == Action.VOICE_GUIDE:
            channel.send(VOICE_GUIDE_TEXT, aff)
        elif route.action in (Action.ENTER_AMULET, Action.ENTER_FORTUNE):
            self._enter_mode(user_id, route, channel)
        elif route.action == Action.CANCEL:
            self._cancel(user_id, session, channel)
        elif route.action == Action.FINALIZE:
            self._finalize(user_id, session, channel)
        elif route.action == Action.CLEAR:
            removed = self.collector.clear(user_id)
            channel.send(IMAGES_CLEARED_TEXT.format(count=removed), Affordance.AMULET)
        elif route.action == Action.DESCRIBE:
            self.collector.append_description(user_id, text)
            channel.send(DESCRIPTION_SAVED_TEXT.format(text=text), Affordance.AMULET)
        elif route.action == Action.EXAMPLE:
            channel.send(EXAMPLE_TEXT, aff)
        else:
            self._record_from_text(text, channel)

    def _enter_mode(self, user_id: str, route: Route, channel: ReplyChannel) -> None:
        self.store.set(user_id, Session(mode=route.next_mode))
        logger.info('user %s entered %s mode', hash_user(user_id), route.next_mode.value)
        if route.next_mode == Mode.AMULET:
            channel.send(AMULET_ENTER_TEXT, Affordance.AMULET)
        else:
            channel.send(FORTUNE_ENTER_TEXT, Affordance.FORTUNE)

    def _cancel(self, user_id: str, session: Session, channel: ReplyChannel) -> None:
        if session.is_default:
            channel.send(NO_MODE_TEXT, Affordance.DEFAULT)
            return
        detail = f'（已清除 {len(session.images)} 張圖片）' if session.images else ''
        self.store.delete(user_id)
        channel.send(CANCEL_TEXT.format(detail=detail), Affordance.DEFAULT)

    def _finalize(self, user_id: str, session: Session, channel: ReplyChannel) -> None:
        if not session.images:
            channel.send(NO_IMAGES_TEXT, Affordance.AMULET)
            return
        # QuotaExceededError propagates with the session untouched
        copy = self.genai.generate_amulet_copy(session.images, session.description)
        if not copy:
            channel.send(AMULET_FAILED_TEXT, Affordance.AMULET)
            return
        self.store.delete(user_id)
        channel.send(copy, Affordance.DEFAULT)

    def _record_from_text(self, text: str, channel: ReplyChannel) -> None:
        record = self._parse_record(text)
        if record is None:
            channel.send(TEXT_NOT_RECORD_TEXT, Affordance.DEFAULT)
            return
        channel.send(format_summary(record), Affordance.DEFAULT)
        self._persist(record)

    def _parse_record(self, text: str) -> Optional[ReceiptRecord]:
        """Local parse first; the model is only asked when the text is not in a simple format."""
        record = parse_text_locally(text)
        if record is None:
            record = to_record(self.genai.parse_text(text))
        if record is None or not record.items:
            return None
        return record

    # --- media ---

    def _on_media(self, event, user_id: str, session: Session, channel: ReplyChannel, kind: str) -> None:
        message = event.message
        file_name = getattr(message, 'file_name', None)
        route = route_media(session.mode, kind, file_name)
        logger.debug('media route: %s/%s -> %s', session.mode.value, kind, route.action.value)

        if route.action == Action.RECOGNIZE_RECEIPT:
            self._recognize_receipt(message, channel)
        elif route.action == Action.COLLECT_IMAGE:
            self._collect_image(message, user_id, channel)
        elif route.action == Action.TRANSCRIBE_ACCOUNTING:
            self._transcribe_accounting(message, kind, file_name, channel)
        elif route.action == Action.TRANSLATE_FORTUNE:
            self._translate_fortune(message, kind, file_name, user_id, channel)
        elif route.action == Action.REJECT_FILE:
            channel.send(UNSUPPORTED_FILE_TEXT, affordance_for(session.mode))

    def _recognize_receipt(self, message, channel: ReplyChannel) -> None:
        data, mime = fetch_content(self.api, message.id, 'image')
        image, jpeg_mime = compress_image_to_jpeg(data)
        value = self.genai.recognize_receipt(image, jpeg_mime or mime)
        record = to_record(value)
        if record is None:
            channel.send(RECEIPT_RETRY_TEXT, Affordance.DEFAULT)
            return
        if not record.items:
            if record.has_quality_issue:
                channel.send(RECEIPT_QUALITY_TEXT.format(note=record.note), Affordance.DEFAULT)
            elif record.payee or record.date:
                channel.send(RECEIPT_PARTIAL_TEXT.format(payee=record.payee or '未知', date=record.date or '未知'),
                             Affordance.DEFAULT)
            else:
                channel.send(RECEIPT_FAILED_TEXT, Affordance.DEFAULT)
            return

        summary = format_summary(record)
        if record.note:
            summary += f'\n📝 {record.note}'
        channel.send(summary, Affordance.DEFAULT)
        self._persist(record, image)

    def _collect_image(self, message, user_id: str, channel: ReplyChannel) -> None:
        limit = self.collector.max_images
        # bound is checked before downloading anything
        if not self.collector.has_room(user_id):
            channel.send(IMAGE_LIMIT_TEXT.format(limit=limit), Affordance.AMULET)
            return
        data, mime = fetch_content(self.api, message.id, 'image')
        image, jpeg_mime = compress_image_to_jpeg(data)
        count = self.collector.add(user_id, image, jpeg_mime or mime)
        if count is None:
            channel.send(IMAGE_LIMIT_TEXT.format(limit=limit), Affordance.AMULET)
            return
        left = limit - count
        more = f'還可以傳 {left} 張 / ส่งได้อีก {left} รูป' if left else f'已達 {limit} 張上限 / ครบ {limit} รูปแล้ว'
        channel.send(IMAGE_RECEIVED_TEXT.format(count=count, more=more), Affordance.AMULET)

    def _transcribe_accounting(self, message, kind: str, file_name: Optional[str], channel: ReplyChannel) -> None:
        duration = getattr(message, 'duration', None) or 0
        if duration > config.MAX_AUDIO_DURATION_MS:
            channel.send(AUDIO_TOO_LONG_TEXT.format(seconds=config.MAX_AUDIO_DURATION_MS // 1000),
                         Affordance.DEFAULT)
            return
        category = _media_category(kind, file_name)
        data, mime = fetch_content(self.api, message.id, category, file_name)
        transcript = self.genai.transcribe(data, mime, duration, 'audio')
        if not transcript:
            channel.send(AUDIO_FAILED_TEXT, Affordance.DEFAULT)
            return
        record = self._parse_record(transcript)
        if record is None:
            channel.send(AUDIO_NOT_RECORD_TEXT.format(transcript=transcript), Affordance.DEFAULT)
            return
        channel.send(AUDIO_RESULT_TEXT.format(transcript=transcript, summary=format_summary(record)),
                     Affordance.DEFAULT)
        self._persist(record)

    def _translate_fortune(self, message, kind: str, file_name: Optional[str], user_id: str,
                           channel: ReplyChannel) -> None:
        duration = getattr(message, 'duration', None) or 0
        category = _media_category(kind, file_name)
        data, mime = fetch_content(self.api, message.id, category, file_name)
        transcript = self.genai.transcribe(data, mime, duration, 'fortune')
        reading = self.genai.rewrite_fortune(transcript, duration) if transcript else None
        if not reading:
            channel.send(FORTUNE_FAILED_TEXT, Affordance.FORTUNE)
            return
        self.store.delete(user_id)
        channel.send(reading, Affordance.DEFAULT)

    # --- persistence (log and continue) ---

    def _persist(self, record: ReceiptRecord, image: Optional[bytes] = None) -> None:
        image_url = ''
        if image is not None:
            image_url = _secondary('drive_upload', self.upload, image, record) or ''
        _secondary('sheets_append', self.sheets.append_record, record, image_url)


def _secondary(step: str, func, *args):
    """Run a step whose failure must not reach the user; errors are logged and reported."""
    if step not in LOG_AND_CONTINUE:
        raise ValueError(f'{step} is not a log-and-continue step')
    try:
        return func(*args)
    except Exception as e:
        logger.exception('%s failed', step)
        sentry_capture_exception(e)
        return None


def _media_category(kind: str, file_name: Optional[str]) -> str:
    if kind in ('audio', 'video'):
        return kind
    return classify_file(file_name) or 'file'
