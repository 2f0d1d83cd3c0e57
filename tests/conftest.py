import os
import types

import pytest


def pytest_configure(config):
    # 設定環境變數以避免 app 在 import 時失敗
    os.environ.setdefault('GENAI_API_KEY', 'fake_key')
    os.environ.setdefault('LINE_CHANNEL_ACCESS_TOKEN', 'fake_token')
    os.environ.setdefault('LINE_CHANNEL_SECRET', 'fake_secret')
    # keep the in-memory session store and skip external persistence
    for k in ('REDIS_URL', 'SPREADSHEET_ID', 'APPS_SCRIPT_URL', 'SENTRY_DSN'):
        os.environ.pop(k, None)


class RecordingLineApi:
    """Stands in for linebot.LineBotApi; records every outbound message."""

    def __init__(self):
        self.replies = []
        self.pushes = []
        self.downloads = []
        self.contents = {}

    def reply_message(self, reply_token, message):
        self.replies.append((reply_token, message))

    def push_message(self, to, message):
        self.pushes.append((to, message))

    def get_message_content(self, message_id):
        self.downloads.append(message_id)
        data, content_type = self.contents.get(message_id, (b'fakeimagebytes', 'image/jpeg'))
        return types.SimpleNamespace(content=data, content_type=content_type)

    @property
    def texts(self):
        return [m.text for _, m in self.replies] + [m.text for _, m in self.pushes]


class ScriptedGenai:
    """Replaces gemini_client task functions with canned results."""

    def __init__(self):
        self.calls = []
        self.receipt = None
        self.parsed = None
        self.transcript = None
        self.fortune = None
        self.amulet = None
        self.raise_on = {}

    def _call(self, name, *args):
        self.calls.append((name, args))
        if name in self.raise_on:
            raise self.raise_on[name]

    def recognize_receipt(self, image, mime):
        self._call('recognize_receipt', image, mime)
        return self.receipt

    def parse_text(self, text):
        self._call('parse_text', text)
        return self.parsed

    def transcribe(self, data, mime, duration_ms=0, task='audio'):
        self._call('transcribe', data, mime, duration_ms, task)
        return self.transcript

    def rewrite_fortune(self, text, duration_ms=0):
        self._call('rewrite_fortune', text, duration_ms)
        return self.fortune

    def generate_amulet_copy(self, images, description=''):
        self._call('generate_amulet_copy', images, description)
        return self.amulet

    def called(self, name):
        return [args for n, args in self.calls if n == name]


class InMemorySheets:
    def __init__(self):
        self.records = []

    def append_record(self, record, image_url=''):
        self.records.append((record, image_url))
        return len(record.items)


@pytest.fixture(autouse=True)
def fresh_state(monkeypatch):
    import state
    import usage

    store = state.MemoryState()
    monkeypatch.setattr(state, '_backend', store)
    monkeypatch.setattr(usage, 'tracker', usage.UsageTracker(today=lambda: '2025-01-01'))
    return store


@pytest.fixture
def line_api():
    return RecordingLineApi()


@pytest.fixture
def fake_genai():
    return ScriptedGenai()


@pytest.fixture
def fake_sheets():
    return InMemorySheets()


@pytest.fixture
def uploads():
    return []


@pytest.fixture
def dispatcher(line_api, fake_genai, fake_sheets, fresh_state, uploads):
    from handlers import Dispatcher

    def upload(image, record):
        uploads.append((image, record))
        return 'https://drive.example/receipt'

    return Dispatcher(line_api, store=fresh_state, sheets=fake_sheets, genai=fake_genai, upload=upload)


@pytest.fixture
def make_event():
    from linebot.models import (AudioMessage, FileMessage, ImageMessage, MessageEvent, SourceUser, TextMessage,
                                VideoMessage)

    counter = {'n': 0}

    def _make(kind, user_id='U1', **payload):
        counter['n'] += 1
        mid = payload.pop('id', f'm{counter["n"]}')
        if kind == 'text':
            message = TextMessage(id=mid, text=payload['text'])
        elif kind == 'image':
            message = ImageMessage(id=mid)
        elif kind == 'audio':
            message = AudioMessage(id=mid, duration=payload.get('duration', 5000))
        elif kind == 'video':
            message = VideoMessage(id=mid, duration=payload.get('duration', 5000))
        elif kind == 'file':
            message = FileMessage(id=mid, file_name=payload['file_name'], file_size=payload.get('file_size', 100))
        else:
            raise ValueError(kind)
        return MessageEvent(timestamp=0, source=SourceUser(user_id=user_id),
                            reply_token=f'rt{counter["n"]}', message=message)

    return _make
