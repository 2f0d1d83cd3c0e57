import base64
import hashlib
import hmac
import json

import pytest

import app
from handlers import Dispatcher


def sign(body: str, secret: str = 'fake_secret') -> str:
    digest = hmac.new(secret.encode('utf-8'), body.encode('utf-8'), hashlib.sha256).digest()
    return base64.b64encode(digest).decode('utf-8')


def text_event(text, user_id='U1', token='rt'):
    return {
        'type': 'message',
        'mode': 'active',
        'timestamp': 1700000000000,
        'source': {'type': 'user', 'userId': user_id},
        'replyToken': token,
        'webhookEventId': 'evt',
        'deliveryContext': {'isRedelivery': False},
        'message': {'type': 'text', 'id': '1', 'text': text},
    }


@pytest.fixture
def client(monkeypatch, line_api, fake_genai, fake_sheets, fresh_state):
    monkeypatch.setattr(app, 'dispatcher', Dispatcher(line_api, store=fresh_state, sheets=fake_sheets,
                                                      genai=fake_genai))
    return app.app.test_client()


def test_healthz(client):
    r = client.get('/healthz')
    assert r.status_code == 200
    assert r.data == b'ok'


def test_callback_get_verification(client):
    r = client.get('/callback')
    assert r.get_json() == {'status': 'ok'}


def test_callback_invalid_signature(client, line_api):
    body = json.dumps({'destination': 'U0', 'events': [text_event('說明')]})
    r = client.post('/callback', data=body, headers={'X-Line-Signature': 'bad'})
    assert r.status_code == 400
    assert line_api.replies == []


def test_callback_dispatches_in_order(client, line_api, fresh_state):
    body = json.dumps({'destination': 'U0', 'events': [
        text_event('佛牌', token='rt1'),
        text_event('龍婆本', token='rt2'),
    ]}, ensure_ascii=False)
    r = client.post('/callback', data=body.encode('utf-8'),
                    headers={'X-Line-Signature': sign(body), 'Content-Type': 'application/json'})
    assert r.status_code == 200
    assert r.data == b'OK'
    assert [t for t, _ in line_api.replies] == ['rt1', 'rt2']
    assert fresh_state.get('U1').description == '龍婆本'


def test_callback_acknowledges_even_when_handler_fails(client, line_api, fake_genai):
    fake_genai.raise_on['parse_text'] = RuntimeError('boom')
    body = json.dumps({'destination': 'U0', 'events': [text_event('你好')]}, ensure_ascii=False)
    r = client.post('/callback', data=body.encode('utf-8'), headers={'X-Line-Signature': sign(body)})
    assert r.status_code == 200
    assert len(line_api.replies) == 1


def test_debug_endpoints_hide_values(client):
    status = client.get('/_debug/handler_status').get_json()
    assert status['parser_initialized'] is True
    env = client.get('/_debug/env_presence').get_json()
    assert env['LINE_CHANNEL_SECRET'] is True
    assert 'fake_secret' not in json.dumps(env)
