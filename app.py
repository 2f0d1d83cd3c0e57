#!/usr/bin/env python3
import logging
import os

from flask import Flask, abort, request
from linebot import LineBotApi, WebhookParser
from linebot.exceptions import InvalidSignatureError


# Render's Secret Files feature writes plaintext files to /etc/secrets/<NAME>.
# Load them into os.environ before config is imported so os.getenv sees them.
def _load_secrets_from_files(keys, base_path='/etc/secrets'):
    for k in keys:
        if os.getenv(k) is not None:
            continue
        p = os.path.join(base_path, k)
        try:
            if os.path.exists(p):
                with open(p, 'r', encoding='utf-8') as f:
                    v = f.read().strip()
                    if v:
                        os.environ[k] = v
        except OSError:
            logging.getLogger(__name__).exception('failed loading secret file %s', p)


SECRET_KEYS = [
    'LINE_CHANNEL_ACCESS_TOKEN',
    'LINE_CHANNEL_SECRET',
    'GENAI_API_KEY',
    'SENTRY_DSN',
    'REDIS_URL',
    'SPREADSHEET_ID',
    'GOOGLE_SERVICE_ACCOUNT_EMAIL',
    'GOOGLE_PRIVATE_KEY',
    'APPS_SCRIPT_URL',
]

_load_secrets_from_files(SECRET_KEYS)

import config  # noqa: E402
from handlers import Dispatcher  # noqa: E402
from sentry_init import init_sentry  # noqa: E402

# logging configuration (env: LOG_LEVEL, LOG_FILE)
log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
log_file = os.getenv('LOG_FILE')
if log_file:
    log_handlers = [logging.FileHandler(log_file), logging.StreamHandler()]
else:
    log_handlers = [logging.StreamHandler()]
logging.basicConfig(level=getattr(logging, log_level, logging.INFO),
                    format='%(asctime)s %(levelname)s %(name)s %(message)s', handlers=log_handlers)
logger = logging.getLogger(__name__)

if init_sentry():
    logger.info('Sentry initialized')

app = Flask(__name__)

line_bot_api = LineBotApi(config.LINE_CHANNEL_ACCESS_TOKEN) if config.LINE_CHANNEL_ACCESS_TOKEN else None
parser = WebhookParser(config.LINE_CHANNEL_SECRET) if config.LINE_CHANNEL_SECRET else None
dispatcher = Dispatcher(line_bot_api) if line_bot_api else None


@app.route('/healthz', methods=['GET'])
def healthz():
    return 'ok', 200


@app.route('/callback', methods=['GET'])
def callback_verify():
    return {'status': 'ok'}, 200


@app.route('/callback', methods=['POST'])
def callback():
    if not parser or not dispatcher:
        abort(500)
    signature = request.headers.get('X-Line-Signature', '')
    body = request.get_data(as_text=True)
    try:
        events = parser.parse(body, signature)
    except InvalidSignatureError:
        logger.warning('invalid webhook signature')
        abort(400)
    logger.info('webhook delivery with %d events', len(events))
    # per-event failures are trapped inside the dispatcher; always acknowledge
    dispatcher.handle_events(events)
    return 'OK', 200


# --- Debug endpoints (safe: do NOT return secrets) ---
@app.route('/_debug/handler_status', methods=['GET'])
def _debug_handler_status():
    return {
        'parser_initialized': bool(parser),
        'line_bot_api_initialized': bool(line_bot_api),
        'dispatcher_initialized': bool(dispatcher),
        'session_backend': type(dispatcher.store).__name__ if dispatcher else None,
    }, 200


@app.route('/_debug/env_presence', methods=['GET'])
def _debug_env_presence():
    # presence only, never values
    return {k: (os.getenv(k) is not None) for k in SECRET_KEYS}, 200


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.getenv('PORT', 5000)))
