import os
from datetime import datetime
from zoneinfo import ZoneInfo


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


LINE_CHANNEL_ACCESS_TOKEN = os.getenv('LINE_CHANNEL_ACCESS_TOKEN')
LINE_CHANNEL_SECRET = os.getenv('LINE_CHANNEL_SECRET')

# size limits per media category (MB)
MAX_IMAGE_MB = _int_env('MAX_IMAGE_MB', 4)
MAX_AUDIO_MB = _int_env('MAX_AUDIO_MB', 10)
MAX_VIDEO_MB = _int_env('MAX_VIDEO_MB', 20)
MAX_FILE_MB = _int_env('MAX_FILE_MB', 20)

# accounting voice notes longer than this are rejected before download
MAX_AUDIO_DURATION_MS = _int_env('MAX_AUDIO_DURATION_MS', 60000)

# LINE hard limit is 5000 characters per text message; keep a buffer
MAX_LINE_MESSAGE_LENGTH = _int_env('MAX_LINE_MESSAGE_LENGTH', 4500)

MAX_AMULET_IMAGES = _int_env('MAX_AMULET_IMAGES', 5)
SESSION_TIMEOUT_MIN = _int_env('SESSION_TIMEOUT_MIN', 30)

REDIS_URL = os.getenv('REDIS_URL')

SPREADSHEET_ID = os.getenv('SPREADSHEET_ID')
SHEET_NAME = os.getenv('SHEET_NAME', '收據記錄')
APPS_SCRIPT_URL = os.getenv('APPS_SCRIPT_URL')
GOOGLE_DRIVE_FOLDER_ID = os.getenv('GOOGLE_DRIVE_FOLDER_ID', '')

TAIPEI = ZoneInfo('Asia/Taipei')


def taiwan_today() -> str:
    return datetime.now(TAIPEI).strftime('%Y-%m-%d')
