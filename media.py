import logging
import os
from typing import Optional, Tuple

from linebot.exceptions import LineBotApiError

import config
from errors import DownloadError, PayloadTooLargeError

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = {'m4a', 'mp3', 'wav', 'aac', 'ogg', 'flac', 'amr'}
VIDEO_EXTENSIONS = {'mp4', 'mov', 'm4v', '3gp', 'webm'}

_DEFAULT_MIME = {
    'image': 'image/jpeg',
    'audio': 'audio/mp4',
    'video': 'video/mp4',
}

_EXT_MIME = {
    'm4a': 'audio/mp4', 'aac': 'audio/mp4', 'mp3': 'audio/mpeg', 'wav': 'audio/wav',
    'ogg': 'audio/ogg', 'flac': 'audio/flac', 'amr': 'audio/amr',
    'mp4': 'video/mp4', 'm4v': 'video/mp4', 'mov': 'video/quicktime',
    '3gp': 'video/3gpp', 'webm': 'video/webm',
}


def max_bytes(category: str) -> int:
    mb = {
        'image': config.MAX_IMAGE_MB,
        'audio': config.MAX_AUDIO_MB,
        'video': config.MAX_VIDEO_MB,
    }.get(category, config.MAX_FILE_MB)
    return mb * 1024 * 1024


def classify_file(file_name: Optional[str]) -> Optional[str]:
    """Return 'audio', 'video' or None for an uploaded file name."""
    ext = os.path.splitext(file_name or '')[1].lower().lstrip('.')
    if ext in AUDIO_EXTENSIONS:
        return 'audio'
    if ext in VIDEO_EXTENSIONS:
        return 'video'
    return None


def normalize_mime(raw: Optional[str], category: str, file_name: Optional[str] = None) -> str:
    mime = (raw or '').split(';')[0].strip().lower()
    if category == 'audio' and ('m4a' in mime or 'aac' in mime):
        return 'audio/mp4'
    if category == 'video' and not mime.startswith('video/'):
        return 'video/mp4'
    if not mime or mime == 'application/octet-stream':
        ext = os.path.splitext(file_name or '')[1].lower().lstrip('.')
        return _EXT_MIME.get(ext, _DEFAULT_MIME.get(category, 'application/octet-stream'))
    return mime


def _read_content(content) -> bytes:
    data = getattr(content, 'content', None)
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if hasattr(content, 'iter_content'):
        return b''.join(bytes(chunk) for chunk in content.iter_content(1024 * 64) if chunk)
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    raise DownloadError(f'unexpected content type {type(content).__name__}')


def fetch_content(line_bot_api, message_id: str, category: str, file_name: Optional[str] = None) -> Tuple[bytes, str]:
    """Download a message's binary content.

    Raises PayloadTooLargeError(category) above the category limit and
    DownloadError when LINE refuses or the payload cannot be read.
    """
    try:
        content = line_bot_api.get_message_content(message_id)
    except LineBotApiError as e:
        logger.error('LINE %s download failed: status=%s', category, e.status_code)
        raise DownloadError(str(e)) from e

    data = _read_content(content)
    mime = normalize_mime(getattr(content, 'content_type', None), category, file_name)
    logger.info('downloaded %s: %.2fKB, MIME: %s', category, len(data) / 1024, mime)

    if len(data) > max_bytes(category):
        raise PayloadTooLargeError(category)
    if not data:
        raise DownloadError('empty content')
    return data, mime
