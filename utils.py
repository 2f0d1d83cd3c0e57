import hashlib
import logging
import os
import re
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image

logger = logging.getLogger(__name__)

_ZERO_WIDTH_RE = re.compile(r'[\u200B-\u200D\uFEFF]')
_SAFE_LOG_KEYS = ('user', 'event_type', 'mode', 'size', 'duration_ms')


def hash_user(user_id: str) -> str:
    return hashlib.sha256((user_id or '').encode('utf-8')).hexdigest()[:16]


def normalize_user_text(text: str, max_len: int = 2000) -> str:
    """Strip zero-width characters, full-width spaces and surrounding blanks."""
    if not text:
        return ''
    s = _ZERO_WIDTH_RE.sub('', text)
    s = s.replace('\u3000', ' ').replace('\r', '\n')
    s = re.sub(r'\n{3,}', '\n\n', s)
    if len(s) > max_len:
        s = s[:max_len]
    return s.strip()


def compress_image_to_jpeg(image_bytes: bytes, max_dim: int = None, quality: int = None) -> Tuple[bytes, Optional[str]]:
    """Downscale and re-encode an image as JPEG. Returns (bytes, 'image/jpeg').

    On decode failure returns (original bytes, None).
    """
    if max_dim is None:
        try:
            max_dim = int(os.getenv('IMAGE_MAX_DIM_PX', '2048'))
        except Exception:
            max_dim = 2048
    if quality is None:
        try:
            quality = int(os.getenv('IMAGE_JPEG_QUALITY', '85'))
        except Exception:
            quality = 85

    try:
        with BytesIO(image_bytes) as inp:
            img = Image.open(inp)
            if img.mode in ('RGBA', 'LA'):
                bg = Image.new('RGB', img.size, (255, 255, 255))
                bg.paste(img, mask=img.split()[-1])
                img = bg
            else:
                img = img.convert('RGB')

            w, h = img.size
            longest = max(w, h)
            if longest > max_dim:
                scale = max_dim / float(longest)
                img = img.resize((int(w * scale), int(h * scale)), Image.LANCZOS)

            out = BytesIO()
            img.save(out, format='JPEG', quality=quality, optimize=True)
            return out.getvalue(), 'image/jpeg'
    except Exception:
        logger.warning('image recompression failed, sending original bytes', exc_info=True)
        return image_bytes, None


def safe_log_event(logger: logging.Logger, message: str, **kwargs) -> None:
    """Log an event with only non-sensitive tags (user ids must be pre-hashed)."""
    allowed = {k: v for k, v in kwargs.items() if k in _SAFE_LOG_KEYS}
    logger.info('%s %s', message, allowed)
