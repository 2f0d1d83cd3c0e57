import logging
from typing import Optional

import config
import state
from state import Mode, Session

logger = logging.getLogger(__name__)


class ImageCollector:
    """Accumulates up to `max_images` photos and notes for one amulet session.

    Every call re-reads the session from the store; nothing is cached
    between webhook deliveries.
    """

    def __init__(self, store: Optional[state.StateBackend] = None, max_images: int = None):
        self._store = store
        self.max_images = max_images if max_images is not None else config.MAX_AMULET_IMAGES

    @property
    def store(self) -> state.StateBackend:
        return self._store if self._store is not None else state.get_backend()

    def session(self, user_id: str) -> Session:
        return self.store.get(user_id)

    def has_room(self, user_id: str) -> bool:
        return len(self.session(user_id).images) < self.max_images

    def add(self, user_id: str, data: bytes, mime_type: str) -> Optional[int]:
        """Append an image; returns the new count, or None when the bound is reached."""
        s = self.session(user_id)
        if len(s.images) >= self.max_images:
            return None
        s.images.append({'data': data, 'mime_type': mime_type})
        self.store.set(user_id, s)
        logger.info('amulet image %d/%d stored', len(s.images), self.max_images)
        return len(s.images)

    def append_description(self, user_id: str, text: str) -> str:
        s = self.session(user_id)
        s.description = f'{s.description}\n{text}' if s.description else text
        self.store.set(user_id, s)
        return s.description

    def clear(self, user_id: str) -> int:
        """Drop collected images and notes but stay in amulet mode; returns images removed."""
        s = self.session(user_id)
        removed = len(s.images)
        s.images = []
        s.description = ''
        s.mode = Mode.AMULET
        self.store.set(user_id, s)
        return removed
