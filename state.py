import base64
import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import redis

import config

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    RECEIPT = 'receipt'
    AMULET = 'amulet'
    FORTUNE = 'fortune'


@dataclass
class Session:
    mode: Mode = Mode.RECEIPT
    description: str = ''
    # each entry: {'data': bytes, 'mime_type': str}
    images: List[Dict[str, Any]] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_default(self) -> bool:
        return self.mode == Mode.RECEIPT

    def to_json(self) -> str:
        return json.dumps({
            'mode': self.mode.value,
            'description': self.description,
            'images': [
                {'data': base64.b64encode(img['data']).decode('ascii'), 'mime_type': img['mime_type']}
                for img in self.images
            ],
            'created_at': self.created_at.isoformat(),
        })

    @classmethod
    def from_json(cls, raw: str) -> 'Session':
        d = json.loads(raw)
        return cls(
            mode=Mode(d.get('mode', Mode.RECEIPT.value)),
            description=d.get('description', ''),
            images=[
                {'data': base64.b64decode(img['data']), 'mime_type': img['mime_type']}
                for img in d.get('images', [])
            ],
            created_at=datetime.fromisoformat(d['created_at']),
        )


class StateBackend:
    def get(self, user_id: str) -> Session:
        raise NotImplementedError

    def set(self, user_id: str, session: Session) -> None:
        raise NotImplementedError

    def delete(self, user_id: str) -> None:
        raise NotImplementedError

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        raise NotImplementedError


class MemoryState(StateBackend):
    def __init__(self, timeout_min: int = config.SESSION_TIMEOUT_MIN):
        self._lock = threading.Lock()
        self._sessions: Dict[str, Session] = {}
        self.timeout = timedelta(minutes=timeout_min)

    def get(self, user_id: str) -> Session:
        with self._lock:
            s = self._sessions.get(user_id)
        # absence is not an error: unknown users are in the default mode
        return s if s is not None else Session()

    def set(self, user_id: str, session: Session) -> None:
        with self._lock:
            self._sessions[user_id] = session

    def delete(self, user_id: str) -> None:
        with self._lock:
            self._sessions.pop(user_id, None)

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        removed = 0
        with self._lock:
            for uid, s in list(self._sessions.items()):
                if now - s.created_at > self.timeout:
                    self._sessions.pop(uid, None)
                    removed += 1
        return removed

    def __len__(self) -> int:
        return len(self._sessions)


class RedisState(StateBackend):
    """Shared session store for multi-worker deployments.

    Read-modify-write sequences are not transactional; two overlapping
    deliveries for the same user can still overwrite each other.
    """

    def __init__(self, url: str = 'redis://localhost:6379/0', timeout_min: int = config.SESSION_TIMEOUT_MIN, client=None):
        self._client = client if client is not None else redis.from_url(url)
        self.ttl = timeout_min * 60

    def _key(self, user_id: str) -> str:
        return f'session:{user_id}'

    def get(self, user_id: str) -> Session:
        raw = self._client.get(self._key(user_id))
        if not raw:
            return Session()
        if isinstance(raw, bytes):
            raw = raw.decode('utf-8', errors='replace')
        try:
            return Session.from_json(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning('discarding undecodable session %s', self._key(user_id), exc_info=True)
            self._client.delete(self._key(user_id))
            return Session()

    def set(self, user_id: str, session: Session) -> None:
        key = self._key(user_id)
        # expiry follows created_at, so updates must not extend the lifetime
        elapsed = (datetime.now(timezone.utc) - session.created_at).total_seconds()
        remaining = max(1, int(self.ttl - elapsed))
        self._client.set(key, session.to_json(), ex=remaining)

    def delete(self, user_id: str) -> None:
        self._client.delete(self._key(user_id))

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        # Redis keys expire on their own
        return 0


def _default_backend() -> StateBackend:
    if config.REDIS_URL:
        return RedisState(config.REDIS_URL)
    return MemoryState()


_backend: StateBackend = _default_backend()


def get_backend() -> StateBackend:
    return _backend
