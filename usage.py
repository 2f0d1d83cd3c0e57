import logging
import threading
from typing import Callable, Dict

import config

logger = logging.getLogger(__name__)

TASKS = ('receipt', 'audio', 'amulet', 'fortune', 'parse')


class UsageTracker:
    """Per-day model call counters, reset when the Taipei date changes."""

    def __init__(self, today: Callable[[], str] = config.taiwan_today):
        self._today = today
        self._lock = threading.Lock()
        self.date = ''
        self.counts: Dict[str, int] = {t: 0 for t in TASKS}

    def _roll(self) -> None:
        today = self._today()
        if self.date != today:
            self.date = today
            self.counts = {t: 0 for t in TASKS}

    def track(self, task: str) -> None:
        with self._lock:
            self._roll()
            if task in self.counts:
                self.counts[task] += 1
                logger.debug('usage %s +1 (today %d)', task, self.counts[task])

    def summary(self) -> str:
        with self._lock:
            self._roll()
            c = dict(self.counts)
            date = self.date
        total = sum(c.values())
        return (
            f'📊 今日 API 用量 / โควต้าวันนี้\n📅 {date}\n\n'
            f'📷 收據辨識 / ใบเสร็จ: {c["receipt"]} 次\n'
            f'🎙️ 語音辨識 / เสียง: {c["audio"]} 次\n'
            f'📿 佛牌文案 / พระ: {c["amulet"]} 次\n'
            f'🔮 命理翻譯 / โหราศาสตร์: {c["fortune"]} 次\n'
            f'✏️ 文字解析 / ข้อความ: {c["parse"]} 次\n\n'
            f'📈 合計 / รวม: {total} 次'
        )


tracker = UsageTracker()


def track(task: str) -> None:
    tracker.track(task)


def summary() -> str:
    return tracker.summary()
