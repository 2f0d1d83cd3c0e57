"""Command keywords and the (mode, event) -> action table used by the dispatcher."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from media import classify_file
from state import Mode


class Command(str, Enum):
    HELP = 'help'
    QUOTA = 'quota'
    VOICE_GUIDE = 'voice_guide'
    ENTER_AMULET = 'enter_amulet'
    ENTER_FORTUNE = 'enter_fortune'
    CANCEL = 'cancel'
    FINALIZE = 'finalize'
    CLEAR = 'clear'
    EXAMPLE = 'example'


# whole-message keywords, compared case-insensitively
KEYWORDS = {
    Command.HELP: ('?', '？', '說明', 'คู่มือ', 'help'),
    Command.QUOTA: ('額度', 'โควต้า', 'quota'),
    Command.VOICE_GUIDE: ('語音', 'เสียง'),
    Command.ENTER_AMULET: ('佛牌', 'พระ', 'พระเครื่อง'),
    Command.ENTER_FORTUNE: ('語音翻譯', 'แปล', 'แปลเสียง'),
    Command.CANCEL: ('取消', 'ยกเลิก', 'cancel'),
    Command.FINALIZE: ('完成', 'เสร็จ', 'done', '生成'),
    Command.CLEAR: ('清除', 'ล้าง', 'clear', '重來'),
    Command.EXAMPLE: ('範例', 'ตัวอย่าง'),
}

_LOOKUP = {kw.lower(): cmd for cmd, kws in KEYWORDS.items() for kw in kws}


class Action(str, Enum):
    HELP = 'help'
    QUOTA = 'quota'
    VOICE_GUIDE = 'voice_guide'
    ENTER_AMULET = 'enter_amulet'
    ENTER_FORTUNE = 'enter_fortune'
    CANCEL = 'cancel'
    FINALIZE = 'finalize'
    CLEAR = 'clear'
    DESCRIBE = 'describe'
    EXAMPLE = 'example'
    PARSE_TEXT = 'parse_text'
    RECOGNIZE_RECEIPT = 'recognize_receipt'
    COLLECT_IMAGE = 'collect_image'
    TRANSCRIBE_ACCOUNTING = 'transcribe_accounting'
    TRANSLATE_FORTUNE = 'translate_fortune'
    REJECT_FILE = 'reject_file'
    IGNORE = 'ignore'


@dataclass(frozen=True)
class Route:
    action: Action
    # mode the session should be in afterwards; None means delete the session
    next_mode: Optional[Mode]


def match_command(text: str) -> Optional[Command]:
    return _LOOKUP.get((text or '').strip().lower())


def route_text(mode: Mode, command: Optional[Command]) -> Route:
    if command == Command.HELP:
        return Route(Action.HELP, mode)
    if command == Command.QUOTA:
        return Route(Action.QUOTA, mode)
    if command == Command.VOICE_GUIDE:
        return Route(Action.VOICE_GUIDE, mode)
    if command == Command.ENTER_AMULET:
        return Route(Action.ENTER_AMULET, Mode.AMULET)
    if command == Command.ENTER_FORTUNE:
        return Route(Action.ENTER_FORTUNE, Mode.FORTUNE)
    if command == Command.CANCEL:
        return Route(Action.CANCEL, None)
    if mode == Mode.AMULET:
        if command == Command.FINALIZE:
            # the session is only deleted once generation succeeds
            return Route(Action.FINALIZE, Mode.AMULET)
        if command == Command.CLEAR:
            return Route(Action.CLEAR, Mode.AMULET)
        return Route(Action.DESCRIBE, Mode.AMULET)
    if command == Command.EXAMPLE:
        return Route(Action.EXAMPLE, mode)
    # finalize/clear outside amulet mode are ordinary text
    return Route(Action.PARSE_TEXT, mode)


def route_media(mode: Mode, kind: str, file_name: Optional[str] = None) -> Route:
    """`kind` is the LINE message type: image, audio, video or file."""
    if kind == 'image':
        if mode == Mode.AMULET:
            return Route(Action.COLLECT_IMAGE, Mode.AMULET)
        return Route(Action.RECOGNIZE_RECEIPT, mode)
    if kind == 'file':
        if classify_file(file_name) is None:
            return Route(Action.REJECT_FILE, mode)
    elif kind not in ('audio', 'video'):
        return Route(Action.IGNORE, mode)
    if mode == Mode.FORTUNE:
        return Route(Action.TRANSLATE_FORTUNE, Mode.FORTUNE)
    return Route(Action.TRANSCRIBE_ACCOUNTING, mode)
