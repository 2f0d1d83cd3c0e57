import pytest

from routing import Action, Command, match_command, route_media, route_text
from state import Mode


@pytest.mark.parametrize('text,cmd', [
    ('說明', Command.HELP),
    ('？', Command.HELP),
    ('HELP', Command.HELP),
    ('  額度 ', Command.QUOTA),
    ('語音', Command.VOICE_GUIDE),
    ('語音翻譯', Command.ENTER_FORTUNE),
    ('佛牌', Command.ENTER_AMULET),
    ('ยกเลิก', Command.CANCEL),
    ('Done', Command.FINALIZE),
    ('重來', Command.CLEAR),
    ('範例', Command.EXAMPLE),
    ('佛牌好漂亮', None),
])
def test_match_command(text, cmd):
    assert match_command(text) == cmd


def test_priority_help_over_mode():
    assert route_text(Mode.AMULET, Command.HELP).action == Action.HELP
    assert route_text(Mode.AMULET, Command.HELP).next_mode == Mode.AMULET


def test_mode_entry_and_cancel():
    assert route_text(Mode.RECEIPT, Command.ENTER_AMULET).next_mode == Mode.AMULET
    assert route_text(Mode.AMULET, Command.ENTER_FORTUNE).next_mode == Mode.FORTUNE
    r = route_text(Mode.FORTUNE, Command.CANCEL)
    assert (r.action, r.next_mode) == (Action.CANCEL, None)


@pytest.mark.parametrize('mode', [Mode.RECEIPT, Mode.FORTUNE])
def test_finalize_clear_only_in_amulet(mode):
    assert route_text(mode, Command.FINALIZE).action == Action.PARSE_TEXT
    assert route_text(mode, Command.CLEAR).action == Action.PARSE_TEXT
    assert route_text(Mode.AMULET, Command.FINALIZE).action == Action.FINALIZE
    assert route_text(Mode.AMULET, Command.CLEAR).action == Action.CLEAR


def test_amulet_text_is_description():
    assert route_text(Mode.AMULET, None).action == Action.DESCRIBE
    # the description check comes before the example command
    assert route_text(Mode.AMULET, Command.EXAMPLE).action == Action.DESCRIBE
    assert route_text(Mode.RECEIPT, Command.EXAMPLE).action == Action.EXAMPLE
    assert route_text(Mode.RECEIPT, None).action == Action.PARSE_TEXT


@pytest.mark.parametrize('mode,kind,file_name,action', [
    (Mode.AMULET, 'image', None, Action.COLLECT_IMAGE),
    (Mode.RECEIPT, 'image', None, Action.RECOGNIZE_RECEIPT),
    (Mode.FORTUNE, 'image', None, Action.RECOGNIZE_RECEIPT),
    (Mode.FORTUNE, 'audio', None, Action.TRANSLATE_FORTUNE),
    (Mode.FORTUNE, 'video', None, Action.TRANSLATE_FORTUNE),
    (Mode.FORTUNE, 'file', 'reading.M4A', Action.TRANSLATE_FORTUNE),
    (Mode.FORTUNE, 'file', 'reading.mov', Action.TRANSLATE_FORTUNE),
    (Mode.RECEIPT, 'audio', None, Action.TRANSCRIBE_ACCOUNTING),
    (Mode.AMULET, 'audio', None, Action.TRANSCRIBE_ACCOUNTING),
    (Mode.RECEIPT, 'file', 'voice.mp3', Action.TRANSCRIBE_ACCOUNTING),
    (Mode.FORTUNE, 'file', 'scan.pdf', Action.REJECT_FILE),
    (Mode.RECEIPT, 'file', None, Action.REJECT_FILE),
    (Mode.RECEIPT, 'sticker', None, Action.IGNORE),
])
def test_route_media(mode, kind, file_name, action):
    assert route_media(mode, kind, file_name).action == action
