import pytest

from delivery import ReplyChannel, deliver, split_message
from messages import Affordance


@pytest.mark.parametrize('limit', [10, 100, 4500])
def test_limit_plus_one_splits(limit):
    text = 'x' * (limit + 1)
    segments = split_message(text, limit)
    assert len(segments) >= 2
    assert all(len(s) <= limit for s in segments)
    assert ''.join(segments) == text


def test_prefers_newline_past_half():
    text = 'a' * 70 + '\n' + 'b' * 60
    segments = split_message(text, 100)
    assert segments == ['a' * 70, 'b' * 60]


def test_newline_before_half_is_ignored():
    text = 'a' * 30 + '\n' + 'b' * 100
    segments = split_message(text, 100)
    assert segments[0] == text[:100]
    assert all(len(s) <= 100 for s in segments)


def test_segments_reassemble_modulo_leading_whitespace():
    text = '\n'.join(f'第{i}行 ' + '內容' * 20 for i in range(40))
    segments = split_message(text, 200)
    assert all(len(s) <= 200 for s in segments)
    assert ''.join(segments).replace('\n', '').replace(' ', '') == text.replace('\n', '').replace(' ', '')


def test_short_text_single_segment():
    assert split_message('hi', 10) == ['hi']
    assert split_message('', 10) == []


def test_only_last_segment_has_quick_reply(line_api):
    n = deliver(line_api, 'rt', 'y' * 25, user_id='U1', affordance=Affordance.AMULET)
    assert n == 1
    assert line_api.replies[0][1].quick_reply is not None

    api = type(line_api)()
    channel = ReplyChannel(api, 'rt', 'U1', limit=10)
    assert channel.send('y' * 25, Affordance.AMULET) == 3
    assert api.replies[0][1].quick_reply is None
    assert api.pushes[0][1].quick_reply is None
    assert api.pushes[1][1].quick_reply is not None
    assert [m.text for _, m in api.pushes] == ['y' * 10, 'y' * 5]


def test_overflow_dropped_without_user_id(line_api):
    channel = ReplyChannel(line_api, 'rt', None, limit=10)
    assert channel.send('z' * 25) == 3
    assert len(line_api.replies) == 1
    assert line_api.pushes == []


def test_second_send_falls_back_to_push(line_api):
    channel = ReplyChannel(line_api, 'rt', 'U1')
    channel.send('one')
    channel.send('two', Affordance.NONE)
    assert [m.text for _, m in line_api.replies] == ['one']
    assert [(to, m.text) for to, m in line_api.pushes] == [('U1', 'two')]
    assert line_api.pushes[0][1].quick_reply is None


def test_reply_failure_is_logged_not_raised():
    from linebot.exceptions import LineBotApiError
    from linebot.models.error import Error

    class FailingApi:
        def reply_message(self, token, message):
            raise LineBotApiError(400, {}, error=Error(message='Invalid reply token'))

    channel = ReplyChannel(FailingApi(), 'rt', None)
    assert channel.send('hello') == 1
    assert channel.used
