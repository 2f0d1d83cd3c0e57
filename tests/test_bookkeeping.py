import pytest

from bookkeeping import ReceiptItem, ReceiptRecord, format_summary, parse_text_locally, to_record


def test_local_parse_payee_item_qty_price():
    r = parse_text_locally('阿贊南奔 金箔 10 500')
    assert r.payee == '阿贊南奔'
    assert r.items == [ReceiptItem(name='金箔', quantity=10, unit_price=500, total=5000)]
    assert r.date == ''


def test_local_parse_item_only():
    r = parse_text_locally('符管  2   99.5')
    assert r.payee == ''
    assert r.items[0].total == 199


@pytest.mark.parametrize('text', ['', '你好', 'อาจารย์ ทอง 10 500', '金箔 十個 五百'])
def test_local_parse_rejects(text):
    assert parse_text_locally(text) is None


def test_from_dict_model_keys():
    r = to_record({'date': '2025-01-02', 'master': '龍婆', 'note': '',
                   'items': [{'name': '佛牌', 'qty': '2', 'price': '1,500'},
                             {'name': '供品', 'qty': 1, 'price': 100, 'total': 90}]})
    assert r.payee == '龍婆'
    assert [it.total for it in r.items] == [3000, 90]
    assert r.grand_total == 3090


def test_to_record_non_object():
    assert to_record(None) is None
    assert to_record(['a']) is None


def test_quality_flag():
    assert ReceiptRecord(note='照片模糊').has_quality_issue
    assert not ReceiptRecord(note='手寫').has_quality_issue


def test_format_summary():
    r = ReceiptRecord(payee='阿贊南奔', items=[ReceiptItem('金箔', 10, 500, 5000), ReceiptItem('蠟燭', 1, 20, 20)])
    assert format_summary(r) == '✅ 阿贊南奔\n金箔×10=5,000\n蠟燭×1=20\n💰 5,020'
    assert format_summary(ReceiptRecord(items=[ReceiptItem('x', 1, 1, 1)])).startswith('✅ 記帳成功')
