import pytest

import sheets
from bookkeeping import ReceiptItem, ReceiptRecord
from sheets import SheetsClient, build_rows, normalize_date


@pytest.mark.parametrize('raw,expected', [
    ('2025-01-15', '2025-01-15'),
    ('', '2025-02-01'),
    ('15/01/2025', '2025-02-01'),
    ('2025-02-30', '2025-02-01'),
    ('2025-02-02', '2025-02-01'),
    ('2025-02-01', '2025-02-01'),
])
def test_normalize_date(raw, expected):
    assert normalize_date(raw, today='2025-02-01') == expected


def record():
    return ReceiptRecord(date='2025-01-15', payee='龍婆',
                         items=[ReceiptItem('符管', 2, 300, 600), ReceiptItem('蠟燭', 1, 20, 20)])


def test_rows_carry_image_on_first_row_only():
    rows = build_rows(record(), 'https://drive/x', today='2025-02-01')
    assert rows == [
        ['2025-01-15', '龍婆', '符管', 2, 300, 600, 'https://drive/x'],
        ['2025-01-15', '龍婆', '蠟燭', 1, 20, 20, ''],
    ]


class FakeRequest:
    def __init__(self, log, kwargs, fail=False):
        self.log, self.kwargs, self.fail = log, kwargs, fail

    def execute(self):
        if self.fail:
            raise RuntimeError('HttpError 403')
        self.log.append(self.kwargs)
        return {}


class FakeService:
    def __init__(self, fail=False):
        self.log = []
        self.fail = fail

    def spreadsheets(self):
        return self

    def values(self):
        return self

    def append(self, **kwargs):
        return FakeRequest(self.log, kwargs, self.fail)


def test_append_record():
    svc = FakeService()
    client = SheetsClient(spreadsheet_id='sid', sheet_name='收據記錄', service=svc)
    assert client.append_record(record(), 'link') == 2
    call = svc.log[0]
    assert call['range'] == '收據記錄!A:G'
    assert call['valueInputOption'] == 'USER_ENTERED'
    assert call['body']['values'][0][6] == 'link'


def test_append_failure_swallowed():
    client = SheetsClient(spreadsheet_id='sid', service=FakeService(fail=True))
    assert client.append_record(record()) == 0


def test_append_skipped_when_unconfigured(monkeypatch):
    monkeypatch.delenv('GOOGLE_SERVICE_ACCOUNT_FILE', raising=False)
    monkeypatch.delenv('GOOGLE_SERVICE_ACCOUNT_EMAIL', raising=False)
    monkeypatch.delenv('GOOGLE_PRIVATE_KEY', raising=False)
    assert SheetsClient(spreadsheet_id='').append_record(record()) == 0
    assert SheetsClient(spreadsheet_id='sid').append_record(record()) == 0
    assert SheetsClient(spreadsheet_id='sid').append_record(ReceiptRecord()) == 0


def test_upload_receipt_image(monkeypatch):
    posted = {}

    class Resp:
        def raise_for_status(self):
            pass

        def json(self):
            return {'success': True, 'webViewLink': 'https://drive/view'}

    def fake_post(url, json=None, timeout=None):
        posted.update(url=url, body=json)
        return Resp()

    monkeypatch.setattr(sheets.requests, 'post', fake_post)
    link = sheets.upload_receipt_image(b'img', record(), url='https://script/exec', folder_id='f1')
    assert link == 'https://drive/view'
    assert posted['body']['folderId'] == 'f1'
    assert posted['body']['fileName'].startswith('2025-01-15_龍婆_')
    assert posted['body']['image'] == 'aW1n'


def test_upload_without_url_or_on_error(monkeypatch):
    assert sheets.upload_receipt_image(b'img', record(), url='') == ''

    def boom(*a, **k):
        raise sheets.requests.ConnectionError('down')

    monkeypatch.setattr(sheets.requests, 'post', boom)
    assert sheets.upload_receipt_image(b'img', record(), url='https://script/exec') == ''
