import base64
import logging
import os
import re
from datetime import datetime, timezone
from typing import List, Optional

import requests
from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build

import config
from bookkeeping import ReceiptRecord

logger = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/spreadsheets']
TOKEN_URI = 'https://oauth2.googleapis.com/token'

# A=date B=payee C=item D=qty E=unit price F=total G=photo link
COLUMNS = ['日期', '師傅/店家', '品項', '數量', '單價', '總額', '圖片']


def normalize_date(raw: str, today: Optional[str] = None) -> str:
    """Return `raw` when it is a valid, non-future YYYY-MM-DD date; otherwise today (Taipei)."""
    today = today or config.taiwan_today()
    raw = (raw or '').strip()
    if not raw:
        return today
    try:
        d = datetime.strptime(raw, '%Y-%m-%d').date()
    except ValueError:
        logger.info('invalid receipt date %r, using today', raw)
        return today
    if d > datetime.strptime(today, '%Y-%m-%d').date():
        logger.info('future receipt date %s, using today', raw)
        return today
    return d.isoformat()


def build_rows(record: ReceiptRecord, image_url: str = '', today: Optional[str] = None) -> List[list]:
    date = normalize_date(record.date, today)
    return [
        [date, record.payee, it.name, it.quantity, it.unit_price, it.total, image_url if i == 0 else '']
        for i, it in enumerate(record.items)
    ]


def _load_credentials() -> Optional[Credentials]:
    path = os.getenv('GOOGLE_SERVICE_ACCOUNT_FILE')
    if path:
        return Credentials.from_service_account_file(path, scopes=SCOPES)
    email = (os.getenv('GOOGLE_SERVICE_ACCOUNT_EMAIL') or '').strip()
    # keys pasted into env vars usually carry literal \n and stray quotes
    key = (os.getenv('GOOGLE_PRIVATE_KEY') or '').replace('\\n', '\n').replace('"', '')
    if not email or not key:
        return None
    return Credentials.from_service_account_info(
        {'client_email': email, 'private_key': key, 'token_uri': TOKEN_URI}, scopes=SCOPES
    )


class SheetsClient:
    def __init__(self, spreadsheet_id: str = None, sheet_name: str = None, service=None):
        self.spreadsheet_id = spreadsheet_id or config.SPREADSHEET_ID
        self.sheet_name = sheet_name or config.SHEET_NAME
        self._sheet = service.spreadsheets() if service is not None else None

    @property
    def configured(self) -> bool:
        return bool(self.spreadsheet_id) and (self._sheet is not None or _load_credentials() is not None)

    def _build_service(self):
        creds = _load_credentials()
        if creds is None:
            return None
        service = build('sheets', 'v4', credentials=creds, cache_discovery=False)
        self._sheet = service.spreadsheets()
        return self._sheet

    def _execute_with_retry(self, request):
        """Execute a Sheets request, rebuilding the connection once on BrokenPipeError."""
        try:
            return request.execute()
        except BrokenPipeError:
            self._build_service()
            return request.execute()

    def append_record(self, record: ReceiptRecord, image_url: str = '') -> int:
        """Append one row per item. Returns the number of rows written (0 on failure).

        Failures are logged and swallowed: the user already has their reply.
        """
        if not record.items:
            return 0
        if not self.spreadsheet_id:
            logger.warning('SPREADSHEET_ID not set, skipping sheet append')
            return 0
        try:
            sheet = self._sheet or self._build_service()
            if sheet is None:
                logger.warning('Google service account not configured, skipping sheet append')
                return 0
            rows = build_rows(record, image_url)
            self._execute_with_retry(sheet.values().append(
                spreadsheetId=self.spreadsheet_id,
                range=f'{self.sheet_name}!A:G',
                valueInputOption='USER_ENTERED',
                body={'values': rows},
            ))
            logger.info('appended %d rows to sheet', len(rows))
            return len(rows)
        except Exception:
            logger.exception('sheet append failed')
            return 0


def upload_receipt_image(image: bytes, record: ReceiptRecord, url: str = None, folder_id: str = None,
                         timeout: float = 20) -> str:
    """Store the receipt photo through the Apps Script Drive proxy; returns its link or ''."""
    url = url or config.APPS_SCRIPT_URL
    if not url:
        return ''
    folder_id = folder_id if folder_id is not None else config.GOOGLE_DRIVE_FOLDER_ID
    stamp = datetime.now(timezone.utc).strftime('%Y-%m-%dT%H-%M-%S')
    payee = re.sub(r'[\\/:*?"<>|]', '_', record.payee or '未知')
    file_name = f'{normalize_date(record.date)}_{payee}_{stamp}.jpg'
    try:
        resp = requests.post(url, json={
            'image': base64.b64encode(image).decode('ascii'),
            'fileName': file_name,
            'folderId': folder_id,
        }, timeout=timeout)
        resp.raise_for_status()
        result = resp.json()
        if not result.get('success'):
            logger.error('drive upload rejected: %s', result.get('error'))
            return ''
        return result.get('webViewLink') or ''
    except Exception:
        logger.exception('drive upload failed')
        return ''
