import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

Number = Union[int, float]

_THAI_RE = re.compile(r'[\u0E00-\u0E7F]')
_NUM = r'(\d+(?:\.\d+)?)'
# "阿贊南奔 金箔 10 500"
_PAYEE_ITEM_QTY_PRICE_RE = re.compile(r'^(.+?)\s+(.+?)\s+' + _NUM + r'\s+' + _NUM + r'$')
# "金箔 10 500"
_ITEM_QTY_PRICE_RE = re.compile(r'^(.+?)\s+' + _NUM + r'\s+' + _NUM + r'$')

_QUALITY_WORDS = ('模糊', '無法辨識', '不清楚')


def _number(value: Any, default: Number = 0) -> Number:
    if value is None or value == '':
        return default
    try:
        f = float(str(value).replace(',', ''))
    except ValueError:
        return default
    return int(f) if f.is_integer() else f


def _fmt(n: Number) -> str:
    n = _number(n)
    return f'{n:,}' if isinstance(n, int) else f'{n:,.2f}'


@dataclass
class ReceiptItem:
    name: str
    quantity: Number = 1
    unit_price: Number = 0
    total: Number = 0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ReceiptItem':
        qty = _number(d.get('qty', d.get('quantity')), 1)
        price = _number(d.get('price', d.get('unit_price')))
        raw_total = d.get('total')
        # recognised totals are kept even when they disagree with qty x price
        total = _number(raw_total) if raw_total not in (None, '') else _number(qty * price)
        return cls(name=str(d.get('name') or '').strip(), quantity=qty, unit_price=price, total=total)


@dataclass
class ReceiptRecord:
    date: str = ''
    payee: str = ''
    items: List[ReceiptItem] = field(default_factory=list)
    note: str = ''

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ReceiptRecord':
        items = d.get('items') or []
        if not isinstance(items, list):
            items = []
        return cls(
            date=str(d.get('date') or '').strip(),
            payee=str(d.get('master') or d.get('payee') or '').strip(),
            items=[ReceiptItem.from_dict(it) for it in items if isinstance(it, dict)],
            note=str(d.get('note') or ''),
        )

    @property
    def grand_total(self) -> Number:
        return _number(sum(it.total for it in self.items))

    @property
    def has_quality_issue(self) -> bool:
        return any(w in self.note for w in _QUALITY_WORDS)


def to_record(value: Any) -> Optional[ReceiptRecord]:
    """Coerce an extracted JSON value into a record; None when it is not an object."""
    if isinstance(value, ReceiptRecord):
        return value
    if not isinstance(value, dict):
        return None
    return ReceiptRecord.from_dict(value)


def parse_text_locally(text: str) -> Optional[ReceiptRecord]:
    """Parse simple `[payee] item qty price` input without calling the model.

    Thai input always goes to the model because it has to be translated.
    """
    text = (text or '').strip()
    if not text or _THAI_RE.search(text):
        return None
    normalized = re.sub(r'\s+', ' ', text)

    m = _PAYEE_ITEM_QTY_PRICE_RE.match(normalized)
    if m:
        payee, name, qty, price = m.groups()
    else:
        m = _ITEM_QTY_PRICE_RE.match(normalized)
        if not m:
            return None
        payee = ''
        name, qty, price = m.groups()

    quantity = _number(qty)
    unit_price = _number(price)
    item = ReceiptItem(name=name.strip(), quantity=quantity, unit_price=unit_price,
                       total=_number(quantity * unit_price))
    logger.debug('local parse ok: payee=%s item=%s qty=%s price=%s', payee, item.name, quantity, unit_price)
    return ReceiptRecord(date='', payee=payee.strip(), items=[item], note='')


def format_summary(record: ReceiptRecord) -> str:
    lines = [f'{it.name}×{it.quantity}={_fmt(it.total)}' for it in record.items]
    header = f'✅ {record.payee}' if record.payee else '✅ 記帳成功 / บันทึกแล้ว'
    return header + '\n' + '\n'.join(lines) + f'\n💰 {_fmt(record.grand_total)}'
