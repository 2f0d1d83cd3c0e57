"""Pull a JSON value out of a model response.

``extract_json`` handles responses wrapped in prose or code fences;
``repair_truncated_json`` is only meant for responses the model stopped
early because of its output length limit.
"""
import json
import logging
import re
from typing import Any, List, Optional, Tuple

logger = logging.getLogger(__name__)

TRUNCATION_NOTE = '(部分內容被截斷)'

_OUTER_OBJECT_RE = re.compile(r'\{[\s\S]*\}')
# trailing `"key": <partial value>` with no terminating delimiter
_DANGLING_PAIR_RE = re.compile(r',?\s*"[^"]*"\s*:\s*[^,\}\]]*$')
# trailing `"key"` inside an object, cut before its colon
_DANGLING_KEY_RE = re.compile(r'([{,])\s*"[^"]*"\s*$')

_CLOSERS = {'{': '}', '[': ']'}


def extract_json(raw_text: str, source: str = 'API') -> Optional[Any]:
    if not raw_text:
        logger.warning('%s: empty response, no JSON found', source)
        return None
    try:
        parsed = json.loads(raw_text)
        logger.debug('%s: JSON parsed directly', source)
        return parsed
    except ValueError:
        pass

    m = _OUTER_OBJECT_RE.search(raw_text)
    if m:
        try:
            parsed = json.loads(m.group(0))
            logger.debug('%s: JSON parsed after extraction', source)
            return parsed
        except ValueError as e:
            logger.warning('%s: extracted JSON failed to parse: %s', source, e)
            return None
    logger.warning('%s: no JSON object found in response', source)
    return None


def _scan(text: str) -> Tuple[List[str], bool, int]:
    """Return (open delimiter stack, inside string, index of the open string's quote)."""
    stack: List[str] = []
    in_string = False
    escaped = False
    string_start = -1
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
            string_start = i
        elif ch in '{[':
            stack.append(ch)
        elif ch in '}]':
            if stack and _CLOSERS[stack[-1]] == ch:
                stack.pop()
    return stack, in_string, string_start


def _trim_tail(text: str) -> str:
    text = _DANGLING_PAIR_RE.sub('', text).rstrip()
    stack, in_string, start = _scan(text)
    if in_string:
        # cut off an unterminated string, then any key left without a value
        text = _DANGLING_PAIR_RE.sub('', text[:start].rstrip()).rstrip()
        stack, _, _ = _scan(text)
    if stack and stack[-1] == '{':
        # object member cut right after its key
        text = _DANGLING_KEY_RE.sub(r'\1', text).rstrip()
    return text.rstrip(',').rstrip()


def repair_truncated_json(raw_text: str) -> Optional[Any]:
    """Close a JSON document that was cut off mid-way.

    Drops the last incomplete key/value fragment, then appends the missing
    closing brackets and braces in nesting order. A repaired object gets
    TRUNCATION_NOTE appended to its ``note`` field (once). Returns None
    when the result still does not parse.
    """
    if not raw_text:
        return None
    repaired = _trim_tail(raw_text.strip())
    stack, _, _ = _scan(repaired)
    repaired += ''.join(_CLOSERS[ch] for ch in reversed(stack))
    try:
        parsed = json.loads(repaired)
    except ValueError as e:
        logger.error('truncated JSON repair failed: %s', e)
        return None

    if isinstance(parsed, dict):
        note = parsed.get('note')
        note = note if isinstance(note, str) else ''
        if TRUNCATION_NOTE not in note:
            parsed['note'] = f'{note} {TRUNCATION_NOTE}'.strip()
    logger.info('repaired truncated JSON (%d closers added)', len(stack))
    return parsed
