import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

import usage
from errors import QuotaExceededError, UpstreamError
from json_extract import extract_json, repair_truncated_json
from model_policy import select_model
from prompts import (AMULET_PROMPT, AMULET_USER_INFO, FORTUNE_PROMPT, PARSE_PROMPT, RECEIPT_PROMPT,
                     TRANSCRIBE_AUDIO_PROMPT, TRANSCRIBE_VIDEO_PROMPT)

logger = logging.getLogger(__name__)

_GENAI_CLIENT = None

_BLOCKED_REASONS = {'SAFETY', 'PROHIBITED_CONTENT', 'BLOCKLIST', 'SPII', 'RECITATION'}


@dataclass
class Generation:
    text: str
    finish_reason: str = 'STOP'

    @property
    def truncated(self) -> bool:
        return self.finish_reason == 'MAX_TOKENS'

    @property
    def blocked(self) -> bool:
        return self.finish_reason in _BLOCKED_REASONS


def _get_api_key() -> Optional[str]:
    return os.getenv('GENAI_API_KEY') or os.getenv('GEMINI_API_KEY') or os.getenv('GOOGLE_API_KEY')


def _ensure_configured():
    """Create the google-genai client lazily; returns None without an API key."""
    global _GENAI_CLIENT
    if _GENAI_CLIENT:
        return _GENAI_CLIENT

    key = _get_api_key()
    if not key:
        return None
    try:
        _GENAI_CLIENT = genai.Client(api_key=key)
        logger.info('Gemini client configured successfully')
        return _GENAI_CLIENT
    except Exception as e:
        logger.error('Failed to configure Gemini client: %s', e)
        return None


def _is_quota_error(e: Exception) -> bool:
    if getattr(e, 'code', None) == 429:
        return True
    msg = str(e)
    return 'RESOURCE_EXHAUSTED' in msg or 'quota' in msg.lower()


def _finish_reason(candidate) -> str:
    fr = getattr(candidate, 'finish_reason', None)
    if fr is None:
        return 'STOP'
    return getattr(fr, 'name', None) or str(fr).rsplit('.', 1)[-1]


def _to_generation(response) -> Generation:
    candidates = getattr(response, 'candidates', None) or []
    if not candidates:
        feedback = getattr(response, 'prompt_feedback', None)
        if feedback is not None and getattr(feedback, 'block_reason', None):
            logger.warning('prompt blocked: %s', feedback.block_reason)
            return Generation('', 'SAFETY')
        raise UpstreamError('Gemini returned no candidates')

    cand = candidates[0]
    content = getattr(cand, 'content', None)
    parts = getattr(content, 'parts', None) or []
    text = ''.join(p.text for p in parts if getattr(p, 'text', None))
    return Generation(text, _finish_reason(cand))


def generate(model: str, prompt: str, attachments: Sequence[Tuple[bytes, str]] = (),
             temperature: float = 0.1, max_output_tokens: int = 1024, json_mode: bool = False,
             retries: int = None, backoff: float = 1.5) -> Generation:
    """Call the model once (retrying 5xx failures) and return text plus finish reason.

    Raises QuotaExceededError on quota exhaustion and UpstreamError on any
    other API failure or malformed response.
    """
    client = _ensure_configured()
    if not client:
        raise UpstreamError('GENAI_API_KEY not configured')
    if retries is None:
        try:
            retries = int(os.getenv('GEMINI_RETRIES', '2'))
        except Exception:
            retries = 2

    contents: List[Any] = [prompt]
    for data, mime in attachments:
        contents.append(types.Part.from_bytes(data=data, mime_type=mime))
    cfg = types.GenerateContentConfig(
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        response_mime_type='application/json' if json_mode else None,
    )

    attempts = max(1, retries)
    for attempt in range(attempts):
        try:
            response = client.models.generate_content(model=model, contents=contents, config=cfg)
        except genai_errors.APIError as e:
            if _is_quota_error(e):
                raise QuotaExceededError(str(e)) from e
            if isinstance(e, genai_errors.ServerError) and attempt < attempts - 1:
                logger.warning('Gemini %s server error (%s), retrying', model, e.code)
                time.sleep(backoff * (2 ** attempt))
                continue
            logger.error('Gemini %s API error: %s', model, e)
            raise UpstreamError(str(e)) from e
        except Exception as e:
            if _is_quota_error(e):
                raise QuotaExceededError(str(e)) from e
            logger.exception('Error calling Gemini API')
            raise UpstreamError(str(e)) from e

        gen = _to_generation(response)
        if gen.finish_reason != 'STOP':
            logger.warning('Gemini %s finish_reason=%s', model, gen.finish_reason)
        logger.debug('Gemini %s response length: %d chars', model, len(gen.text))
        return gen
    raise UpstreamError('Gemini retries exhausted')


def recognize_receipt(image: bytes, mime: str) -> Optional[Any]:
    model = select_model('receipt')
    gen = generate(model, RECEIPT_PROMPT, [(image, mime)], temperature=0.1,
                   max_output_tokens=8192, json_mode=True)
    if gen.blocked:
        logger.warning('receipt recognition blocked by safety filter')
        return None
    usage.track('receipt')
    if gen.truncated:
        repaired = repair_truncated_json(gen.text)
        if repaired is not None:
            return repaired
    return extract_json(gen.text, 'receipt')


def parse_text(text: str) -> Optional[Any]:
    model = select_model('parse')
    gen = generate(model, PARSE_PROMPT.format(text=text), temperature=0.1,
                   max_output_tokens=1024, json_mode=True)
    if gen.blocked:
        return None
    usage.track('parse')
    if gen.truncated:
        repaired = repair_truncated_json(gen.text)
        if repaired is not None:
            return repaired
    return extract_json(gen.text, 'text-parse')


def transcribe(data: bytes, mime: str, duration_ms: int = 0, task: str = 'audio') -> Optional[str]:
    """Speech to text for an audio clip or a video's sound track.

    `task` is 'audio' for voice bookkeeping and 'fortune' for readings.
    """
    model = select_model(task, duration_ms=duration_ms)
    prompt = TRANSCRIBE_VIDEO_PROMPT if mime.startswith('video/') else TRANSCRIBE_AUDIO_PROMPT
    max_tokens = 8192 if task == 'fortune' else 1024
    logger.info('transcribing %s (%dms) with %s', mime, duration_ms or 0, model)
    gen = generate(model, prompt, [(data, mime)], temperature=0.1, max_output_tokens=max_tokens)
    if gen.blocked:
        logger.warning('transcription blocked by safety filter')
        return None
    usage.track(task)
    text = gen.text.strip()
    return text or None


def rewrite_fortune(text: str, duration_ms: int = 0) -> Optional[str]:
    model = select_model('fortune', duration_ms=duration_ms)
    gen = generate(model, FORTUNE_PROMPT.format(text=text), temperature=0.7, max_output_tokens=8192)
    if gen.blocked or not gen.text.strip():
        return None
    usage.track('fortune')
    return gen.text.strip()


def generate_amulet_copy(images: List[Dict[str, Any]], description: str = '') -> Optional[str]:
    if not images:
        return None
    description = (description or '').strip()
    model = select_model('amulet', has_description=bool(description), image_count=len(images))
    logger.info('amulet copy: %d images, description=%s, model=%s', len(images), bool(description), model)
    user_info = AMULET_USER_INFO.format(description=description) if description else ''
    prompt = AMULET_PROMPT.format(count=len(images), user_info=user_info)
    gen = generate(model, prompt, [(img['data'], img['mime_type']) for img in images],
                   temperature=0.7, max_output_tokens=4096)
    if gen.blocked or not gen.text.strip():
        return None
    usage.track('amulet')
    return gen.text.strip()
