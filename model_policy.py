import os

DEFAULT_MODEL = 'gemini-2.5-flash'

TASKS = ('receipt', 'audio', 'amulet', 'fortune', 'parse')

AUDIO_PRO_THRESHOLD_MS = 60 * 1000
FORTUNE_PRO_THRESHOLD_MS = 180 * 1000
AMULET_PRO_IMAGE_COUNT = 2


def pro_model() -> str:
    return os.getenv('GEMINI_MODEL_PRO', 'gemini-2.5-pro')


def default_model(task: str) -> str:
    """Configured default tier for a task (env GEMINI_MODEL_<TASK>)."""
    if task not in TASKS:
        task = 'receipt'
    return os.getenv(f'GEMINI_MODEL_{task.upper()}', DEFAULT_MODEL)


def select_model(task: str, duration_ms: int = 0, has_description: bool = False, image_count: int = 0) -> str:
    """Map a task and its payload characteristics to a model identifier.

    Thresholds are strict: a 60000 ms voice note stays on the default tier.
    Unknown tasks fall back to the receipt default.
    """
    duration_ms = duration_ms or 0
    if task == 'audio':
        return pro_model() if duration_ms > AUDIO_PRO_THRESHOLD_MS else default_model('audio')
    if task == 'fortune':
        return pro_model() if duration_ms > FORTUNE_PRO_THRESHOLD_MS else default_model('fortune')
    if task == 'amulet':
        if image_count > AMULET_PRO_IMAGE_COUNT:
            return pro_model()
        # without user-supplied context the model has to infer more
        return default_model('amulet') if has_description else pro_model()
    return default_model(task)
