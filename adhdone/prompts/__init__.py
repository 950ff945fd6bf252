from .adhdone import BRAIN_DUMP_PROMPT, DEFAULT_SYSTEM_PROMPT, REMINDER_ADJUSTMENT_PROMPT

__all__ = [
    'DEFAULT_SYSTEM_PROMPT',
    'REMINDER_ADJUSTMENT_PROMPT',
    'BRAIN_DUMP_PROMPT',
]
