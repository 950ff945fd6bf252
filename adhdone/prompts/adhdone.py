DEFAULT_SYSTEM_PROMPT = (
    "You are ADHDone, a compassionate ADHD assistant. Provide structured, "
    "clear and neurodivergent-friendly guidance with short sentences, "
    "bullet lists, and optional checkboxes."
)


REMINDER_ADJUSTMENT_PROMPT = """Task context: {description}
Original reminder interval (minutes): {reminder_interval}
Consecutive skips: {consecutive_skips}
Recent interactions: {recent_interactions}

Suggest a single easy starting step and a new reminder interval. Return JSON with keys: message, suggestedStartStep, reminderIntervalMinutes."""


BRAIN_DUMP_PROMPT = """Organize the following brain dump entries into helpful groups for an ADHD user. Return JSON with keys: categories (object of array), focusRecommendation, summary. Keep tone supportive and concrete. Items: {items}"""
