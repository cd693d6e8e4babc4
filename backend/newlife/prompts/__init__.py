from newlife.prompts.templates import (
    SYSTEM_PROMPT,
    SYSTEM_PROMPT_ACKNOWLEDGMENT,
    FALLBACK_REPLY,
)
from newlife.prompts.context import (
    build_system_prompt,
    days_until,
    format_date,
)

__all__ = [
    "SYSTEM_PROMPT",
    "SYSTEM_PROMPT_ACKNOWLEDGMENT",
    "FALLBACK_REPLY",
    "build_system_prompt",
    "days_until",
    "format_date",
]
