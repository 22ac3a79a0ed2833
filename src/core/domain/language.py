"""Language utilities.

Centralises the languages supported for user-facing strings so the session,
the formatter and the CLI share a single source of truth.
"""

from __future__ import annotations

from enum import Enum


class Language(str, Enum):
    """Supported natural-language choices for user-facing output."""

    ENGLISH = "en"
    CHINESE = "zh"

    def label(self) -> str:
        """Human readable label for prompts and logging."""

        return "Chinese" if self is Language.CHINESE else "English"


_MESSAGES: dict[str, dict[Language, str]] = {
    "subscription_required": {
        Language.ENGLISH: "Please enter a subscription link",
        Language.CHINESE: "请输入订阅链接",
    },
    "never_expires": {
        Language.ENGLISH: "never expires",
        Language.CHINESE: "永不过期",
    },
    "expired": {
        Language.ENGLISH: "expired",
        Language.CHINESE: "已过期",
    },
    "expires_today": {
        Language.ENGLISH: "expires today",
        Language.CHINESE: "今天到期",
    },
    "days_left": {
        Language.ENGLISH: "{days} days",
        Language.CHINESE: "{days} 天",
    },
}


def message(key: str, language: Language = Language.ENGLISH, **params: object) -> str:
    """Look up a localized message, falling back to English."""

    variants = _MESSAGES[key]
    template = variants.get(language) or variants[Language.ENGLISH]
    return template.format(**params) if params else template
