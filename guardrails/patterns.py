"""
Default moderation patterns for assistant output.

All entries are lowercase literal substrings; matching is case-insensitive
containment with no tokenization.
"""
from __future__ import annotations

import re
from typing import Optional

RULE_DB_VERSION = "1.0"

# Block reasons, in the order the blacklists are scanned
REASON_FAKE_CAPABILITY = "fake_capability"
REASON_FALSE_PROMISE = "false_promise"
REASON_ARCHITECTURE_LEAK = "architecture_leak"
REASON_HALLUCINATION = "hallucination"
REASON_MANIPULATION = "manipulation"
REASON_LEARNED_BAD = "learned_bad"
REASON_TOO_LONG = "too_long"
REASON_INPUT_TOO_LONG = "input_too_long"

CAPABILITIES = [
    "create_drop", "delete_drop", "update_drop", "search_drops",
    "generate_chart", "generate_diagram", "generate_image",
    "send_email", "summarize", "translate", "explain",
]

SAFE_PATTERNS = [
    # Confirmations of real actions
    "сохранил в ленту",
    "создал дроп",
    "создал заметку",
    "удалил дроп",
    # Honest uncertainty
    "не нашёл информации",
    "не нашёл в записях",
    "в твоих записях",
    "из базы знаний",
    "насколько я знаю",
    "не уверен",
    # Honest refusals
    "могу помочь с",
    "эта функция недоступна",
    "не могу это сделать",
    "попробуй переформулировать",
]

FAKE_CAPABILITIES = [
    # Real-world actions
    "могу позвонить",
    "могу отправить sms",
    "могу заказать",
    "могу купить",
    "могу забронировать",
    "отправлю sms",
    "отправлю смс",
    "закажу такси",
    "закажу еду",
    "куплю билеты",
    "переведу деньги",
    "оплачу",
    # Integrations that do not exist
    "интегрирован с uber",
    "интегрирован с яндекс",
    "интегрирован с банк",
    "интегрирован с google",
    "интегрирован с apple",
    "подключу к интернету",
    "подключу к api",
    # Device access
    "имею доступ к камере",
    "имею доступ к микрофону",
    "имею доступ к геолокации",
    "имею доступ к контактам",
    "могу управлять устройством",
    "могу читать твои сообщения",
    "могу видеть твой экран",
]

FALSE_PROMISES = [
    "в следующем обновлении",
    "в следующей версии",
    "скоро появится",
    "скоро добавим",
    "скоро будет доступно",
    "планируется добавить",
    "планируется внедрить",
    "работаем над этим",
    "в разработке",
    "будет реализовано",
    "обещаю добавить",
]

ARCHITECTURE_LEAK = [
    # Prompt disclosure
    "system prompt",
    "системный промпт",
    "мой промпт",
    "в моих инструкциях",
    # Vendors and models
    "claude api",
    "anthropic",
    "openai",
    "gpt-3",
    "gpt-4",
    "gpt4",
    # Self-description of internals
    "меня запрограммировали",
    "меня настроили",
    "меня обучили",
    "мои ограничения установлены",
    "мои ограничения заданы",
    "я использую api",
    "я работаю на модели",
    "я основан на",
    "моя архитектура",
    "мой исходный код",
]

HALLUCINATION_MARKERS = [
    # Claims about earlier conversation
    "ты мне говорил",
    "ты мне рассказывал",
    "ты мне писал",
    "ты упоминал",
    "как ты сказал ранее",
    "как ты упомянул",
    "мы обсуждали",
    "мы говорили об этом",
    "я помню, что ты",
    "я знаю, что ты",
    "в прошлый раз ты",
    "ты раньше говорил",
    # Overconfidence
    "это точно так",
    "абсолютно точно",
    "я уверен на 100%",
    "абсолютно уверен",
    "гарантирую",
    "без сомнений",
    "могу утверждать",
    "точно знаю",
]

MANIPULATION = [
    "доверься мне",
    "поверь мне",
    "я никогда не ошибаюсь",
    "я никогда не вру",
    "я никогда не обманываю",
    "только между нами",
    "не говори никому",
    "это секрет",
    "никто не узнает",
    "ты должен мне верить",
    "я твой друг",
    "я твой лучший друг",
]

# Canned replacements; never derived from the blocked text
FALLBACKS = {
    REASON_FAKE_CAPABILITY: (
        "Эта функция недоступна в DropLit. "
        "Я могу помочь с заметками, поиском, графиками и диаграммами."
    ),
    REASON_FALSE_PROMISE: (
        "Не могу обещать будущие функции. "
        "Давай сосредоточимся на том, что доступно сейчас."
    ),
    REASON_ARCHITECTURE_LEAK: "Я ASKI, голосовой помощник в DropLit. Чем могу помочь?",
    REASON_HALLUCINATION: "Не нашёл подтверждения этому в твоих записях. Можешь уточнить?",
    REASON_MANIPULATION: "Давай вернёмся к делу. Чем могу помочь?",
    REASON_TOO_LONG: (
        "Сообщение слишком длинное. "
        "Попробуй разбить на части или сохранить как файл."
    ),
    REASON_INPUT_TOO_LONG: (
        "Твоё сообщение слишком длинное. "
        "Попробуй сформулировать короче или прикрепить как файл."
    ),
    "unknown": "Что-то пошло не так. Попробуй переформулировать запрос.",
}

ASSERTION_PATTERN = re.compile(r"(это|является|будет|можно|нужно)")
CLAIM_WORD_SPLIT = re.compile(r"[\s,\.!?]+")


def fallback_for(reason: str) -> str:
    """Return the canned replacement text for a block reason."""
    return FALLBACKS.get(reason, FALLBACKS["unknown"])


def count_assertions(text_lower: str) -> int:
    return len(ASSERTION_PATTERN.findall(text_lower))


def find_substring(text_lower: str, patterns: list[str]) -> Optional[str]:
    """
    Return the first pattern contained in text (case-insensitive).

    Returns:
        the matched pattern as stored, or None
    """
    for pattern in patterns:
        if pattern.lower() in text_lower:
            return pattern
    return None


def default_rule_tables() -> dict:
    """Fresh copy of the shipped rule database contents."""
    return {
        "version": RULE_DB_VERSION,
        "capabilities": list(CAPABILITIES),
        "safe_patterns": list(SAFE_PATTERNS),
        "fake_capabilities": list(FAKE_CAPABILITIES),
        "false_promises": list(FALSE_PROMISES),
        "architecture_leak": list(ARCHITECTURE_LEAK),
        "hallucination_markers": list(HALLUCINATION_MARKERS),
        "manipulation": list(MANIPULATION),
        "learned_bad_patterns": [],
        "learned_good_patterns": [],
        "stats": {"total_checked": 0, "blocked": 0, "passed": 0, "by_reason": {}},
        "block_log": [],
    }
