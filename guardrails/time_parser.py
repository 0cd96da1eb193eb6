"""
Russian time expressions and keyword extraction for request/command matching.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Callable, Optional

STOP_WORDS = frozenset([
    # Prepositions and conjunctions
    "в", "на", "и", "а", "но", "или", "что", "как", "для", "по", "из", "за", "к",
    "через", "после", "перед", "до", "от", "у", "о", "об",
    # Pronouns
    "мне", "меня", "мой", "моя", "моё", "мои", "себе", "себя",
    "это", "эти", "этот", "эта", "то", "тот", "та", "те",
    # Command verbs and filler
    "напомни", "напомнить", "напоминание", "создай", "сделай",
    "пожалуйста", "нужно", "надо", "хочу", "буду",
])

NON_WORD = re.compile(r"[^\w\s]")

TimeBuilder = Callable[[re.Match, datetime], Optional[datetime]]


def _at_clock(day: datetime, hour: int, minute: int) -> Optional[datetime]:
    if hour > 23 or minute > 59:
        return None
    return day.replace(hour=hour, minute=minute, second=0, microsecond=0)


def _in_minutes(match: re.Match, now: datetime) -> datetime:
    return now + timedelta(minutes=int(match.group(1)))


def _in_half_hour(match: re.Match, now: datetime) -> datetime:
    return now + timedelta(minutes=30)


def _in_one_hour(match: re.Match, now: datetime) -> datetime:
    return now + timedelta(hours=1)


def _in_hours(match: re.Match, now: datetime) -> datetime:
    return now + timedelta(hours=int(match.group(1)))


def _tomorrow_at(match: re.Match, now: datetime) -> Optional[datetime]:
    minute = int(match.group(2) or 0)
    return _at_clock(now + timedelta(days=1), int(match.group(1)), minute)


def _today_at(match: re.Match, now: datetime) -> Optional[datetime]:
    target = _at_clock(now, int(match.group(1)), int(match.group(2)))
    if target is not None and target <= now:
        target += timedelta(days=1)
    return target


def _in_days(match: re.Match, now: datetime) -> datetime:
    return now + timedelta(days=int(match.group(1)))


# Checked top to bottom; the first rule that matches decides.
# "завтра" comes before the bare clock rule so "завтра в 10:30" is never read as today.
TIME_RULES: list[tuple[re.Pattern, TimeBuilder]] = [
    (re.compile(r"через\s+(\d+)\s*минут"), _in_minutes),
    (re.compile(r"через\s+пол\s?часа"), _in_half_hour),
    (re.compile(r"через\s+час\b"), _in_one_hour),
    (re.compile(r"через\s+(\d+)\s*час"), _in_hours),
    (re.compile(r"завтра\s+в?\s*(\d{1,2})[:.]?(\d{2})?"), _tomorrow_at),
    (re.compile(r"в\s+(\d{1,2})[:.](\d{2})"), _today_at),
    (re.compile(r"через\s+(\d+)\s*дн"), _in_days),
]


def parse_time_from_request(request: Optional[str], now: datetime) -> Optional[datetime]:
    """
    Parse the target time a user asked for, relative to ``now``.

    Returns:
        the expected datetime (in now's timezone), or None when no supported
        expression is found. None means "cannot verify", not "suspicious".
    """
    if not request:
        return None
    text = request.lower()
    for pattern, build in TIME_RULES:
        match = pattern.search(text)
        if match:
            return build(match, now)
    return None


def extract_significant_words(text: Optional[str]) -> list[str]:
    """Lowercased words longer than two characters, stop words removed, order kept."""
    if not text:
        return []
    cleaned = NON_WORD.sub(" ", text.lower())
    return [word for word in cleaned.split() if len(word) > 2 and word not in STOP_WORDS]
