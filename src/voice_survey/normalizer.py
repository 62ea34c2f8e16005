"""Canonicalization of recognized speech."""

import re
from typing import Optional

PUNCTUATION_REGEX = re.compile(r"[^\w\s]")
WHITESPACE_REGEX = re.compile(r"\s+")
SCRIPT_REGEX = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
TAG_REGEX = re.compile(r"<[^>]*>")
DIGITS_REGEX = re.compile(r"\d+")

NUMBER_WORDS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18,
    "nineteen": 19, "twenty": 20,
}


def normalize(text: Optional[str]) -> str:
    """Lowercase, drop punctuation and collapse whitespace.

    normalize(normalize(s)) == normalize(s) for every string.
    """
    if not text:
        return ""
    lowered = text.lower()
    stripped = PUNCTUATION_REGEX.sub("", lowered)
    return WHITESPACE_REGEX.sub(" ", stripped).strip()


def sanitize(text: Optional[str]) -> str:
    """Remove script blocks and tag-like markup before writing into a text field."""
    if not text:
        return ""
    without_scripts = SCRIPT_REGEX.sub("", text)
    return TAG_REGEX.sub("", without_scripts).strip()


def tokens(text: str) -> list[str]:
    normalized = normalize(text)
    return normalized.split(" ") if normalized else []


def contains_phrase(haystack: list[str], needle: list[str]) -> bool:
    """Whether `needle` occurs as a contiguous token run inside `haystack`."""
    if not needle or len(needle) > len(haystack):
        return False
    width = len(needle)
    return any(haystack[i:i + width] == needle for i in range(len(haystack) - width + 1))


def extract_number(text: str) -> Optional[int]:
    """Return the first integer spoken in `text`, as digits or a number word."""
    for token in tokens(text):
        digits = DIGITS_REGEX.search(token)
        if digits:
            return int(digits.group())
        if token in NUMBER_WORDS:
            return NUMBER_WORDS[token]
    return None
