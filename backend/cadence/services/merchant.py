"""Merchant normalization and merchant-key matching."""

import re
from typing import Iterable, List

MATCH_KEY_WORDS = 3
INCOME_KEY_WORDS = 6
MAX_DISMISSAL_KEYWORDS = 5

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_merchant(name: str, max_words: int = MATCH_KEY_WORDS) -> str:
    """
    Canonicalize a free-text descriptor into a merchant key.

    "NETFLIX.COM 866-579-7172 CA" -> "netflixcom 8665797172 ca"
    An empty or punctuation-only descriptor yields "".
    """
    if not name:
        return ""
    cleaned = _NON_ALNUM.sub("", name.lower())
    words = _WHITESPACE.sub(" ", cleaned).strip().split(" ")
    return " ".join(words[:max_words]).strip()


def transaction_key(txn, max_words: int = MATCH_KEY_WORDS) -> str:
    """Merchant key of a transaction from its best available descriptor."""
    return normalize_merchant(txn.descriptor, max_words)


def key_word_count(key: str) -> int:
    return len(key.split()) if key else 0


def keys_match_loose(a: str, b: str) -> bool:
    """Equal, or one key contains the other."""
    if not a or not b:
        return False
    return a == b or a in b or b in a


def keys_match_strict(a: str, b: str) -> bool:
    """Equal, or agreement on the first two tokens (manual/income mode)."""
    if not a or not b:
        return False
    if a == b:
        return True
    a_words, b_words = a.split(), b.split()
    return len(a_words) >= 2 and len(b_words) >= 2 and a_words[:2] == b_words[:2]


def is_dismissed(key: str, dismissed_keys: Iterable[str]) -> bool:
    """
    Lenient dismissal matching.

    A key is dismissed when it equals a dismissed key, either one contains the
    other, or both agree on their first two tokens.
    """
    key_lower = (key or "").lower()
    if not key_lower:
        return False
    key_words = key_lower.split()
    for dismissed in dismissed_keys:
        dismissed_lower = (dismissed or "").lower()
        if not dismissed_lower:
            continue
        if key_lower in dismissed_lower or dismissed_lower in key_lower:
            return True
        dismissed_words = dismissed_lower.split()
        if (len(key_words) >= 2 and len(dismissed_words) >= 2
                and key_words[0] == dismissed_words[0]
                and key_words[1] == dismissed_words[1]):
            return True
    return False


def extract_keywords(name: str) -> List[str]:
    """Tokens longer than two characters, kept on dismissals for later learning."""
    cleaned = _NON_ALNUM.sub("", (name or "").lower())
    words = [w for w in _WHITESPACE.split(cleaned) if len(w) > 2]
    return words[:MAX_DISMISSAL_KEYWORDS]
