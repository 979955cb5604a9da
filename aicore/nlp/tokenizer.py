"""Keyword tokenizer shared by indexing, decisions, and chat retrieval.

Parsing and normalization:
    - Text is lowercased and split into alphanumeric runs (`[^\\W_]+`, so
      accented letters count as alphanumeric and `_` is a separator).
    - `extract_keywords` additionally drops tokens shorter than
      `MIN_TOKEN_LENGTH` and tokens in `STOP_WORDS`.

Interaction with other layers:
    - `aicore.memory.pattern_index` counts `extract_keywords` output.
    - `aicore.core.decision` and `aicore.core.engine` use the same function on
      queries and chat messages, so a query keyword always matches the index
      key produced for identical text in an experience.

Determinism:
    Pure functions. Output depends only on the input string.
"""

import re
from typing import List


MIN_TOKEN_LENGTH = 3

_TOKEN_RE = re.compile(r"[^\W_]+", re.UNICODE)

# Indonesian and English function words that carry no topical signal.
STOP_WORDS = frozenset({
    # Indonesian
    "ada", "adalah", "akan", "atau", "bisa", "dalam", "dan", "dari", "dengan",
    "ini", "itu", "juga", "karena", "ke", "kami", "kamu", "kita", "lagi",
    "oleh", "pada", "saja", "saya", "sudah", "tidak", "untuk", "yang",
    # English
    "and", "are", "but", "for", "from", "had", "has", "have", "her", "his",
    "its", "not", "our", "she", "that", "the", "their", "them", "there",
    "they", "this", "was", "were", "will", "with", "you", "your",
})


def tokenize(text: str) -> List[str]:
    """Split text into lowercase alphanumeric runs without any filtering.

    Args:
        text: Raw text. `None` and empty strings yield an empty list.

    Returns:
        Tokens in their original order, duplicates kept.
    """
    if not text:
        return []
    return _TOKEN_RE.findall(str(text).lower())


def is_keyword(token: str) -> bool:
    return len(token) >= MIN_TOKEN_LENGTH and token not in STOP_WORDS


def extract_keywords(text: str) -> List[str]:
    """Return indexable keywords in order of occurrence, duplicates kept.

    Repeated occurrences are preserved because pattern frequency counts every
    occurrence.
    """
    return [token for token in tokenize(text) if is_keyword(token)]


def unique_keywords(text: str) -> List[str]:
    """Return indexable keywords deduplicated, first occurrence order kept."""
    seen = set()
    ordered = []
    for keyword in extract_keywords(text):
        if keyword not in seen:
            seen.add(keyword)
            ordered.append(keyword)
    return ordered
