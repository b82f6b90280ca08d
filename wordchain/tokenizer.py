import re
from typing import List

_WHITESPACE = re.compile(r"\s+")


def _is_letter(c: str) -> bool:
    return ("a" <= c <= "z") or ("A" <= c <= "Z")


def split_sentences(text: str) -> List[str]:
    """
    Split text at every period. Each sentence keeps its terminating period;
    a trailing fragment without one is still returned.
    """
    parts = text.split(".")
    sentences = [p + "." for p in parts[:-1]]
    if parts[-1]:
        sentences.append(parts[-1])
    return sentences


def clean_token(token: str) -> str:
    """Strip non-letter characters from both ends, keeping interior ones."""
    start = 0
    end = len(token)
    while start < end and not _is_letter(token[start]):
        start += 1
    while end > start and not _is_letter(token[end - 1]):
        end -= 1
    return token[start:end]


def tokenize(text: str, order: int = 1) -> List[str]:
    """
    text: str
    order: int (number of whitespace-delimited words grouped into one token)
    """
    if order < 1:
        raise ValueError(f"order must be >= 1, got {order}")

    words = [w for w in _WHITESPACE.split(text) if w]
    grouped = [" ".join(words[i:i + order]) for i in range(0, len(words), order)]

    tokens = []
    for raw in grouped:
        token = clean_token(raw)
        if token:
            tokens.append(token)
    return tokens
