# blog/metadata.py
import math

WORDS_PER_MINUTE = 200


def word_count(markdown: str) -> int:
    # counted on the raw source, markup tokens included
    return len((markdown or "").split())


def reading_time(markdown: str) -> int:
    """Minutes to read: ceil(words / 200); 0 only for empty input, otherwise at least 1."""
    if not markdown:
        return 0
    return max(1, math.ceil(word_count(markdown) / WORDS_PER_MINUTE))
