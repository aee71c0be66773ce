from __future__ import annotations

import string
from typing import Any, List

_LETTERS = frozenset(string.ascii_uppercase)


def parse_correct_answers(answer: Any) -> List[str]:
    """'ba' -> ['A', 'B']; non-letters dropped, duplicates collapsed."""
    if not answer:
        return []
    return sorted({c for c in str(answer).upper() if c in _LETTERS})
