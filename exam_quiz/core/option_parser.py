from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Set, Tuple

from exam_quiz.core.text_sanitizer import sanitize
from exam_quiz.models.schemas import UNRESOLVED_KEY, Option

# "A. foo", "B) bar", "C baz"; the remainder may span several lines.
_OPTION_RE = re.compile(r"^\s*([A-Z])[.)\s]\s*(.*)", flags=re.DOTALL)


@dataclass(frozen=True)
class KeyCollision:
    position: int
    text: str
    parsed_key: str
    assigned_key: str
    kind: str  # "duplicate" | "positional"

    @property
    def message(self) -> str:
        if self.kind == "duplicate":
            return (
                f"option {self.position + 1}: letter {self.parsed_key} already used, "
                f"renumbered to {self.assigned_key}"
            )
        return (
            f"option {self.position + 1}: positional letter {self.parsed_key} already used, "
            f"assigned {self.assigned_key}"
        )


def letter_for_position(position: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA (spreadsheet style past Z)."""
    n = int(position)
    out = ""
    while True:
        n, rem = divmod(n, 26)
        out = chr(ord("A") + rem) + out
        if n == 0:
            return out
        n -= 1


def parse_option(raw: str) -> Option:
    text = sanitize(raw)
    m = _OPTION_RE.match(text)
    if m:
        return Option(key=m.group(1), text=m.group(2).strip())
    return Option(key=UNRESOLVED_KEY, text=text)


def parse_options(raw_options: Iterable[str] | None) -> List[Option]:
    """One Option per raw string, order preserved; unparseable keys stay '?'."""
    return [parse_option(r) for r in (raw_options or [])]


def _lowest_unused(used: Set[str]) -> str:
    i = 0
    while letter_for_position(i) in used:
        i += 1
    return letter_for_position(i)


def resolve_option_keys(
    options: Sequence[Option],
) -> Tuple[List[Option], List[KeyCollision]]:
    """
    Two-pass key resolution.

    Pass 1 keeps explicitly parsed letters (first claim wins). Pass 2 gives each
    remaining option its positional letter when free, otherwise the lowest unused
    letter. Every reassignment is reported as a KeyCollision.
    """
    used: Set[str] = set()
    keys: List[str] = [UNRESOLVED_KEY] * len(options)
    duplicates: Set[int] = set()

    for pos, opt in enumerate(options):
        if not opt.is_resolved:
            continue
        if opt.key in used:
            duplicates.add(pos)
            continue
        used.add(opt.key)
        keys[pos] = opt.key

    collisions: List[KeyCollision] = []
    for pos, opt in enumerate(options):
        if keys[pos] != UNRESOLVED_KEY:
            continue
        positional = letter_for_position(pos)
        assigned = positional if positional not in used else _lowest_unused(used)
        used.add(assigned)
        keys[pos] = assigned
        if pos in duplicates:
            collisions.append(
                KeyCollision(pos, opt.text, opt.key, assigned, "duplicate")
            )
        elif assigned != positional:
            collisions.append(
                KeyCollision(pos, opt.text, positional, assigned, "positional")
            )

    resolved = [
        opt if opt.key == key else Option(key=key, text=opt.text)
        for opt, key in zip(options, keys)
    ]
    return resolved, collisions
