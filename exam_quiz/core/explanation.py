"""
Explanation synthesis.

Rules run in a fixed order and each may contribute one text segment:

1. DescriptionRule   official answer description
2. CommentsRule      top community comments, only when rule 1 produced nothing
3. MostVotedRule     most voted answer, independent of rules 1 and 2
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from exam_quiz.core.text_sanitizer import sanitize
from exam_quiz.models.schemas import Comment, Vote

DEFAULT_TOP_COMMENTS = 3


@dataclass(frozen=True)
class ExplanationSources:
    description: Optional[str]
    comments: Sequence[Comment]
    votes: Sequence[Vote]


class DescriptionRule:
    name = "description"
    exclusive = True

    def apply(self, sources: ExplanationSources) -> Optional[str]:
        text = sanitize(sources.description)
        if not text:
            return None
        return f"**Official Explanation:**\n{text}"


class CommentsRule:
    name = "comments"
    exclusive = True

    def __init__(self, top_n: int = DEFAULT_TOP_COMMENTS):
        self.top_n = max(0, int(top_n))

    def apply(self, sources: ExplanationSources) -> Optional[str]:
        # sorted() is stable: equal vote counts keep input order.
        top = sorted(sources.comments, key=lambda c: -c.vote_count)[: self.top_n]
        if not top:
            return None
        lines = ["**Community Insights:**"]
        for c in top:
            lines.append(f'• "{sanitize(c.content)}" ({c.vote_count} votes)')
        return "\n".join(lines)


class MostVotedRule:
    name = "most_voted"
    exclusive = False

    def apply(self, sources: ExplanationSources) -> Optional[str]:
        most = next((v for v in sources.votes if v.is_most_voted), None)
        if most is None:
            return None
        return f"**Most Voted Answer:** {most.answer} ({most.count} votes)"


def default_rules(*, top_comments: int = DEFAULT_TOP_COMMENTS) -> list:
    return [DescriptionRule(), CommentsRule(top_comments), MostVotedRule()]


def build_explanation(
    description: Optional[str],
    comments: Optional[Sequence[Comment]],
    votes: Optional[Sequence[Vote]],
    *,
    top_comments: int = DEFAULT_TOP_COMMENTS,
    rules: Optional[list] = None,
) -> str:
    sources = ExplanationSources(
        description=description,
        comments=list(comments or []),
        votes=list(votes or []),
    )
    segments: List[str] = []
    exclusive_taken = False
    for rule in rules if rules is not None else default_rules(top_comments=top_comments):
        if rule.exclusive and exclusive_taken:
            continue
        segment = rule.apply(sources)
        if not segment:
            continue
        segments.append(segment)
        if rule.exclusive:
            exclusive_taken = True
    return "\n\n".join(segments).strip()
