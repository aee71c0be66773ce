from exam_quiz.core.explanation import (
    CommentsRule,
    DescriptionRule,
    ExplanationSources,
    MostVotedRule,
    build_explanation,
)
from exam_quiz.models.schemas import Comment, Vote


def _c(content: str, votes: int) -> Comment:
    return Comment(date="2024-01-01", vote_count=votes, content=content)


def test_description_wins_over_comments():
    out = build_explanation("<p>X</p>", [_c("ignored", 99)], None)
    assert out == "**Official Explanation:**\nX"
    assert "ignored" not in out
    assert "Community" not in out


def test_blank_description_falls_through_to_comments():
    out = build_explanation("<p>  </p>", [_c("fallback", 1)], None)
    assert out.startswith("**Community Insights:**")
    assert '• "fallback" (1 votes)' in out


def test_comments_top_three_by_votes_stable_ties():
    comments = [
        _c("low", 1),
        _c("tie-first", 5),
        _c("high", 10),
        _c("tie-second", 5),
        _c("tie-third", 5),
    ]
    out = build_explanation(None, comments, None)
    lines = out.splitlines()
    assert lines == [
        "**Community Insights:**",
        '• "high" (10 votes)',
        '• "tie-first" (5 votes)',
        '• "tie-second" (5 votes)',
    ]


def test_comment_content_is_sanitized():
    out = build_explanation(None, [_c("use <b>B</b><br>really", 2)], None)
    assert '• "use B\nreally" (2 votes)' in out


def test_most_voted_appended_to_description():
    votes = [Vote(answer="A", count=3), Vote(answer="B", count=7, is_most_voted=True)]
    out = build_explanation("desc", None, votes)
    assert out == "**Official Explanation:**\ndesc\n\n**Most Voted Answer:** B (7 votes)"


def test_first_most_voted_wins():
    votes = [
        Vote(answer="C", count=4, is_most_voted=True),
        Vote(answer="D", count=9, is_most_voted=True),
    ]
    out = build_explanation(None, None, votes)
    assert out == "**Most Voted Answer:** C (4 votes)"
    assert "D" not in out


def test_no_sources_gives_empty_string():
    assert build_explanation(None, None, None) == ""
    assert build_explanation("", [], [Vote(answer="A", count=1)]) == ""


def test_rules_are_independently_testable():
    sources = ExplanationSources(
        description="<i>why</i>",
        comments=[_c("c", 1)],
        votes=[Vote(answer="AB", count=2, is_most_voted=True)],
    )
    assert DescriptionRule().apply(sources) == "**Official Explanation:**\nwhy"
    assert CommentsRule(top_n=1).apply(sources) == '**Community Insights:**\n• "c" (1 votes)'
    assert MostVotedRule().apply(sources) == "**Most Voted Answer:** AB (2 votes)"
    assert CommentsRule(top_n=0).apply(sources) is None


def test_top_comments_limit_is_configurable():
    out = build_explanation(None, [_c("a", 3), _c("b", 2), _c("c", 1)], None, top_comments=1)
    assert out.count("•") == 1
