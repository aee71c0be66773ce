import pytest
from pydantic import ValidationError

from exam_quiz.core.normalizer import make_question_ids, normalize_questions
from exam_quiz.models.schemas import NormalizedQuestion, QuestionType, RawQuestion

RAW = [
    {
        "topic": "Networking",
        "index": 7,
        "body": "<p>Which port does HTTPS use?</p>",
        "answer": "b",
        "options": ["A. 80", "B. 443", "C. 22"],
        "answerDescription": "<b>443</b> is the default.",
    },
    {
        "body": "Pick two<br>primes",
        "answer": "CA",
        "options": ["2", "4", "3"],
        "comments": [
            {"date": "2024-01-01", "voteCount": 2, "content": "A and C"},
        ],
        "votes": [{"answer": "AC", "count": 5, "isMostVoted": True}],
    },
    {"body": "", "answer": "", "options": None},
]


def test_normalize_preserves_order_and_count():
    out = normalize_questions(RAW)
    assert len(out) == 3
    assert [q.index for q in out] == ["7", "2", "3"]
    assert out[0].body == "Which port does HTTPS use?"
    assert out[1].body == "Pick two\nprimes"


def test_normalize_ids_unique_and_type_consistent():
    out = normalize_questions(RAW)
    assert len({q.id for q in out}) == 3
    for q in out:
        expected = QuestionType.MULTI if len(q.correct_answers) > 1 else QuestionType.SINGLE
        assert q.type == expected
    assert out[0].type == QuestionType.SINGLE
    assert out[1].type == QuestionType.MULTI
    assert out[2].type == QuestionType.SINGLE
    assert out[2].correct_answers == ()


def test_normalize_defaults_topic_and_options():
    out = normalize_questions(RAW)
    assert out[0].topic == "Networking"
    assert out[1].topic == "General"
    assert out[2].options == ()
    assert out[2].explanation == ""


def test_normalize_positional_keys_and_answers():
    out = normalize_questions(RAW)
    q = out[1]
    assert [(o.key, o.text) for o in q.options] == [("A", "2"), ("B", "4"), ("C", "3")]
    assert q.correct_answers == ("A", "C")
    assert q.warnings == ()


def test_normalize_explanations():
    out = normalize_questions(RAW)
    assert out[0].explanation == "**Official Explanation:**\n443 is the default."
    assert out[1].explanation == (
        '**Community Insights:**\n• "A and C" (2 votes)\n\n'
        "**Most Voted Answer:** AC (5 votes)"
    )


def test_normalize_two_most_voted_references_first_only():
    raw = {
        "body": "q",
        "answer": "A",
        "options": ["A. x", "B. y"],
        "votes": [
            {"answer": "A", "count": 3, "isMostVoted": True},
            {"answer": "B", "count": 8, "isMostVoted": True},
        ],
    }
    (q,) = normalize_questions([raw])
    assert q.explanation == "**Most Voted Answer:** A (3 votes)"


def test_normalize_collision_surfaces_warning():
    (q,) = normalize_questions([{"body": "q", "answer": "B", "options": ["B. x", "y"]}])
    assert [o.key for o in q.options] == ["B", "A"]
    assert len(q.warnings) == 1
    assert "positional letter B" in q.warnings[0]


def test_normalize_accepts_models_and_snake_case():
    raw = RawQuestion(body="b", answer="A", answer_description="d", options=["A. x"])
    (q,) = normalize_questions([raw])
    assert q.explanation == "**Official Explanation:**\nd"
    assert q.index == "1"


def test_normalize_thread_pool_keeps_order():
    raws = [{"body": f"q{i}", "answer": "A", "options": ["A. x"]} for i in range(20)]
    out = normalize_questions(raws, max_workers=4)
    assert [q.body for q in out] == [f"q{i}" for i in range(20)]
    assert [q.index for q in out] == [str(i + 1) for i in range(20)]
    assert len({q.id for q in out}) == 20


def test_normalize_empty_batch():
    assert normalize_questions([]) == []


def test_id_prefix_and_settings(monkeypatch):
    monkeypatch.setenv("QUESTION_ID_PREFIX", "exam")
    monkeypatch.setenv("DEFAULT_TOPIC", "Misc")
    (q,) = normalize_questions([{"body": "b"}])
    assert q.id.startswith("exam-")
    assert q.topic == "Misc"
    (q2,) = normalize_questions([{"body": "b"}], id_prefix="x")
    assert q2.id.startswith("x-")


def test_make_question_ids_distinct_batches():
    a = make_question_ids(3)
    b = make_question_ids(3)
    assert a[0].endswith("-1") and a[2].endswith("-3")
    assert set(a).isdisjoint(b)


def test_type_is_derived_not_settable():
    q = NormalizedQuestion(id="x", index="1", correct_answers=["A", "B"])
    assert q.type == QuestionType.MULTI
    assert q.model_dump()["type"] == QuestionType.MULTI
    # An incoming `type` key is ignored.
    q2 = NormalizedQuestion.model_validate(
        {"id": "y", "index": "1", "correct_answers": ["A"], "type": "MULTI"}
    )
    assert q2.type == QuestionType.SINGLE


def test_normalize_tolerates_null_comment_and_vote_fields():
    raw = {
        "body": "q",
        "answer": "A",
        "options": ["A. x", "B. y"],
        "comments": [
            {"date": None, "voteCount": None, "content": None},
            {"date": "2024-01-01", "voteCount": 4, "content": "A"},
        ],
        "votes": [{"answer": None, "count": None, "isMostVoted": None}],
    }
    (q,) = normalize_questions([raw])
    assert q.explanation == (
        '**Community Insights:**\n• "A" (4 votes)\n• "" (0 votes)'
    )


def test_normalize_null_option_keeps_its_position():
    raw = {"body": "q", "answer": "B", "options": ["A. x", None, "C. z"]}
    (q,) = normalize_questions([raw])
    assert [(o.key, o.text) for o in q.options] == [("A", "x"), ("B", ""), ("C", "z")]
    assert q.warnings == ()


def test_normalized_question_collections_are_immutable():
    (q,) = normalize_questions([{"body": "q", "answer": "AB", "options": ["A. x", "B. y"]}])
    assert isinstance(q.correct_answers, tuple)
    assert isinstance(q.options, tuple)
    with pytest.raises(AttributeError):
        q.correct_answers.append("C")
    with pytest.raises(ValidationError):
        q.correct_answers = ("A",)
    assert q.type == QuestionType.MULTI
