import json

import pytest

from exam_quiz.services.question_loader import load_raw_questions, parse_raw_questions
from exam_quiz.utils.errors import QuestionFileError


def test_load_list_shape(tmp_path):
    p = tmp_path / "q.json"
    p.write_text(
        json.dumps([{"body": "b", "answer": "A", "options": ["A. x"], "extra": 1}]),
        encoding="utf-8",
    )
    (q,) = load_raw_questions(p)
    assert q.body == "b"
    assert q.options == ["A. x"]


def test_load_object_shape_with_camel_case(tmp_path):
    p = tmp_path / "q.json"
    p.write_text(
        json.dumps(
            {
                "questions": [
                    {
                        "body": "b",
                        "answerDescription": "d",
                        "votes": [{"answer": "A", "count": 2, "isMostVoted": True}],
                        "comments": [{"date": "x", "voteCount": 3, "content": "c"}],
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    (q,) = load_raw_questions(p)
    assert q.answer_description == "d"
    assert q.votes[0].is_most_voted is True
    assert q.comments[0].vote_count == 3


def test_load_errors(tmp_path):
    with pytest.raises(QuestionFileError):
        load_raw_questions(tmp_path / "missing.json")
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(QuestionFileError):
        load_raw_questions(bad)
    with pytest.raises(QuestionFileError):
        parse_raw_questions({"items": []})
    with pytest.raises(QuestionFileError):
        parse_raw_questions([{"options": "not-a-list"}])
