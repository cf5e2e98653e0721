import json
import logging
import random

import pytest

from phytoquiz.models import Question, QuestionBank
from phytoquiz.questions import QuestionProvider
from phytoquiz.session import QuizSession


def make_question(qid, answer="a", texts=("Foo", "Bar", "Baz"), **extra):
    keys = ("a", "b", "c")
    return Question(
        id=qid,
        question=f"Question {qid}?",
        choices=[{"key": k, "text": t} for k, t in zip(keys, texts)],
        answer=answer,
        **extra,
    )


@pytest.fixture
def three_questions():
    return [
        make_question(1, answer="a"),
        make_question(2, answer="b"),
        make_question(3, answer="c"),
    ]


@pytest.fixture
def large_bank():
    return [make_question(i, answer="abc"[i % 3]) for i in range(1, 51)]


@pytest.fixture
def provider(three_questions, large_bank):
    return QuestionProvider(
        banks={QuestionBank.PP: three_questions, QuestionBank.P2: large_bank}
    )


@pytest.fixture
def session(provider):
    return QuizSession(provider, rng=random.Random(1234))


@pytest.fixture
def bank_dir(tmp_path):
    directory = tmp_path / "banks"
    directory.mkdir()
    (directory / "pp.json").write_text(
        json.dumps(
            [
                {
                    "id": 1,
                    "question": "First?",
                    "choices": [
                        {"key": "a", "text": "Yes"},
                        {"key": "b", "text": "No"},
                    ],
                    "answer": "a",
                },
                {
                    "id": 2,
                    "question": "Second?",
                    "image": "images/two.png",
                    "choices": [
                        {"key": "a", "text": "One"},
                        {"key": "b", "text": "Two"},
                        {"key": "c", "text": "Three"},
                    ],
                    "answer": "c",
                    "explanation": "Because.",
                },
            ]
        ),
        encoding="utf-8",
    )
    (directory / "p3.csv").write_text(
        "id,question,image,a,b,c,answer,explanation\n"
        '7,"Who sells?",,Licensed,Anyone,Nobody,A,"Only licence holders."\n'
        "8,Keep records?,pic.png,Yes,No,,b,\n",
        encoding="utf-8",
    )
    return directory


@pytest.fixture
def reset_app_logging():
    yield
    logger = logging.getLogger("phytoquiz")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
