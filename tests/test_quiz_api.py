"""Tests for the daily safety quiz."""

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from safewatch.core import quiz
from safewatch.core.errors import ValidationError
from safewatch.core.quiz import DAILY_QUESTION_COUNT, daily_questions, seed_quiz_questions, submit_quiz
from safewatch.models.points import PointsHistory
from safewatch.models.quiz import QuizQuestion, QuizResult


def _question(db: Session, text: str, correct: str, active: bool = True) -> QuizQuestion:
    item = QuizQuestion(
        question=text,
        option_a="Alpha",
        option_b="Bravo",
        option_c="Charlie",
        option_d="Delta",
        correct_answer=correct,
        category="General",
        explanation=f"The answer is {correct}",
        is_active=active,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@pytest.fixture
def questions(db: Session):
    return [
        _question(db, "Which permit covers welding?", "A"),
        _question(db, "Who signs the gas test?", "B"),
        _question(db, "Where is the muster point?", "C"),
    ]


class TestDailyQuestions:
    """Same ordered set for everyone on a given day."""

    def test_limited_and_active_only(self, db: Session) -> None:
        for n in range(DAILY_QUESTION_COUNT + 2):
            _question(db, f"Question {n}", "A")
        hidden = _question(db, "Retired question", "A", active=False)

        picked = daily_questions(db, date(2024, 1, 1))

        assert len(picked) == DAILY_QUESTION_COUNT
        assert hidden.id not in [q.id for q in picked]

    def test_stable_within_a_day(self, db: Session, questions) -> None:
        first = [q.id for q in daily_questions(db, date(2024, 3, 9))]
        second = [q.id for q in daily_questions(db, date(2024, 3, 9))]

        assert first == second

    def test_seed_once(self, db: Session) -> None:
        assert seed_quiz_questions(db) == len(quiz.DEFAULT_QUIZ_QUESTIONS)
        assert seed_quiz_questions(db) == 0


class TestSubmitQuiz:
    """Grading, the one-attempt rule and points."""

    def test_grades_and_awards_a_point_per_correct_answer(
        self, db: Session, reporter, questions
    ) -> None:
        welding, gas_test, _ = questions
        answers = [
            {"question_id": welding.id, "answer": "a"},
            {"question_id": gas_test.id, "answer": "C"},
            {"question_id": 999, "answer": "A"},
        ]

        result = submit_quiz(db, reporter, answers, quiz_date="2024-05-01")

        assert result["score"] == 1
        assert result["total"] == 3
        assert [(r["question_id"], r["is_correct"]) for r in result["results"]] == [
            (welding.id, True),
            (gas_test.id, False),
        ]
        db.expire_all()
        assert reporter.points == 1
        ledger = db.query(PointsHistory).filter(PointsHistory.user_id == reporter.id).all()
        assert [(row.points, row.reason) for row in ledger] == [(1, "Quiz: 1/3 correct answers")]

    def test_zero_score_earns_nothing(self, db: Session, reporter, questions) -> None:
        submit_quiz(db, reporter, [{"question_id": questions[0].id, "answer": "D"}], quiz_date="2024-05-01")

        assert db.query(PointsHistory).count() == 0
        assert db.query(QuizResult).count() == 1

    def test_one_attempt_per_day(self, db: Session, reporter, questions) -> None:
        answers = [{"question_id": questions[0].id, "answer": "A"}]
        submit_quiz(db, reporter, answers, quiz_date="2024-05-01")

        with pytest.raises(ValidationError, match="already completed"):
            submit_quiz(db, reporter, answers, quiz_date="2024-05-01")

        submit_quiz(db, reporter, answers, quiz_date="2024-05-02")
        db.expire_all()
        assert reporter.points == 2

    def test_concurrent_second_attempt(self, db: Session, reporter, questions, monkeypatch) -> None:
        answers = [{"question_id": questions[0].id, "answer": "A"}]
        submit_quiz(db, reporter, answers, quiz_date="2024-05-01")
        monkeypatch.setattr(quiz, "find_result", lambda *args: None)

        with pytest.raises(ValidationError, match="already completed"):
            submit_quiz(db, reporter, answers, quiz_date="2024-05-01")

        db.expire_all()
        assert reporter.points == 1

    def test_answers_required(self, db: Session, reporter) -> None:
        with pytest.raises(ValidationError):
            submit_quiz(db, reporter, [])


class TestQuizEndpoints:
    """HTTP surface for taking and managing the quiz."""

    def test_take_quiz_then_history(
        self, test_client: TestClient, reporter, auth_headers, questions
    ) -> None:
        headers = auth_headers(reporter)

        todays = test_client.get("/api/quiz/questions", headers=headers)
        assert todays.json()["already_completed"] is False
        served = todays.json()["questions"]
        assert len(served) == 3
        assert "correct_answer" not in served[0]

        submitted = test_client.post(
            "/api/quiz/submit",
            headers=headers,
            json={"answers": [{"question_id": q.id, "answer": q.correct_answer} for q in questions]},
        )
        again = test_client.post(
            "/api/quiz/submit",
            headers=headers,
            json={"answers": [{"question_id": questions[0].id, "answer": "A"}]},
        )
        done = test_client.get("/api/quiz/questions", headers=headers)
        history = test_client.get("/api/quiz/history", headers=headers)

        assert submitted.status_code == 200
        assert submitted.json()["score"] == 3
        assert again.status_code == 400
        assert again.json() == {"error": "Quiz already completed today"}
        assert done.json()["already_completed"] is True
        assert done.json()["result"]["score"] == 3
        assert len(history.json()) == 1
        assert len(history.json()[0]["answers"]) == 3

    def test_no_questions(self, test_client: TestClient, reporter, auth_headers) -> None:
        response = test_client.get("/api/quiz/questions", headers=auth_headers(reporter))

        assert response.json()["questions"] == []
        assert response.json()["message"] == "No quiz questions available"

    def test_empty_submission(self, test_client: TestClient, reporter, auth_headers) -> None:
        response = test_client.post("/api/quiz/submit", headers=auth_headers(reporter), json={"answers": []})

        assert response.status_code == 400
        assert response.json() == {"error": "Answers are required"}

    def test_question_admin(self, test_client: TestClient, admin, reporter, auth_headers) -> None:
        payload = {
            "question": "What colour is a fire blanket case?",
            "option_a": "Blue",
            "option_b": "Green",
            "option_c": "Yellow",
            "option_d": "Red",
            "correct_answer": "d",
        }

        forbidden = test_client.post("/api/quiz/questions", headers=auth_headers(reporter), json=payload)
        created = test_client.post("/api/quiz/questions", headers=auth_headers(admin), json=payload)
        question_id = created.json()["id"]
        retired = test_client.put(
            f"/api/quiz/questions/{question_id}", headers=auth_headers(admin), json={"is_active": False}
        )
        listed = test_client.get("/api/quiz/questions/all", headers=auth_headers(admin))
        deleted = test_client.delete(f"/api/quiz/questions/{question_id}", headers=auth_headers(admin))
        missing = test_client.delete(f"/api/quiz/questions/{question_id}", headers=auth_headers(admin))

        assert forbidden.status_code == 403
        assert created.status_code == 200
        assert created.json()["correct_answer"] == "D"
        assert created.json()["category"] == "General"
        assert retired.json()["is_active"] is False
        assert [q["id"] for q in listed.json()] == [question_id]
        assert deleted.status_code == 200
        assert missing.status_code == 404

    def test_invalid_answer_letter(self, test_client: TestClient, admin, auth_headers) -> None:
        payload = {
            "question": "Pick one",
            "option_a": "1",
            "option_b": "2",
            "option_c": "3",
            "option_d": "4",
            "correct_answer": "E",
        }

        response = test_client.post("/api/quiz/questions", headers=auth_headers(admin), json=payload)

        assert response.status_code == 422

    def test_drill_reveals_answers(
        self, test_client: TestClient, reporter, auth_headers, questions
    ) -> None:
        headers = auth_headers(reporter)

        drill = test_client.post(
            "/api/quiz/questions/drill", headers=headers, json={"ids": [questions[1].id, questions[0].id]}
        )
        empty = test_client.post("/api/quiz/questions/drill", headers=headers, json={"ids": []})

        assert [(q["id"], q["correct_answer"]) for q in drill.json()] == [
            (questions[0].id, "A"),
            (questions[1].id, "B"),
        ]
        assert empty.json() == []
