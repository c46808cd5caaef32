"""Daily safety quiz.

Every user gets one attempt per day. The day's questions are the
active questions in a fixed per-day order, so everyone sees the same
set on the same day.
"""
import json
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import unit_of_work
from ..models.quiz import QuizQuestion, QuizResult
from ..models.user import User
from .errors import StorageError, ValidationError
from .points import QUIZ_POINTS_PER_CORRECT, award_points
from .queries import today_iso

logger = logging.getLogger(__name__)

DAILY_QUESTION_COUNT = 10
HISTORY_LIMIT = 30

DEFAULT_QUIZ_QUESTIONS = [
    {
        "question": "What must be done before entering a confined space?",
        "option_a": "Tell a co-worker",
        "option_b": "Test the atmosphere and obtain an entry permit",
        "option_c": "Open the manway for five minutes",
        "option_d": "Wear a dust mask",
        "correct_answer": "B",
        "category": "Confined Space",
        "explanation": "Entry needs a valid permit and a gas test by an authorized gas tester.",
    },
    {
        "question": "Above what height is fall protection required on most sites?",
        "option_a": "0.5 m",
        "option_b": "1 m",
        "option_c": "1.8 m",
        "option_d": "5 m",
        "correct_answer": "C",
        "category": "Work at Height",
        "explanation": "Work at 1.8 m (6 ft) or more requires fall protection.",
    },
    {
        "question": "Who may remove a lockout device?",
        "option_a": "The person who applied it",
        "option_b": "Any supervisor",
        "option_c": "The next shift",
        "option_d": "Anyone with a key",
        "correct_answer": "A",
        "category": "LOTO",
        "explanation": "Only the worker who applied a lock removes it.",
    },
    {
        "question": "What is the first thing to do when you discover a fire?",
        "option_a": "Collect your tools",
        "option_b": "Raise the alarm",
        "option_c": "Take a photo",
        "option_d": "Open the windows",
        "correct_answer": "B",
        "category": "Fire Prevention",
        "explanation": "Raise the alarm first so the emergency response can start.",
    },
    {
        "question": "Where should you never stand during a lift?",
        "option_a": "Behind the barricade",
        "option_b": "Next to the signal man",
        "option_c": "Under the suspended load",
        "option_d": "Outside the swing radius",
        "correct_answer": "C",
        "category": "Lifting",
        "explanation": "Never stand under a suspended load or in the line of fire.",
    },
]


def seed_quiz_questions(db: Session) -> int:
    if db.query(QuizQuestion).count():
        return 0
    with unit_of_work(db):
        for data in DEFAULT_QUIZ_QUESTIONS:
            db.add(QuizQuestion(is_active=True, **data))
    logger.info("Seeded %s default quiz questions", len(DEFAULT_QUIZ_QUESTIONS))
    return len(DEFAULT_QUIZ_QUESTIONS)


def find_result(db: Session, user_id: int, quiz_date: str) -> Optional[QuizResult]:
    return db.query(QuizResult).filter(
        QuizResult.user_id == user_id,
        QuizResult.quiz_date == quiz_date,
    ).first()


def daily_questions(db: Session, today: Optional[date] = None) -> List[QuizQuestion]:
    """Active questions in the order for ``today``, at most ``DAILY_QUESTION_COUNT``."""
    day_of_year = (today or date.today()).timetuple().tm_yday
    questions = db.query(QuizQuestion).filter(QuizQuestion.is_active.is_(True)).all()
    questions.sort(key=lambda q: ((q.id * day_of_year) % 1000, q.id))
    return questions[:DAILY_QUESTION_COUNT]


def submit_quiz(db: Session, user: User, answers: List[dict], quiz_date: Optional[str] = None) -> dict:
    """Grade one attempt, store it and award a point per correct answer.

    Answers naming unknown questions count towards the total but are not graded.
    """
    quiz_date = quiz_date or today_iso()
    if find_result(db, user.id, quiz_date):
        raise ValidationError("Quiz already completed today")
    if not answers:
        raise ValidationError("Answers are required")

    ids = {answer["question_id"] for answer in answers}
    questions = {q.id: q for q in db.query(QuizQuestion).filter(QuizQuestion.id.in_(ids)).all()}

    score = 0
    results = []
    for answer in answers:
        question = questions.get(answer["question_id"])
        if question is None:
            continue
        given = (answer.get("answer") or "").strip().upper()
        is_correct = given == question.correct_answer
        if is_correct:
            score += 1
        results.append({
            "question_id": question.id,
            "user_answer": given,
            "correct_answer": question.correct_answer,
            "is_correct": is_correct,
            "explanation": question.explanation,
        })

    total = len(answers)
    try:
        with unit_of_work(db):
            db.add(QuizResult(
                user_id=user.id,
                quiz_date=quiz_date,
                score=score,
                total_questions=total,
                answers=json.dumps(results),
            ))
            if score > 0:
                award_points(
                    db, user.id, score * QUIZ_POINTS_PER_CORRECT,
                    f"Quiz: {score}/{total} correct answers",
                )
    except StorageError as exc:
        # A second attempt committed first
        if isinstance(exc.__cause__, IntegrityError):
            raise ValidationError("Quiz already completed today") from exc
        raise

    logger.info("User %s scored %s/%s on the %s quiz", user.id, score, total, quiz_date)
    return {"success": True, "score": score, "total": total, "results": results}
