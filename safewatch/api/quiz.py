from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ..db import get_db, unit_of_work
from ..models.quiz import QuizQuestion, QuizResult
from ..models.user import User
from ..schemas.common import MessageResponse
from ..schemas.quiz import (
    DailyQuiz,
    DrillQuestion,
    DrillRequest,
    QuizQuestionCreate,
    QuizQuestionResponse,
    QuizQuestionUpdate,
    QuizResultResponse,
    QuizSubmission,
    QuizSubmitResponse,
)
from ..api.auth import get_current_user, require_admin
from ..core.queries import today_iso
from ..core.quiz import HISTORY_LIMIT, daily_questions, find_result, submit_quiz

router = APIRouter()


def _get_question_or_404(db: Session, question_id: int) -> QuizQuestion:
    question = db.query(QuizQuestion).filter(QuizQuestion.id == question_id).first()
    if not question:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")
    return question


@router.get("/questions", response_model=DailyQuiz)
def todays_quiz(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Today's questions, or today's result if the quiz is already done"""
    result = find_result(db, current_user.id, today_iso())
    if result:
        return {"already_completed": True, "result": result}

    questions = daily_questions(db)
    if not questions:
        return {"already_completed": False, "questions": [], "message": "No quiz questions available"}
    return {"already_completed": False, "questions": questions}


@router.post("/submit", response_model=QuizSubmitResponse)
def submit_todays_quiz(
    payload: QuizSubmission,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    answers = [answer.model_dump() for answer in payload.answers]
    return submit_quiz(db, current_user, answers)


@router.get("/history", response_model=List[QuizResultResponse])
def quiz_history(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return (
        db.query(QuizResult)
        .filter(QuizResult.user_id == current_user.id)
        .order_by(QuizResult.quiz_date.desc())
        .limit(HISTORY_LIMIT)
        .all()
    )


@router.get("/questions/all", response_model=List[QuizQuestionResponse])
def list_all_questions(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return db.query(QuizQuestion).order_by(QuizQuestion.created_at.desc(), QuizQuestion.id.desc()).all()


@router.post("/questions", response_model=QuizQuestionResponse)
def create_question(
    payload: QuizQuestionCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    data = payload.model_dump()
    data["correct_answer"] = data["correct_answer"].upper()
    question = QuizQuestion(**data, is_active=True)
    with unit_of_work(db):
        db.add(question)
    db.refresh(question)
    return question


@router.put("/questions/{question_id}", response_model=QuizQuestionResponse)
def update_question(
    question_id: int,
    payload: QuizQuestionUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    question = _get_question_or_404(db, question_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "correct_answer" in changes:
        changes["correct_answer"] = changes["correct_answer"].upper()
    with unit_of_work(db):
        for field, value in changes.items():
            setattr(question, field, value)
    db.refresh(question)
    return question


@router.delete("/questions/{question_id}", response_model=MessageResponse)
def delete_question(
    question_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    question = _get_question_or_404(db, question_id)
    with unit_of_work(db):
        db.delete(question)
    return {"success": True, "message": "Question deleted"}


@router.post("/questions/drill", response_model=List[DrillQuestion])
def drill_questions(
    payload: DrillRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Questions with answers, for reviewing past mistakes"""
    if not payload.ids:
        return []
    return db.query(QuizQuestion).filter(QuizQuestion.id.in_(payload.ids)).order_by(QuizQuestion.id).all()
