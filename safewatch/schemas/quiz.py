from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from .common import JsonRecords

ANSWER_PATTERN = "^[A-Da-d]$"


class QuizQuestionCreate(BaseModel):
    question: str = Field(..., min_length=1)
    option_a: str = Field(..., min_length=1)
    option_b: str = Field(..., min_length=1)
    option_c: str = Field(..., min_length=1)
    option_d: str = Field(..., min_length=1)
    correct_answer: str = Field(..., pattern=ANSWER_PATTERN)
    category: str = "General"
    explanation: Optional[str] = None


class QuizQuestionUpdate(BaseModel):
    question: Optional[str] = Field(None, min_length=1)
    option_a: Optional[str] = Field(None, min_length=1)
    option_b: Optional[str] = Field(None, min_length=1)
    option_c: Optional[str] = Field(None, min_length=1)
    option_d: Optional[str] = Field(None, min_length=1)
    correct_answer: Optional[str] = Field(None, pattern=ANSWER_PATTERN)
    category: Optional[str] = None
    explanation: Optional[str] = None
    is_active: Optional[bool] = None


class QuizQuestionPublic(BaseModel):
    """A question as shown to a quiz taker; the answer stays hidden."""
    id: int
    question: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    category: Optional[str] = None

    class Config:
        from_attributes = True


class DrillQuestion(QuizQuestionPublic):
    correct_answer: str


class QuizQuestionResponse(DrillQuestion):
    explanation: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class QuizResultResponse(BaseModel):
    id: int
    quiz_date: str
    score: int
    total_questions: int
    answers: JsonRecords = []
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DailyQuiz(BaseModel):
    already_completed: bool
    questions: List[QuizQuestionPublic] = []
    result: Optional[QuizResultResponse] = None
    message: Optional[str] = None


class QuizAnswer(BaseModel):
    question_id: int
    answer: Optional[str] = None


class QuizSubmission(BaseModel):
    answers: List[QuizAnswer] = []


class GradedAnswer(BaseModel):
    question_id: int
    user_answer: str
    correct_answer: str
    is_correct: bool
    explanation: Optional[str] = None


class QuizSubmitResponse(BaseModel):
    success: bool
    score: int
    total: int
    results: List[GradedAnswer]


class DrillRequest(BaseModel):
    ids: List[int] = []

