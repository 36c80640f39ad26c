from typing import Dict, List

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from ..finder import QUESTION_BANK, QUESTIONS_PER_SESSION, Answer, FinderQuestion, answers_to_filters, pick_questions
from ..models import FilterSpecification

router = APIRouter()


class FinderAnswers(BaseModel):
    answers: Dict[str, Answer] = Field(default_factory=dict)


@router.get("/questions", response_model=List[FinderQuestion])
def questions(count: int = Query(default=QUESTIONS_PER_SESSION, ge=1, le=len(QUESTION_BANK))):
    return pick_questions(count)


@router.post("/filters", response_model=FilterSpecification)
def filters(payload: FinderAnswers):
    return answers_to_filters(payload.answers)
