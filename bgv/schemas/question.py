"""
Pydantic schemas for form question endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class QuestionCreate(BaseModel):
    question_text: Optional[str] = None
    form_section: Optional[str] = Field(None, description="Form section the question appears in, e.g. personal")
    display_order: int = 0
    is_active: bool = True


class QuestionUpdate(BaseModel):
    question_text: Optional[str] = None
    form_section: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class QuestionResponse(BaseModel):
    id: int
    question_text: str
    form_section: str
    display_order: int
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AnswerSave(BaseModel):
    question_id: Optional[int] = None
    answer_text: Optional[str] = None
