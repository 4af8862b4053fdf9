"""
CME credit mapping for learning activities.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class CMECategory(str, Enum):
    SA_CME = "SA-CME"  # self-assessment
    CME = "CME"


class CMECredit(BaseModel):
    credits: float
    category: CMECategory
    title: str
    activity_type: str


QUIZ_QUESTIONS_PER_BLOCK = 10
QUIZ_CREDITS_PER_BLOCK = 0.5


def calculate_cme_credits(activity_type: str, data: Optional[Dict[str, Any]] = None) -> Optional[CMECredit]:
    """Credits earned for an activity, or None for unknown/zero-credit activities."""
    data = data or {}
    if activity_type == "case_review":
        credits, category = 0.25, CMECategory.SA_CME
        title = f"Case Review: {data.get('case_title') or 'Unknown'}"
    elif activity_type == "quiz_session":
        count = int(data.get("question_count") or 0)
        credits = (count // QUIZ_QUESTIONS_PER_BLOCK) * QUIZ_CREDITS_PER_BLOCK
        category = CMECategory.SA_CME
        title = f"Quiz Session: {count} questions"
    elif activity_type == "oral_board":
        credits, category = 1.0, CMECategory.SA_CME
        title = f"Oral Board Simulation: {data.get('case_title') or 'Unknown'}"
    elif activity_type == "collection_complete":
        credits, category = 2.0, CMECategory.CME
        title = f"Collection Completed: {data.get('collection_name') or 'Unknown'}"
    else:
        return None

    if credits <= 0:
        return None
    return CMECredit(credits=credits, category=category, title=title, activity_type=activity_type)
