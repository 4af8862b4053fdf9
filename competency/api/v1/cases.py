"""
Case endpoints - milestone tags for teaching cases.
"""

import uuid

from fastapi import APIRouter, HTTPException, status

from competency.api.deps import DbSession
from competency.engines.milestones.auto_tagger import CaseAutoTagger
from competency.kernel.models import Case
from competency.schemas.milestones import CaseTagItem, CaseTagsResponse

router = APIRouter()


@router.get("/{case_id}/milestones", response_model=CaseTagsResponse)
async def get_case_milestones(case_id: uuid.UUID, db: DbSession):
    """Milestones tagged to a case, most relevant first."""
    tags = await CaseAutoTagger(db).case_tags(case_id)
    return CaseTagsResponse(case_id=case_id, milestones=[CaseTagItem(**t) for t in tags])


@router.post("/{case_id}/auto-tag", response_model=CaseTagsResponse)
async def auto_tag_case(case_id: uuid.UUID, db: DbSession):
    """Re-derive milestone tags from the case's region, modality and difficulty."""
    if await db.get(Case, case_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    tags = await CaseAutoTagger(db).auto_tag_case(case_id)
    return CaseTagsResponse(case_id=case_id, milestones=[CaseTagItem(**t) for t in tags])
