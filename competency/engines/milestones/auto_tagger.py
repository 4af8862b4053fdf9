"""
Case Auto-Tagger - assigns milestone relevance scores to a teaching case.

Milestones whose applicability filter matches the case get a relevance from
RULES, or DEFAULT_RELEVANCE when no rule names them.
"""

import uuid
from typing import Callable, Dict, List, NamedTuple, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from competency.engines.milestones.relevance import matches_milestone
from competency.kernel.models import Case, CaseMilestoneTag, Milestone
from competency.kernel.upsert import upsert
from competency.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_RELEVANCE = 0.5
DEFAULT_CASE_DIFFICULTY = 2
CONSULTATIVE_MIN_DIFFICULTY = 3
PROCEDURE_MODALITY_MARKERS = ("fluoroscopy", "interventional", "ultrasound", "us")


def is_high_difficulty(case: Case) -> bool:
    return (case.difficulty or DEFAULT_CASE_DIFFICULTY) >= CONSULTATIVE_MIN_DIFFICULTY


def is_procedural_modality(case: Case) -> bool:
    modality = (case.modality or "").lower()
    return any(marker in modality for marker in PROCEDURE_MODALITY_MARKERS)


class TagRule(NamedTuple):
    milestone_id: str
    relevance: float
    predicate: Optional[Callable[[Case], bool]] = None
    skip_if_unmet: bool = True


RULES: List[TagRule] = [
    TagRule("DR-PC2", 1.0),  # image interpretation
    TagRule("DR-MK1", 0.9),  # clinical knowledge
    TagRule("DR-PC1", 0.8, is_high_difficulty),  # consultative role
    TagRule("DR-PC3", 0.7, is_procedural_modality),  # image-guided procedures
    TagRule("DR-ICS3", 0.6),  # reporting
]


def relevance_for(milestone_id: str, case: Case, rules: List[TagRule] = RULES) -> Optional[float]:
    """Relevance for a matching milestone, or None when a rule says skip."""
    for rule in rules:
        if rule.milestone_id != milestone_id:
            continue
        if rule.predicate is None or rule.predicate(case):
            return rule.relevance
        if rule.skip_if_unmet:
            return None
        break
    return DEFAULT_RELEVANCE


class CaseAutoTagger:
    def __init__(self, session: AsyncSession, rules: Optional[List[TagRule]] = None):
        self.session = session
        self.rules = rules if rules is not None else RULES

    async def _upsert_tag(self, case_id: uuid.UUID, milestone_id: str, relevance: float) -> None:
        await upsert(
            self.session,
            CaseMilestoneTag,
            {"case_id": case_id, "milestone_id": milestone_id, "relevance_score": relevance},
            conflict_columns=("case_id", "milestone_id"),
        )

    async def auto_tag_case(self, case_id: uuid.UUID) -> List[Dict[str, object]]:
        """Tag a case against the catalog. Unknown case -> []."""
        case = await self.session.get(Case, case_id)
        if case is None:
            return []

        milestones = (await self.session.execute(select(Milestone).order_by(Milestone.display_order))).scalars().all()
        tags: List[Dict[str, object]] = []
        for milestone in milestones:
            if not matches_milestone(case.body_part, case.modality, milestone.body_parts, milestone.modalities):
                continue
            relevance = relevance_for(milestone.id, case, self.rules)
            if relevance is None:
                continue
            relevance = round(relevance, 2)
            await self._upsert_tag(case_id, milestone.id, relevance)
            tags.append({"milestone_id": milestone.id, "relevance_score": relevance})

        await self.session.flush()

        # Tags from an earlier version of the case that no longer apply
        stale = delete(CaseMilestoneTag).where(CaseMilestoneTag.case_id == case_id)
        if tags:
            stale = stale.where(CaseMilestoneTag.milestone_id.not_in([t["milestone_id"] for t in tags]))
        await self.session.execute(stale.execution_options(synchronize_session=False))

        logger.info("Case auto-tagged", extra={"case_id": str(case_id), "tags": len(tags)})
        return tags

    async def case_tags(self, case_id: uuid.UUID) -> List[Dict[str, object]]:
        """Stored tags for a case, most relevant first."""
        q = (
            select(CaseMilestoneTag, Milestone)
            .join(Milestone, CaseMilestoneTag.milestone_id == Milestone.id)
            .where(CaseMilestoneTag.case_id == case_id)
            .order_by(CaseMilestoneTag.relevance_score.desc(), Milestone.display_order)
            .execution_options(populate_existing=True)
        )
        return [
            {
                "milestone_id": tag.milestone_id,
                "relevance_score": tag.relevance_score,
                "domain": milestone.domain,
                "subdomain": milestone.subdomain,
                "description": milestone.description,
            }
            for tag, milestone in (await self.session.execute(q)).all()
        ]
