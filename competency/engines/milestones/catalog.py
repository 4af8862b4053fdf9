"""
Diagnostic radiology milestone catalog.

Fifteen milestones across the six competency domains. Reference data: seeded
once, never edited by the engine.
"""

from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from competency.kernel.models import CompetencyDomain, Milestone
from competency.logging_config import get_logger

logger = get_logger(__name__)

ALL_BODY_PARTS = [
    "chest", "abdomen", "pelvis", "neuro", "musculoskeletal",
    "breast", "cardiac", "pediatric", "emergency", "nuclear_medicine",
]
ALL_MODALITIES = ["CT", "MRI", "US", "NM", "XR", "fluoroscopy", "mammography", "PET"]


def _levels(*descriptions: str) -> Dict[str, str]:
    return {str(i): text for i, text in enumerate(descriptions, start=1)}


MILESTONES: List[Dict[str, Any]] = [
    # Patient Care
    {
        "id": "DR-PC1",
        "domain": CompetencyDomain.PATIENT_CARE,
        "subdomain": "Consultative Role",
        "description": "Consults with referring physicians, combining clinical information and imaging findings to guide management.",
        "level_descriptions": _levels(
            "Knows the basic clinical indications for common imaging studies.",
            "Relates imaging findings to the clinical history and communicates them with guidance.",
            "Recommends appropriate imaging independently and conveys actionable findings clearly.",
            "Acts as an expert consultant offering differentials and management advice.",
            "Leads multidisciplinary conferences and shapes institutional imaging guidelines.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 1,
    },
    {
        "id": "DR-PC2",
        "domain": CompetencyDomain.PATIENT_CARE,
        "subdomain": "Image Interpretation",
        "description": "Interprets imaging studies accurately and efficiently across modalities and organ systems.",
        "level_descriptions": _levels(
            "Identifies normal anatomy and obvious abnormalities with supervision.",
            "Reads common studies systematically; needs help with subtle findings.",
            "Interprets studies independently with sound differentials.",
            "Detects subtle findings and handles complex cases independently.",
            "Resolves discrepant reads and helps set interpretation standards.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 2,
    },
    {
        "id": "DR-PC3",
        "domain": CompetencyDomain.PATIENT_CARE,
        "subdomain": "Image-Guided Procedures",
        "description": "Performs image-guided diagnostic and therapeutic procedures safely.",
        "level_descriptions": _levels(
            "Describes indications and technique of common procedures.",
            "Performs basic procedures under direct supervision and obtains consent.",
            "Performs common procedures independently and manages routine complications.",
            "Performs complex biopsies and drainages; handles complications expertly.",
            "Develops procedural protocols and teaches advanced technique.",
        ),
        "body_parts": ["chest", "abdomen", "pelvis", "musculoskeletal"],
        "modalities": ["CT", "US", "fluoroscopy"],
        "display_order": 3,
    },
    # Medical Knowledge
    {
        "id": "DR-MK1",
        "domain": CompetencyDomain.MEDICAL_KNOWLEDGE,
        "subdomain": "Clinical Knowledge",
        "description": "Knows disease processes, their pathophysiology and their imaging appearance.",
        "level_descriptions": _levels(
            "Recalls basic anatomy and the appearance of common diseases.",
            "Explains the pathophysiology behind common findings.",
            "Correlates clinical and imaging data to narrow differentials across systems.",
            "Knows uncommon entities and integrates advanced pathophysiology.",
            "Serves as a knowledge resource and contributes to the literature.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 4,
    },
    {
        "id": "DR-MK2",
        "domain": CompetencyDomain.MEDICAL_KNOWLEDGE,
        "subdomain": "Physics Knowledge",
        "description": "Applies imaging physics to image quality, safety and protocol design.",
        "level_descriptions": _levels(
            "Recalls the physics of each modality and common artifacts.",
            "Explains how technical factors affect image quality.",
            "Optimizes protocols and applies dose-reduction principles.",
            "Designs protocols for complex scenarios and troubleshoots technical problems.",
            "Leads physics education and evaluates new technology.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ["CT", "MRI", "US", "NM", "XR"],
        "display_order": 5,
    },
    # Systems-Based Practice
    {
        "id": "DR-SBP1",
        "domain": CompetencyDomain.SYSTEMS_BASED_PRACTICE,
        "subdomain": "Quality Improvement",
        "description": "Takes part in quality improvement of imaging services.",
        "level_descriptions": _levels(
            "Knows basic radiology quality metrics.",
            "Participates in peer review and quality conferences.",
            "Leads a quality improvement project using departmental data.",
            "Runs sustained QI programs and mentors others in QI methods.",
            "Directs departmental quality programs and publishes outcomes.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 6,
    },
    {
        "id": "DR-SBP2",
        "domain": CompetencyDomain.SYSTEMS_BASED_PRACTICE,
        "subdomain": "Patient Safety",
        "description": "Promotes contrast, radiation and MRI safety.",
        "level_descriptions": _levels(
            "Follows established safety procedures.",
            "Applies safety protocols independently and reports events.",
            "Manages contrast reactions and optimizes radiation dose.",
            "Leads safety initiatives and root cause analyses.",
            "Shapes institutional and national safety standards.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 7,
    },
    {
        "id": "DR-SBP3",
        "domain": CompetencyDomain.SYSTEMS_BASED_PRACTICE,
        "subdomain": "Systems Navigation",
        "description": "Works within and improves the systems that deliver imaging care.",
        "level_descriptions": _levels(
            "Understands the basic imaging department workflow.",
            "Navigates PACS, RIS and the EHR and knows appropriateness criteria.",
            "Applies appropriateness criteria and coordinates care across departments.",
            "Optimizes workflows and implements informatics solutions.",
            "Leads system-wide and informatics initiatives.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 8,
    },
    # Practice-Based Learning and Improvement
    {
        "id": "DR-PBLI1",
        "domain": CompetencyDomain.PRACTICE_BASED_LEARNING,
        "subdomain": "Evidence-Based Practice",
        "description": "Uses published evidence in imaging decisions.",
        "level_descriptions": _levels(
            "Identifies sources of radiology evidence.",
            "Searches and appraises literature with guidance.",
            "Applies appraised evidence to imaging decisions independently.",
            "Synthesizes evidence into protocols and guidelines.",
            "Generates new evidence and influences national guidelines.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 9,
    },
    {
        "id": "DR-PBLI2",
        "domain": CompetencyDomain.PRACTICE_BASED_LEARNING,
        "subdomain": "Reflective Practice",
        "description": "Reflects on performance and directs their own learning.",
        "level_descriptions": _levels(
            "Accepts feedback and recognizes gaps with prompting.",
            "Seeks feedback and sets learning goals.",
            "Tracks discrepancies and adjusts practice accordingly.",
            "Models reflective practice for peers.",
            "Builds systems that support reflective learning for others.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 10,
    },
    # Professionalism
    {
        "id": "DR-PROF1",
        "domain": CompetencyDomain.PROFESSIONALISM,
        "subdomain": "Professional Behavior",
        "description": "Is accountable, responsive and committed to excellence.",
        "level_descriptions": _levels(
            "Completes assigned duties with reminders.",
            "Completes duties reliably and responds to requests promptly.",
            "Anticipates needs and takes ownership of outcomes.",
            "Coaches others on professional conduct.",
            "Sets professional standards for the department.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 11,
    },
    {
        "id": "DR-PROF2",
        "domain": CompetencyDomain.PROFESSIONALISM,
        "subdomain": "Ethical Practice",
        "description": "Practices ethically and manages conflicts of interest.",
        "level_descriptions": _levels(
            "Knows basic principles of medical ethics.",
            "Recognizes ethical issues in daily practice.",
            "Resolves common ethical dilemmas appropriately.",
            "Guides others through complex ethical situations.",
            "Shapes institutional ethics policy.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 12,
    },
    # Interpersonal and Communication Skills
    {
        "id": "DR-ICS1",
        "domain": CompetencyDomain.INTERPERSONAL_COMMUNICATION,
        "subdomain": "Patient Communication",
        "description": "Explains procedures and results to patients in plain language.",
        "level_descriptions": _levels(
            "Introduces themselves and explains their role.",
            "Explains routine procedures and obtains consent.",
            "Discusses results, including unexpected findings, with patients.",
            "Handles difficult conversations with skill.",
            "Teaches patient communication to others.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 13,
    },
    {
        "id": "DR-ICS2",
        "domain": CompetencyDomain.INTERPERSONAL_COMMUNICATION,
        "subdomain": "Interprofessional Communication",
        "description": "Coordinates care with the wider healthcare team.",
        "level_descriptions": _levels(
            "Communicates respectfully with team members.",
            "Shares information with the team in a timely way.",
            "Resolves team communication problems independently.",
            "Leads interprofessional discussions.",
            "Builds structures for team communication.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 14,
    },
    {
        "id": "DR-ICS3",
        "domain": CompetencyDomain.INTERPERSONAL_COMMUNICATION,
        "subdomain": "Reporting",
        "description": "Writes clear, concise and clinically relevant reports.",
        "level_descriptions": _levels(
            "Produces reports that need substantial revision.",
            "Produces organized reports with occasional omissions.",
            "Writes concise reports that answer the clinical question.",
            "Writes reports that consistently guide management.",
            "Develops structured reporting templates and standards.",
        ),
        "body_parts": ALL_BODY_PARTS,
        "modalities": ALL_MODALITIES,
        "display_order": 15,
    },
]


async def seed_milestones(session: AsyncSession) -> int:
    """Insert catalog milestones that are not in the database yet."""
    existing = set((await session.execute(select(Milestone.id))).scalars().all())
    added = 0
    for data in MILESTONES:
        if data["id"] in existing:
            continue
        session.add(
            Milestone(
                id=data["id"],
                domain=data["domain"].value,
                subdomain=data["subdomain"],
                description=data["description"],
                level_descriptions=data["level_descriptions"],
                body_parts=list(data["body_parts"]),
                modalities=list(data["modalities"]),
                display_order=data["display_order"],
            )
        )
        added += 1
    await session.flush()
    if added:
        logger.info("Seeded %d milestones", added)
    return added
