"""
Relevance Matcher - decides whether an activity's anatomic region and
modality fall inside a milestone's applicability filter.
"""

from typing import Iterable, Optional


def _scope_matches(value: Optional[str], scope: Iterable[str]) -> bool:
    scope = list(scope or [])
    if not scope or not value:
        return True
    lowered = value.lower()
    return any(label.lower() in lowered for label in scope)


def matches_milestone(
    body_part: Optional[str],
    modality: Optional[str],
    milestone_body_parts: Iterable[str],
    milestone_modalities: Iterable[str],
) -> bool:
    """
    True when both region and modality are in scope.

    Each dimension matches when the milestone scope is empty, the activity
    value is missing, or a scope label is a case-insensitive substring of the
    activity value ("chest" absorbs "Chest - PA/Lateral").
    """
    return (
        _scope_matches(body_part, milestone_body_parts)
        and _scope_matches(modality, milestone_modalities)
    )
