"""Unit tests for the case auto-tagging rule table."""

from competency.engines.milestones.auto_tagger import (
    DEFAULT_RELEVANCE,
    RULES,
    TagRule,
    is_high_difficulty,
    is_procedural_modality,
    relevance_for,
)
from competency.kernel.models import Case


def _case(modality="CT", difficulty=2, body_part="chest") -> Case:
    return Case(title="rule case", body_part=body_part, modality=modality, difficulty=difficulty)


class TestPredicates:
    def test_high_difficulty_threshold(self):
        assert is_high_difficulty(_case(difficulty=3)) is True
        assert is_high_difficulty(_case(difficulty=2)) is False

    def test_missing_difficulty_is_not_high(self):
        assert is_high_difficulty(_case(difficulty=None)) is False

    def test_procedural_modalities(self):
        assert is_procedural_modality(_case(modality="Fluoroscopy")) is True
        assert is_procedural_modality(_case(modality="US")) is True
        assert is_procedural_modality(_case(modality="Ultrasound - Doppler")) is True
        assert is_procedural_modality(_case(modality="CT")) is False
        assert is_procedural_modality(_case(modality=None)) is False


class TestRelevanceFor:
    def test_fixed_relevance_milestones(self):
        case = _case(difficulty=1)
        assert relevance_for("DR-PC2", case) == 1.0
        assert relevance_for("DR-MK1", case) == 0.9
        assert relevance_for("DR-ICS3", case) == 0.6

    def test_consultative_role_needs_difficulty(self):
        assert relevance_for("DR-PC1", _case(difficulty=4)) == 0.8
        assert relevance_for("DR-PC1", _case(difficulty=2)) is None

    def test_procedures_need_procedural_modality(self):
        assert relevance_for("DR-PC3", _case(modality="fluoroscopy")) == 0.7
        assert relevance_for("DR-PC3", _case(modality="CT")) is None

    def test_unlisted_milestone_gets_default(self):
        assert relevance_for("DR-SBP1", _case()) == DEFAULT_RELEVANCE

    def test_rule_without_skip_falls_back_to_default(self):
        rules = [TagRule("DR-PROF1", 0.95, lambda case: False, skip_if_unmet=False)]
        assert relevance_for("DR-PROF1", _case(), rules) == DEFAULT_RELEVANCE

    def test_rule_table_order(self):
        assert [r.milestone_id for r in RULES] == ["DR-PC2", "DR-MK1", "DR-PC1", "DR-PC3", "DR-ICS3"]
