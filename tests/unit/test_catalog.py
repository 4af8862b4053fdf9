"""Unit tests for the milestone catalog and CME credit mapping."""

import pytest

from competency.engines.milestones.catalog import MILESTONES
from competency.engines.milestones.cme_credits import CMECategory, calculate_cme_credits
from competency.kernel.models import CompetencyDomain


class TestCatalog:
    def test_fifteen_unique_milestones(self):
        ids = [m["id"] for m in MILESTONES]
        assert len(ids) == 15
        assert len(set(ids)) == 15

    def test_every_domain_covered(self):
        assert {m["domain"] for m in MILESTONES} == set(CompetencyDomain)

    def test_five_level_descriptions_each(self):
        for m in MILESTONES:
            assert sorted(m["level_descriptions"]) == ["1", "2", "3", "4", "5"]

    def test_display_order_is_sequential(self):
        assert [m["display_order"] for m in MILESTONES] == list(range(1, 16))

    def test_procedures_scope(self):
        pc3 = next(m for m in MILESTONES if m["id"] == "DR-PC3")
        assert "neuro" not in pc3["body_parts"]
        assert "MRI" not in pc3["modalities"]


class TestCMECredits:
    def test_case_review(self):
        credit = calculate_cme_credits("case_review", {"case_title": "Pneumothorax"})
        assert credit.credits == 0.25
        assert credit.category == CMECategory.SA_CME
        assert credit.title == "Case Review: Pneumothorax"

    @pytest.mark.parametrize("count,expected", [(10, 0.5), (25, 1.0), (40, 2.0)])
    def test_quiz_session_blocks(self, count, expected):
        assert calculate_cme_credits("quiz_session", {"question_count": count}).credits == expected

    def test_short_quiz_session_earns_nothing(self):
        assert calculate_cme_credits("quiz_session", {"question_count": 9}) is None

    def test_oral_board(self):
        assert calculate_cme_credits("oral_board").credits == 1.0

    def test_collection_complete(self):
        credit = calculate_cme_credits("collection_complete", {"collection_name": "Neuro Essentials"})
        assert credit.credits == 2.0
        assert credit.category == CMECategory.CME

    def test_unknown_activity(self):
        assert calculate_cme_credits("lecture") is None
