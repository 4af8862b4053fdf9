"""Unit tests for the level calculator."""

import pytest

from competency.engines.milestones.level_calculator import calculate_level, count_level, score_level


class TestBuckets:
    @pytest.mark.parametrize(
        "count,expected",
        [(0, 1), (9, 1), (10, 2), (29, 2), (30, 3), (59, 3), (60, 4), (99, 4), (100, 5), (500, 5)],
    )
    def test_count_level(self, count, expected):
        assert count_level(count) == expected

    @pytest.mark.parametrize(
        "score,expected",
        [(0.0, 1), (0.49, 1), (0.5, 2), (0.64, 2), (0.65, 3), (0.79, 3), (0.8, 4), (0.89, 4), (0.9, 5), (1.0, 5)],
    )
    def test_score_level(self, score, expected):
        assert score_level(score) == expected


class TestCalculateLevel:
    def test_no_evidence_is_level_one(self):
        assert calculate_level(0, 0.0) == 1.0

    def test_twelve_correct_difficulty_two_quizzes(self):
        """count level 2, score level 3 -> 2*0.4 + 3*0.6 = 2.6"""
        assert calculate_level(12, 0.7) == 2.6

    def test_maximum(self):
        assert calculate_level(150, 0.95) == 5.0

    def test_volume_without_accuracy(self):
        # 5*0.4 + 1*0.6
        assert calculate_level(200, 0.1) == 2.6

    def test_result_has_one_decimal_and_stays_in_range(self):
        for count in (0, 15, 45, 80, 120):
            for score in (0.0, 0.55, 0.7, 0.85, 0.95):
                level = calculate_level(count, score)
                assert 1.0 <= level <= 5.0
                assert level == round(level, 1)
