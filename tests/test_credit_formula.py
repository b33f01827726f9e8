"""
Credit formula and sentiment scoring
"""

import pytest

from skillexchange.services.feedback_service import calculate_credits, sentiment_bonus
from skillexchange.services.sentiment import AfinnSentimentAnalyzer


def test_reference_example_one_to_one_positive():
    credits = calculate_credits(hours_taught=2, participant_count=1, rating=5, sentiment_score=3)
    assert credits.base == 4
    assert credits.participant_bonus == 2
    assert credits.rating_factor == 25
    assert credits.sentiment_bonus == 6
    assert credits.total == 37


@pytest.mark.parametrize(
    "participants, bonus",
    [(1, 2), (2, 5), (3, 8), (5, 14)],
)
def test_participant_bonus_grows_with_group_size(participants, bonus):
    assert calculate_credits(1, participants, 3, 0).participant_bonus == bonus


def test_sentiment_bonus_table():
    assert sentiment_bonus(7) == 6
    assert sentiment_bonus(0) == 3
    assert sentiment_bonus(-1) == -6


def test_neutral_comment_in_group_session():
    # 1.5h * 2 + (2 + 2*3) + 4*5 + 3
    assert calculate_credits(1.5, 3, 4, 0).total == pytest.approx(34.0)


def test_rating_floor_applies_below_point_one():
    assert calculate_credits(1, 1, 0, 0).rating_factor == 0.5
    assert calculate_credits(1, 1, 0.05, 0).rating_factor == 0.5
    assert calculate_credits(1, 1, 1, 0).rating_factor == 5


def test_total_is_never_negative():
    credits = calculate_credits(0.1, 1, 0, -4)
    assert credits.base + credits.participant_bonus + credits.rating_factor + credits.sentiment_bonus < 0
    assert credits.total == 0


def test_afinn_analyzer_signs():
    analyzer = AfinnSentimentAnalyzer()
    assert analyzer.analyze("Great session, really helpful and fun!").score > 0
    assert analyzer.analyze("Terrible, awful and a waste of time.").score < 0
    assert analyzer.analyze("").score == 0
