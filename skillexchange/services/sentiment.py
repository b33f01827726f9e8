# skillexchange/services/sentiment.py
"""
Comment sentiment scoring.

The credit formula only needs an integer score per comment, so callers
depend on the ``SentimentAnalyzer`` protocol and tests pass a stub.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

from afinn import Afinn


@dataclass(frozen=True)
class SentimentResult:
    score: int


class SentimentAnalyzer(Protocol):
    def analyze(self, text: str) -> SentimentResult:
        ...


class AfinnSentimentAnalyzer:
    """AFINN word-list scoring: sum of per-word valences, emoticons included."""

    def __init__(self, language: str = "en"):
        self._afinn = Afinn(language=language, emoticons=True)

    def analyze(self, text: str) -> SentimentResult:
        return SentimentResult(score=int(round(self._afinn.score(text or ""))))


@lru_cache(maxsize=1)
def get_sentiment_analyzer() -> SentimentAnalyzer:
    return AfinnSentimentAnalyzer()
