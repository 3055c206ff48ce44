"""Data transfer objects for full applicant evaluations."""

from dataclasses import dataclass
from typing import List

from credit_engine.domain.entities import LendingOutcome, LoanOffer, ScoreResult


@dataclass(frozen=True)
class EvaluationResult:
    """Score, decision and offers for one applicant."""

    score: ScoreResult
    outcome: LendingOutcome

    @property
    def offers(self) -> List[LoanOffer]:
        return self.outcome.offers

    @classmethod
    def from_entities(cls, score: ScoreResult, outcome: LendingOutcome) -> "EvaluationResult":
        return cls(score=score, outcome=outcome)

    def to_dict(self) -> dict:
        return {
            "score": self.score.to_dict(),
            **self.outcome.to_dict(),
        }
