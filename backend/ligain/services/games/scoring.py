from abc import ABC, abstractmethod


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


class Scorer(ABC):
    """Turns one prediction and the actual result into points.

    Implementations must be deterministic, and an exact prediction must never
    score lower than a correct-outcome one, which must never score lower than
    a wrong-outcome one.
    """

    @abstractmethod
    def score(self, predicted_home: int, predicted_away: int, actual_home: int, actual_away: int) -> int:
        raise NotImplementedError


class OutcomeScorer(Scorer):
    """Three-tier scorer: exact score, correct outcome, or miss."""

    def __init__(self, exact_points: int = 3, outcome_points: int = 1, miss_points: int = 0):
        if not exact_points >= outcome_points >= miss_points:
            raise ValueError(
                f"scorer tiers must satisfy exact >= outcome >= miss, got "
                f"{exact_points} / {outcome_points} / {miss_points}"
            )
        self.exact_points = exact_points
        self.outcome_points = outcome_points
        self.miss_points = miss_points

    def score(self, predicted_home, predicted_away, actual_home, actual_away):
        if predicted_home == actual_home and predicted_away == actual_away:
            return self.exact_points
        if _sign(predicted_home - predicted_away) == _sign(actual_home - actual_away):
            return self.outcome_points
        return self.miss_points

    @classmethod
    def from_config(cls, config) -> 'OutcomeScorer':
        return cls(
            exact_points=int(config.get('SCORER_EXACT_POINTS', 3)),
            outcome_points=int(config.get('SCORER_OUTCOME_POINTS', 1)),
            miss_points=int(config.get('SCORER_MISS_POINTS', 0)),
        )
