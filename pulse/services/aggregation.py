"""Response aggregation — completion metrics derived from response counts."""

from dataclasses import dataclass


def completion_rate(responses: int, total_invited: int) -> float:
    """Return the share of invited respondents who answered, as a percentage.

    Zero invitations yield 0.0. The result is rounded to two decimals.
    """
    if responses < 0 or total_invited < 0:
        raise ValueError("Response counts cannot be negative")
    if responses > total_invited:
        raise ValueError(f"responses ({responses}) exceeds total_invited ({total_invited})")
    if total_invited == 0:
        return 0.0
    return round(responses / total_invited * 100, 2)


@dataclass(frozen=True)
class ResponseAggregate:
    responses: int = 0
    total_invited: int = 0

    def __post_init__(self) -> None:
        # Validates the counts eagerly.
        completion_rate(self.responses, self.total_invited)

    @property
    def completion_rate(self) -> float:
        return completion_rate(self.responses, self.total_invited)

    @property
    def pending(self) -> int:
        return self.total_invited - self.responses
