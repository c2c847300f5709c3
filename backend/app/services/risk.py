"""
Schedule risk evaluation.

A computed schedule is "at risk" when it conflicts with a real-world
constraint:
- Backward mode: hitting the required end means starting before today
- Forward mode: the computed end overruns the project's committed deadline
"""

from dataclasses import dataclass
from datetime import date

from app.exceptions import InvalidInputError
from app.models import ScheduleDirection

REQUIRED_START_IN_PAST = "required start date is in the past"
DURATION_EXCEEDS_AVAILABLE_TIME = "computed duration exceeds available time"


@dataclass(frozen=True)
class RiskAssessment:
    """Outcome of a risk check."""
    is_at_risk: bool
    reason: str | None = None


NOT_AT_RISK = RiskAssessment(is_at_risk=False)


def evaluate_risk(
    project_start: date,
    project_end: date,
    direction: ScheduleDirection,
    *,
    today: date | None = None,
    target_end_date: date | None = None,
) -> RiskAssessment:
    """
    Flag a project envelope that cannot be met.

    Args:
        project_start: Earliest computed task start
        project_end: Latest computed task end
        direction: The scheduling direction that produced the envelope
        today: Current date; required in backward mode
        target_end_date: Committed deadline; only consulted in forward mode,
            and a missing deadline is never at risk
    """
    direction = ScheduleDirection(direction)

    if direction == ScheduleDirection.END:
        if today is None:
            raise InvalidInputError("Backward risk evaluation needs today's date")
        if project_start < today:
            return RiskAssessment(is_at_risk=True, reason=REQUIRED_START_IN_PAST)
        return NOT_AT_RISK

    if target_end_date is not None and project_end > target_end_date:
        return RiskAssessment(is_at_risk=True, reason=DURATION_EXCEEDS_AVAILABLE_TIME)
    return NOT_AT_RISK
