# blooddrive/services/eligibility.py
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from blooddrive.config import settings
from blooddrive.models.all_models import Donor, local_today
from blooddrive.services.errors import DonorIneligible, NotFound


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    next_eligible_date: Optional[date] = None


def evaluate_eligibility(
    last_donation_date: Optional[date],
    today: Optional[date] = None,
    interval_days: Optional[int] = None,
) -> EligibilityResult:
    """Whether a donor whose last donation was on ``last_donation_date`` may donate today."""
    if last_donation_date is None:
        return EligibilityResult(eligible=True)
    today = today or local_today()
    interval = timedelta(days=interval_days or settings.ELIGIBILITY_INTERVAL_DAYS)
    unlock_date = last_donation_date + interval
    if today - last_donation_date >= interval:
        return EligibilityResult(eligible=True)
    return EligibilityResult(eligible=False, next_eligible_date=unlock_date)


def ensure_eligible(last_donation_date: Optional[date], today: Optional[date] = None, donor_id=None) -> None:
    result = evaluate_eligibility(last_donation_date, today)
    if not result.eligible:
        raise DonorIneligible(result.next_eligible_date, donor_id=donor_id)


def check_eligibility(db: Session, donor_id: UUID, today: Optional[date] = None) -> EligibilityResult:
    donor = db.query(Donor).filter(Donor.id == donor_id).first()
    if not donor:
        raise NotFound("Donor", donor_id)
    return evaluate_eligibility(donor.last_donation_date, today)
