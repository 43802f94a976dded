"""
LeadSubmission — the intake payload posted by the relay, before it is stored.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from leadbridge.services.dnd import validate_hour


class LeadValidationError(ValueError):
    """Raised when an intake payload is missing or has malformed fields."""


def _text(value) -> str:
    if value is None:
        return ''
    return str(value).strip()


def _optional_text(value) -> Optional[str]:
    text = _text(value)
    return text or None


@dataclass
class LeadSubmission:
    """One lead as received on POST /newlead."""
    lead_id: str
    tradie_phone: str
    customer_name: str = ''
    customer_phone: Optional[str] = None
    job_type: str = ''
    location: str = ''
    description: Optional[str] = None
    budget: Optional[str] = None
    timing: Optional[str] = None
    dnd_start_hour: Optional[int] = None
    dnd_end_hour: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> 'LeadSubmission':
        """
        Build a submission from the camelCase JSON body.

        Raises LeadValidationError for DND hours outside 0..23. Missing
        leadId/tradiePhone are left empty here and rejected by dispatch().
        """
        hours = {}
        for key in ('dndStartHour', 'dndEndHour'):
            try:
                hours[key] = validate_hour(data.get(key))
            except ValueError as e:
                raise LeadValidationError(f'Invalid {key}: {e}') from e

        return cls(
            lead_id=_text(data.get('leadId')),
            tradie_phone=_text(data.get('tradiePhone')),
            customer_name=_text(data.get('customerName')),
            customer_phone=_optional_text(data.get('customerPhone')),
            job_type=_text(data.get('jobType')),
            location=_text(data.get('location')),
            description=_optional_text(data.get('description')),
            budget=_optional_text(data.get('budget')),
            timing=_optional_text(data.get('timing')),
            dnd_start_hour=hours['dndStartHour'],
            dnd_end_hour=hours['dndEndHour'],
        )

    def missing_fields(self):
        """Names of required payload fields that are empty."""
        return [
            name for name, value in (('leadId', self.lead_id), ('tradiePhone', self.tradie_phone))
            if not value
        ]
