from typing import Optional

import attrs

from src.service.cancellation.domain.enum.cancellation_reason import CancellationReason
from src.service.cancellation.domain.value_object.identifiers import EventId, UserId


@attrs.define
class CancellationDraft:
    """Inputs collected on the reason step, enough to create a pending cancellation"""

    event_id: EventId
    reason: CancellationReason
    initiated_by: UserId
    reason_note: Optional[str] = None
