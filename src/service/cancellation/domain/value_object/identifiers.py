"""
Typed identifiers

All ids are UUIDv7 at runtime; the NewTypes keep an event id from being
passed where a ticket or cancellation id is expected.
"""

from typing import NewType

import uuid_utils
from uuid_utils import UUID


EventId = NewType('EventId', UUID)
TicketId = NewType('TicketId', UUID)
TicketTypeId = NewType('TicketTypeId', UUID)
UserId = NewType('UserId', UUID)
CancellationId = NewType('CancellationId', UUID)


def new_cancellation_id() -> CancellationId:
    return CancellationId(uuid_utils.uuid7())
