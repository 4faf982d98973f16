"""
Logging Messaging Provider

Writes each notification to the log instead of sending it. Recipients in
failing_recipient_ids are rejected, the way a provider rejects a bad address.
"""

from typing import Iterable, List, Set

from anyio.lowlevel import checkpoint

from src.platform.logging.loguru_io import Logger
from src.service.cancellation.app.dto.delivery_result_dto import NotificationDeliveryResult
from src.service.cancellation.domain.value_object.identifiers import UserId


class LoggingMessagingProviderImpl:
    def __init__(self, *, failing_recipient_ids: Iterable[UserId] = ()) -> None:
        self.failing_recipient_ids: Set[UserId] = set(failing_recipient_ids)
        self.sent: List[UserId] = []

    async def send(
        self, *, recipient_id: UserId, recipient_email: str, subject: str, body: str
    ) -> NotificationDeliveryResult:
        await checkpoint()

        if recipient_id in self.failing_recipient_ids:
            Logger.base.warning(f'✉️ [MESSAGING] Rejected recipient {recipient_id}')
            return NotificationDeliveryResult(
                success=False, error_message='Invalid email address for recipient'
            )

        self.sent.append(recipient_id)
        Logger.base.info(f'✉️ [MESSAGING] "{subject}" -> {recipient_id}')
        return NotificationDeliveryResult(success=True)
