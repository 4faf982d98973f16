from typing import Protocol

from src.service.cancellation.app.dto.delivery_result_dto import NotificationDeliveryResult
from src.service.cancellation.domain.value_object.identifiers import UserId


class IMessagingProvider(Protocol):
    """Sends the cancellation notice to one attendee (email, SMS, in-app)"""

    async def send(
        self, *, recipient_id: UserId, recipient_email: str, subject: str, body: str
    ) -> NotificationDeliveryResult:
        """
        Deliver a single notification.

        Returns:
            NotificationDeliveryResult, success=False when the provider rejected it
        """
        ...
