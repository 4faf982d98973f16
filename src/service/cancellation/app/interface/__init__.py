"""Cancellation Service Interfaces"""

from src.service.cancellation.app.interface.i_cancellation_repo import ICancellationRepo
from src.service.cancellation.app.interface.i_event_catalog import IEventCatalog
from src.service.cancellation.app.interface.i_messaging_provider import IMessagingProvider
from src.service.cancellation.app.interface.i_payment_ledger import IPaymentLedger
from src.service.cancellation.app.interface.i_progress_broadcaster import IProgressBroadcaster


__all__ = [
    'ICancellationRepo',
    'IEventCatalog',
    'IMessagingProvider',
    'IPaymentLedger',
    'IProgressBroadcaster',
]
