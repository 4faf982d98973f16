"""Cancellation domain errors.

Every error carries a human-readable message and the HTTP status the
exception handlers answer with.
"""

from enum import Enum

from src.platform.exception.exceptions import (
    ConflictError,
    CustomBaseError,
    DomainError,
    NotFoundError,
    ServiceUnavailableError,
)


class CancellationErrorMessage(Enum):
    EVENT_NOT_FOUND = 'Event not found'
    EVENT_ALREADY_CANCELLED = 'This event has already been cancelled'
    CANCELLATION_IN_PROGRESS = 'A cancellation is already in progress for this event'
    CANCELLATION_NOT_FOUND = 'Cancellation record not found'
    INVALID_CONFIRMATION_CODE = 'Invalid confirmation code. Please type CONFIRM exactly.'
    NOT_REVERSIBLE = 'This cancellation can no longer be reversed'
    PLAN_ALREADY_FINALIZED = 'The compensation plan can no longer be changed'
    CONCURRENT_MODIFICATION = 'Cancellation was modified concurrently, reload and retry'
    REASON_REQUIRED = 'A cancellation reason is required'
    PAYMENT_PROCESSOR_UNAVAILABLE = 'Refund service is temporarily unavailable'
    IMPACT_NOT_RECONCILED = 'Ticket ledger does not match the event catalog'


# Input / validation errors


class InvalidCompensationParametersError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(f'Invalid compensation parameters: {message}')


class InvalidConfirmationCodeError(DomainError):
    def __init__(self) -> None:
        super().__init__(CancellationErrorMessage.INVALID_CONFIRMATION_CODE.value)


class ReasonRequiredError(DomainError):
    def __init__(self) -> None:
        super().__init__(CancellationErrorMessage.REASON_REQUIRED.value)


class InvalidCancellationStateError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(f'Invalid state: {message}')


# Lookups


class EventNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__(CancellationErrorMessage.EVENT_NOT_FOUND.value)


class CancellationNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__(CancellationErrorMessage.CANCELLATION_NOT_FOUND.value)


# Consistency errors: caller reloads the aggregate and restarts the step


class EventAlreadyCancelledError(ConflictError):
    def __init__(self) -> None:
        super().__init__(CancellationErrorMessage.EVENT_ALREADY_CANCELLED.value)


class CancellationInProgressError(ConflictError):
    def __init__(self) -> None:
        super().__init__(CancellationErrorMessage.CANCELLATION_IN_PROGRESS.value)


class PlanAlreadyFinalizedError(ConflictError):
    def __init__(self) -> None:
        super().__init__(CancellationErrorMessage.PLAN_ALREADY_FINALIZED.value)


class CancellationNotReversibleError(ConflictError):
    def __init__(self) -> None:
        super().__init__(CancellationErrorMessage.NOT_REVERSIBLE.value)


class ConcurrentModificationError(ConflictError):
    def __init__(self) -> None:
        super().__init__(CancellationErrorMessage.CONCURRENT_MODIFICATION.value)


class ImpactReconciliationError(ConflictError):
    def __init__(self, *, catalog_sold: int, ledger_sold: int) -> None:
        super().__init__(
            f'{CancellationErrorMessage.IMPACT_NOT_RECONCILED.value} '
            f'(catalog={catalog_sold}, ledger={ledger_sold})'
        )


# Collaborator failures


class PaymentProcessorUnavailableError(ServiceUnavailableError):
    """Payment rails unreachable: aborts the whole processing batch"""

    def __init__(self, detail: str = '') -> None:
        message = CancellationErrorMessage.PAYMENT_PROCESSOR_UNAVAILABLE.value
        super().__init__(f'{message}: {detail}' if detail else message)


class PersistenceError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(f'Failed to persist cancellation: {message}', 500)
