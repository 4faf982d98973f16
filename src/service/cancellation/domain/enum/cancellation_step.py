from enum import IntEnum


class CancellationStep(IntEnum):
    REASON = 0
    IMPACT = 1
    COMPENSATION = 2
    NOTIFICATION = 3
    FINANCIAL = 4
    CONFIRM = 5

    @property
    def title(self) -> str:
        return _TITLES[self]

    @property
    def previous(self) -> 'CancellationStep | None':
        return None if self is CancellationStep.REASON else CancellationStep(self - 1)

    @property
    def next(self) -> 'CancellationStep | None':
        return None if self is CancellationStep.CONFIRM else CancellationStep(self + 1)


_TITLES = {
    CancellationStep.REASON: 'Select Reason',
    CancellationStep.IMPACT: 'Review Impact',
    CancellationStep.COMPENSATION: 'Compensation Plan',
    CancellationStep.NOTIFICATION: 'Notification Preview',
    CancellationStep.FINANCIAL: 'Financial Summary',
    CancellationStep.CONFIRM: 'Confirm Cancellation',
}
