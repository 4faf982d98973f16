import attrs

from src.service.cancellation.domain.enum.processing_phase import ProcessingPhase
from src.service.cancellation.domain.value_object.identifiers import CancellationId


@attrs.frozen
class CancellationProgress:
    cancellation_id: CancellationId
    phase: ProcessingPhase
    current_step: int
    total_steps: int
    message: str

    @property
    def progress(self) -> float:
        if self.total_steps <= 0:
            return 0.0
        return min(self.current_step / self.total_steps, 1.0)

    @property
    def is_terminal(self) -> bool:
        return self.phase is ProcessingPhase.FINALIZING and self.current_step >= self.total_steps

    def to_dict(self) -> dict:
        return {
            'cancellation_id': str(self.cancellation_id),
            'phase': self.phase.value,
            'current_step': self.current_step,
            'total_steps': self.total_steps,
            'progress': self.progress,
            'message': self.message,
        }
