from enum import StrEnum


class ProcessingPhase(StrEnum):
    """Processor phases, always emitted in declaration order"""

    CALCULATING = 'calculating'
    NOTIFYING = 'notifying'
    REFUNDING = 'refunding'
    FINALIZING = 'finalizing'
