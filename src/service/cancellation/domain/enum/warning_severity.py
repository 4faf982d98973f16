from enum import StrEnum


class WarningSeverity(StrEnum):
    INFO = 'info'
    WARNING = 'warning'
    CRITICAL = 'critical'
