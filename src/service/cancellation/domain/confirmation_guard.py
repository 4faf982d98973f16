"""
Confirmation gate

The organizer must type CONFIRM before anything irreversible happens. The
comparison is case-insensitive on the trimmed input and ASCII only, so
lookalikes such as a dotless i or an fi ligature do not pass.
The server re-checks it even when the client already did.
"""

from typing import Optional

from src.service.cancellation.domain.errors import InvalidConfirmationCodeError


CONFIRMATION_TOKEN = 'CONFIRM'


def is_valid_confirmation_code(code: Optional[str]) -> bool:
    if code is None:
        return False
    code = code.strip()
    return code.isascii() and code.upper() == CONFIRMATION_TOKEN


def ensure_confirmation_code(code: Optional[str]) -> None:
    if not is_valid_confirmation_code(code):
        raise InvalidConfirmationCodeError()
