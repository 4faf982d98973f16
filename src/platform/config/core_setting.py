from pathlib import Path
from typing import Dict, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Event Cancellation Service'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production
    LOG_TO_FILE: bool = False

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []  # add your frontend URL here

    @field_validator('BACKEND_CORS_ORIGINS', 'VIP_TICKET_KEYWORDS', mode='before')
    @classmethod
    def assemble_str_list(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # Money
    CURRENCY: str = 'UGX'
    CURRENCY_DECIMAL_PLACES: int = 0

    # Fee policy (contract rates, fractions of gross revenue)
    PLATFORM_FEE_RATE: float = 0.05
    WAIVE_PLATFORM_FEE_ON_CANCELLATION: bool = True
    PROCESSING_FEE_RATE: float = 0.01

    # Warnings
    VIP_TICKET_KEYWORDS: List[str] = ['vip', 'premium', 'vvip']
    VIP_SHARE_WARNING_THRESHOLD: float = 0.2  # fraction of tickets sold

    # Estimated refund settlement time per payment method
    PAYMENT_METHOD_PROCESSING_TIMES: Dict[str, str] = {
        'mtn_mobile_money': '1-24 hours',
        'airtel_money': '1-24 hours',
        'card': '3-5 business days',
        'bank_transfer': '2-3 business days',
        'wallet': 'Instant',
    }

    # Processor
    CANCELLATION_WORKER_CONCURRENCY: int = 8  # refunds/notifications in flight
    PROGRESS_STREAM_BUFFER_SIZE: int = 256
    NOTIFICATION_SAMPLE_RECIPIENTS: int = 3


settings = Settings()  # type: ignore
