"""
Cancellation business rules

Fee rates, VIP classification and settlement estimates are contract terms
owned by the platform, so they arrive from configuration instead of being
baked into the calculator.
"""

from decimal import Decimal
from typing import Dict, Tuple

import attrs

from src.platform.config.core_setting import Settings
from src.service.cancellation.domain.enum.payment_method import PaymentMethod
from src.service.cancellation.domain.value_object.money import to_decimal


@attrs.frozen
class CancellationPolicy:
    currency: str = 'UGX'
    decimal_places: int = 0
    platform_fee_rate: Decimal = attrs.field(default=Decimal(0), converter=to_decimal)
    waive_platform_fee: bool = True
    processing_fee_rate: Decimal = attrs.field(default=Decimal(0), converter=to_decimal)
    vip_keywords: Tuple[str, ...] = attrs.field(default=('vip',), converter=tuple)
    vip_share_warning_threshold: Decimal = attrs.field(default=Decimal('0.2'), converter=to_decimal)
    processing_times: Dict[str, str] = attrs.field(factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings) -> 'CancellationPolicy':
        return cls(
            currency=settings.CURRENCY,
            decimal_places=settings.CURRENCY_DECIMAL_PLACES,
            platform_fee_rate=settings.PLATFORM_FEE_RATE,
            waive_platform_fee=settings.WAIVE_PLATFORM_FEE_ON_CANCELLATION,
            processing_fee_rate=settings.PROCESSING_FEE_RATE,
            vip_keywords=tuple(settings.VIP_TICKET_KEYWORDS),
            vip_share_warning_threshold=settings.VIP_SHARE_WARNING_THRESHOLD,
            processing_times=dict(settings.PAYMENT_METHOD_PROCESSING_TIMES),
        )

    def is_vip(self, ticket_type_name: str) -> bool:
        words = ticket_type_name.lower().replace('-', ' ').split()
        return any(keyword.lower() in words for keyword in self.vip_keywords)

    def processing_time_for(self, method: PaymentMethod) -> str:
        return self.processing_times.get(method.value, 'Unknown')
