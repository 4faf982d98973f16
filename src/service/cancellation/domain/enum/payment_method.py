from enum import StrEnum


class PaymentMethod(StrEnum):
    MTN_MOBILE_MONEY = 'mtn_mobile_money'
    AIRTEL_MONEY = 'airtel_money'
    CARD = 'card'
    BANK_TRANSFER = 'bank_transfer'
    WALLET = 'wallet'
