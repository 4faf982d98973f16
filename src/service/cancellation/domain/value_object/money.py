from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal


ZERO = Decimal(0)


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    # str() first so 0.1 becomes Decimal('0.1'), not its binary expansion
    return value if isinstance(value, Decimal) else Decimal(str(value))


def minor_unit(places: int) -> Decimal:
    return Decimal(1).scaleb(-places)


def quantize(amount: Decimal, *, places: int) -> Decimal:
    return amount.quantize(minor_unit(places), rounding=ROUND_HALF_UP)


def truncate(amount: Decimal, *, places: int) -> Decimal:
    return amount.quantize(minor_unit(places), rounding=ROUND_DOWN)


def format_money(amount: Decimal, *, currency: str, places: int) -> str:
    return f'{currency} {amount:,.{places}f}'
