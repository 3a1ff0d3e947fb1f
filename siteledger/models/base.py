import secrets
import string
from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")


def generate_custom_id(prefix: str, length: int = 8) -> str:
    random_part = ''.join(secrets.choice(string.ascii_uppercase)
                          for _ in range(length))
    return f"{prefix}-{random_part}"


def to_money(value) -> Decimal:
    """Coerce ints, floats, strings and Decimals to a 2dp Decimal."""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
