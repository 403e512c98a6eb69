from decimal import ROUND_HALF_UP, Decimal

_BINARY_SUFFIXES = ("", "Ki", "Mi", "Gi", "Ti", "Pi", "Ei")


def round_half_away(value: float) -> int:
    """
    Round a float to the nearest integer, halves away from zero.

    Uses the exact binary value of the float, so 2.5 -> 3 and -2.5 -> -3
    (the builtin round() would give 2 and -2).
    """
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_milli_quantity(milli: int) -> str:
    """
    Canonical DecimalSI form of a milli-unit amount, as Kubernetes prints it.

    2000 -> '2', 2346 -> '2346m', 0 -> '0'.
    """
    if milli % 1000 == 0:
        return str(milli // 1000)
    return f"{milli}m"


def format_binary_quantity(amount: int) -> str:
    """
    Canonical BinarySI form of a byte amount.

    The largest binary suffix that divides the amount exactly is used;
    amounts below 1024 or not divisible by 1024 are printed as plain integers.
    1048576 -> '1Mi', 1048577 -> '1048577'.
    """
    sign = "-" if amount < 0 else ""
    number = abs(amount)
    if number < 1024:
        return f"{sign}{number}"

    exponent = 0
    while number % 1024 == 0 and exponent < len(_BINARY_SUFFIXES) - 1:
        number //= 1024
        exponent += 1
    return f"{sign}{number}{_BINARY_SUFFIXES[exponent]}"
