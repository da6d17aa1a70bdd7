from decimal import Decimal, InvalidOperation

WAD_DECIMALS = 18
MAX_INTEGER_DIGITS = 78  # 2**256 - 1 has 78 digits


def format_wad(value: int, decimals: int = WAD_DECIMALS) -> str:
    """
    Renders a fixed-point integer as a decimal string: trailing zeros trimmed,
    at least one fractional digit kept (1 ether -> "1.0", 1 wei -> "0.000000000000000001").
    """
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(int(value)), 10 ** decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{frac_str}"


def parse_wad(text: str, decimals: int = WAD_DECIMALS) -> int:
    """Inverse of format_wad. Accepts "11000", "0.5", "1.0"; rejects negatives, excess precision and oversized values."""
    try:
        d = Decimal(str(text).strip())
    except InvalidOperation:
        raise ValueError(f"not a number: {text!r}") from None
    if not d.is_finite():
        raise ValueError(f"not a finite amount: {text!r}")
    if d < 0:
        raise ValueError(f"amount must not be negative: {text!r}")

    _, digits, exponent = d.as_tuple()
    coefficient = int("".join(map(str, digits)))
    if coefficient == 0:
        return 0
    if d.adjusted() >= MAX_INTEGER_DIGITS:
        raise ValueError(f"integer part longer than {MAX_INTEGER_DIGITS} digits: {text!r}")
    if d.adjusted() < -decimals:
        raise ValueError(f"more than {decimals} fractional digits: {text!r}")

    # exact integer math, no decimal context rounding
    shift = exponent + decimals
    if shift >= 0:
        return coefficient * 10 ** shift
    value, rest = divmod(coefficient, 10 ** -shift)
    if rest:
        raise ValueError(f"more than {decimals} fractional digits: {text!r}")
    return value
