"""
Number Formatting for QuantumCalc
Rounding policy and display text for calculator values
"""
import math
import re
from decimal import Decimal

import config

# Inserts a separator before every group of three digits, counted from the right
_GROUPING = re.compile(r'\B(?=(\d{3})+(?!\d))')


def _round_half_up(value, digits):
    factor = 10 ** digits
    scaled = value * factor
    if not math.isfinite(scaled):
        # Too large to carry any fractional digits
        return value
    # scaled + 0.5 is itself rounded once scaled reaches 2**52
    whole = math.floor(scaled)
    if scaled - whole >= 0.5:
        whole += 1
    return whole / factor


def round_to_precision(value, precision=config.DEFAULT_PRECISION):
    """Round a result the way the display expects it.

    Two stages: first at REPRESENTATION_DIGITS fractional digits, which
    absorbs binary representation error (0.1 + 0.2 becomes 0.3), then at
    the configured precision. Ties round towards positive infinity.
    """
    if not math.isfinite(value):
        return value
    if abs(value) < config.ZERO_THRESHOLD:
        return 0.0
    rounded = _round_half_up(value, config.REPRESENTATION_DIGITS)
    return _round_half_up(rounded, precision)


def number_to_text(value):
    """Shortest decimal text for a value, as stored in the input buffer"""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    if float(value).is_integer() and abs(value) < 1e21:
        return str(int(value))

    text = repr(float(value))
    if "e" not in text:
        return text

    mantissa, exponent = text.split("e")
    exponent = int(exponent)
    if -7 < exponent < 21:
        return format(Decimal(text), "f")
    return f"{mantissa}e{exponent:+d}"


def to_exponential(value, digits=config.EXPONENT_DIGITS):
    """Exponential notation with a fixed number of fractional digits"""
    mantissa, exponent = f"{value:.{digits}e}".split("e")
    return f"{mantissa}e{int(exponent):+d}"


def format_number(value, thousands_separator=config.THOUSANDS_SEPARATOR):
    """Format a value for the result display"""
    if not math.isfinite(value):
        return number_to_text(value)

    magnitude = abs(value)
    if magnitude >= config.EXPONENT_UPPER or (0 < magnitude < config.EXPONENT_LOWER):
        return to_exponential(value)

    formatted = number_to_text(value)
    if thousands_separator and magnitude >= 1000:
        parts = formatted.split(".")
        parts[0] = _GROUPING.sub(",", parts[0])
        formatted = ".".join(parts)
    return formatted


def parse_number(text):
    """Parse display or buffer text back into a float"""
    return float(text.replace(",", ""))
