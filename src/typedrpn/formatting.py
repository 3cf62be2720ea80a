'''
Display formats for register values.
'''

from dataclasses import dataclass, replace
from enum import Enum
import math


class FormatMode(Enum):
    DECIMAL = 'decimal'
    SCIENTIFIC = 'scientific'
    PERCENT = 'percent'
    CURRENCY = 'currency'


@dataclass(frozen=True)
class FormatRec:
    mode: FormatMode = FormatMode.DECIMAL
    digits: int = 4
    min_digits: int = 0

    MIN_DIGITS = 0
    MAX_DIGITS = 15

    def with_digits(self, digits):
        '''
        Copy with a new maximum fraction digit count, clamped.
        '''
        digits = max(type(self).MIN_DIGITS, min(type(self).MAX_DIGITS, digits))
        return replace(self, digits=digits,
                       min_digits=min(self.min_digits, digits))


DEFAULT_FORMAT = FormatRec(FormatMode.DECIMAL, 4)
DEFAULT_SCI_FORMAT = FormatRec(FormatMode.SCIENTIFIC, 4)
DEFAULT_PERCENT_FORMAT = FormatRec(FormatMode.PERCENT, 2)
DEFAULT_CURRENCY_FORMAT = FormatRec(FormatMode.CURRENCY, 2, 2)

CURRENCY_SYMBOL = '$'
EXPONENT_MARK = '\N{MULTIPLICATION SIGN}10'


def _trim(text, min_digits):
    '''
    Drop trailing fraction zeros beyond min_digits, and a bare point.
    '''
    if '.' not in text:
        return text
    whole, fraction = text.split('.')
    fraction = fraction.rstrip('0')
    fraction += '0' * (min_digits - len(fraction))
    return whole + '.' + fraction if fraction else whole


def _fixed(value, fmt):
    return _trim('{:,.{}f}'.format(value, fmt.digits), fmt.min_digits)


def format_value(value, fmt):
    '''
    Format a value as (mantissa, exponent); exponent is None unless the
    format is scientific.
    '''
    if not math.isfinite(value):
        return str(value), None
    if fmt.mode is FormatMode.SCIENTIFIC:
        mantissa, exponent = '{:.{}E}'.format(value, fmt.digits).split('E')
        return _trim(mantissa, fmt.min_digits) + EXPONENT_MARK, \
            str(int(exponent))
    if fmt.mode is FormatMode.PERCENT:
        return _fixed(value * 100, fmt) + '%', None
    if fmt.mode is FormatMode.CURRENCY:
        sign = '-' if value < 0 else ''
        return sign + CURRENCY_SYMBOL + _fixed(abs(value), fmt), None
    return _fixed(value, fmt), None
