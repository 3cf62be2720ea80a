'''
Input events: a key code pressed on some pad.
'''

from collections import namedtuple
from enum import IntEnum


class KeyCode(IntEnum):
    KEY0 = 0
    KEY1 = 1
    KEY2 = 2
    KEY3 = 3
    KEY4 = 4
    KEY5 = 5
    KEY6 = 6
    KEY7 = 7
    KEY8 = 8
    KEY9 = 9

    PLUS = 10
    MINUS = 11
    TIMES = 12
    DIVIDE = 13

    DOT = 20
    ENTER = 21
    CLEAR = 22
    BACK = 24
    SIGN = 25
    EE = 26

    FIX_LESS = 30
    FIX_MORE = 31
    ROLL = 32
    XY = 33
    PERCENT = 34
    LASTX = 35

    SIN = 40
    COS = 41
    TAN = 42
    ASIN = 43
    ACOS = 44
    ATAN = 45
    LOG = 46
    LN = 47
    TEN_X = 48
    E_X = 49
    SQRT = 60
    SQUARE = 61
    INV = 62
    POWER = 63
    PI = 64
    E = 65

    FMT_FIX = 70
    FMT_SCI = 71
    FMT_PERCENT = 72
    FMT_CURRENCY = 73

    STO = 80
    RCL = 81
    STO_PLUS = 82
    STO_MINUS = 83

    SK0 = 90
    SK1 = 91
    SK2 = 92
    SK3 = 93
    SK4 = 94
    SK5 = 95


DIGIT_KEYS = frozenset(KeyCode(digit) for digit in range(10))
SOFT_KEYS = (KeyCode.SK0, KeyCode.SK1, KeyCode.SK2,
             KeyCode.SK3, KeyCode.SK4, KeyCode.SK5)
# Keys the data entry machine consumes while entry is active.
ENTRY_KEYS = DIGIT_KEYS | {KeyCode.DOT, KeyCode.BACK,
                           KeyCode.SIGN, KeyCode.EE}

PAD_DIGITS = 0
PAD_OP = 1
PAD_ENTER = 2
PAD_FUNCTIONS = 4
PAD_MEMORY = 5
PAD_LENGTH = 10
PAD_TIME = 11
PAD_MASS = 12
PAD_ANGLE = 13
PAD_TEMP = 14
PAD_FIAT = 15
PAD_CRYPTO = 16
PAD_VELOCITY = 17
PAD_USER = 100


class KeyEvent(namedtuple('KeyEvent', 'pad key slot', defaults=(None,))):
    '''
    One key press. Memory keys carry the memory slot they address.
    '''
    __slots__ = ()

    @classmethod
    def digit(cls, char):
        return cls(PAD_DIGITS, KeyCode(int(char)))
