'''
Operator kinds. Each key bound in the engine's table maps to one of these;
the engine applies them by kind.
'''

from dataclasses import dataclass
from typing import Callable, Optional
import math

from .units import TAG_UNTYPED, TypeTag
from .util import CalcError, wrap_user_errors


@dataclass(frozen=True)
class Unary:
    '''
    Scalar function of X. X is first converted to the required type, if
    any; the result is tagged with the forced result type, if any, else
    with X's (converted) type.
    '''
    fn: Callable[[float], float]
    required: Optional[TypeTag] = None
    result: Optional[TypeTag] = None


@dataclass(frozen=True)
class BinaryAdditive:
    '''
    fn(Y, X) where X must convert into Y's type.
    '''
    fn: Callable[[float, float], float]


@dataclass(frozen=True)
class BinaryMultiplicative:
    '''
    fn(Y, X) with the result type composed from both operand types.
    '''
    fn: Callable[[float, float], float]
    quotient: bool = False


@dataclass(frozen=True)
class Conversion:
    target: TypeTag


@dataclass(frozen=True)
class Constant:
    value: float
    tag: TypeTag = TAG_UNTYPED


@dataclass(frozen=True)
class Custom:
    '''
    Anything else: fn(engine, state, event) mutates the state copy.

    :param clears_no_lift: whether the engine clears the no-lift flag
        afterwards. Enter and CLx set it themselves.
    '''
    fn: Callable
    clears_no_lift: bool = True


def _name(fn):
    return getattr(fn, '__name__', repr(fn))


@wrap_user_errors('Cannot evaluate {0.__name__}')
def evaluate(fn, *args):
    '''
    Apply a scalar function, rejecting non-real results.
    '''
    result = fn(*args)
    if isinstance(result, complex):
        raise CalcError('{} has no real result'.format(_name(fn)))
    result = float(result)
    if math.isinf(result) and all(math.isfinite(arg) for arg in args):
        raise CalcError('{} overflowed'.format(_name(fn)))
    return result
