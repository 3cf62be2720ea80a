from functools import wraps


class CalcError(Exception):
    pass


class TypeMismatch(CalcError):
    '''
    Operand types cannot be combined by the requested operation.
    '''


class ConversionError(CalcError):
    '''
    No conversion exists between two type tags.
    '''


class EntryError(CalcError):
    '''
    A character the number entry buffers cannot take.
    '''


def wrap_user_errors(fmt):
    '''
    Decorator that converts arithmetic exceptions to CalcErrors, so that a
    failing scalar function rolls back like a type failure does.

    Passes through CalcErrors.
    '''
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except CalcError:
                raise
            except (ArithmeticError, ValueError) as e:
                raise CalcError(fmt.format(*args, **kwargs), e)
        return wrapper
    return decorator
