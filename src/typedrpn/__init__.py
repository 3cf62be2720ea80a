'''
Typed RPN calculator.

Every value on the stack carries a type as well as a number: 300 cm + 2 m
converts, m × m is m², and a length plus a time is refused. Types are
either concrete scales within a family (cm and km are both lengths) or
products and quotients of them, which the registry names the first time
they turn up.

The engine is a classic four register stack machine (X, Y, Z, T), with
incremental number entry, a memory list and a bounded undo log. Every key
either applies fully or leaves the state untouched.
'''

from .cli import CLI
from .engine import Engine
from .lexer import Lexer
from .units import TypeRegistry, TypeTag
from .algebra import TypeAlgebra
from .catalog import build_catalog


__all__ = ('Engine', 'Lexer', 'CLI', 'TypeRegistry', 'TypeTag',
           'TypeAlgebra', 'build_catalog')
