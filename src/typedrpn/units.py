'''
Type registry: the catalogs of unit families and of concrete types.

A unit family (length, time, ...) is identified by a UnitId. A type is one
concrete scale within a family (cm, km, ...) or a product/quotient/power of
other types, and is identified by a TypeTag.

The catalogs are append-only: once a key is defined it is never changed or
removed. Writes are serialized behind a lock so that on-demand definition of
derived types stays safe if lookups ever run on more than one thread.
'''

from collections import namedtuple
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Tuple
import logging
import threading

from .signature import SignatureLexer, normalized


log = logging.getLogger(__name__)


class StdUnitId(IntEnum):
    '''
    Predefined unit families. Families allocated at run time start at USER.
    '''
    NONE = 0
    UNTYPED = 1
    ANGLE = 2
    LENGTH = 3
    AREA = 4
    VOLUME = 5
    VELOCITY = 6
    ACCELERATION = 7
    TIME = 8
    MASS = 9
    WEIGHT = 10
    PRESSURE = 11
    CAPACITY = 12
    TEMP = 13
    MONEY = 14
    USER = 1000


USER_UNIT_BASE = int(StdUnitId.USER)


class TypeTag(namedtuple('TypeTag', 'uid tid')):
    '''
    Identity of one concrete type: its family and its catalog-wide type id.
    '''
    __slots__ = ()

    def is_type(self, uid):
        if uid == StdUnitId.USER:
            return self.uid >= USER_UNIT_BASE
        return self.uid == uid

    def __str__(self):
        return '{{{}:{}}}'.format(unit_name(self.uid), self.tid)


TAG_NONE = TypeTag(int(StdUnitId.NONE), 0)
TAG_UNTYPED = TypeTag(int(StdUnitId.UNTYPED), 0)
SENTINEL_TAGS = frozenset({TAG_NONE, TAG_UNTYPED})


def unit_name(uid):
    '''
    Symbol of a unit family: its predefined name, or UserN.
    '''
    if uid >= USER_UNIT_BASE:
        return 'User{}'.format(uid - USER_UNIT_BASE)
    try:
        return StdUnitId(uid).name.lower()
    except ValueError:
        return 'none'


UnitCode = List[Tuple[int, int]]
TypeCode = List[Tuple[TypeTag, int]]


@dataclass
class UnitDef:
    uid: int
    symbol: Optional[str]
    code: UnitCode


@dataclass
class TypeDef:
    uid: int
    tid: int
    code: TypeCode
    symbol: Optional[str] = None
    ratio: float = 1.0
    delta: float = 0.0

    @property
    def tag(self):
        return TypeTag(self.uid, self.tid)


class TypeRegistry:
    '''
    Catalog of unit families and types.

    Constructed once at start up, populated by a bootstrap (see catalog),
    then shared by everything that needs lookups.
    '''

    def __init__(self):
        self.lexer = SignatureLexer()
        self.lock = threading.RLock()
        self.units = dict()
        self.unit_symbols = dict()
        self.unit_signatures = dict()
        # Type arena, indexed by type id. Slot 0 belongs to the sentinels.
        self.types = [None]
        self.type_symbols = dict()
        self.type_signatures = dict()
        self.next_uid = USER_UNIT_BASE

    # Unit families

    def unit_symbol(self, uid):
        unit = self.units.get(uid)
        if unit is not None and unit.symbol:
            return unit.symbol
        return unit_name(uid)

    def unit_signature(self, code):
        return self.lexer.render(normalized(code), self.unit_symbol)

    def parse_unit_signature(self, signature):
        def lookup(symbol):
            unit = self.unit_symbols.get(symbol)
            return None if unit is None else unit.uid
        return self.lexer.parse(signature, lookup)

    def _index_unit(self, unit, signature):
        self.units[unit.uid] = unit
        if unit.symbol:
            self.unit_symbols[unit.symbol] = unit
        self.unit_signatures[signature] = unit

    def define_base_unit(self, family, symbol=None):
        '''
        Register a base family, whose unit code is just itself.
        '''
        uid = int(family)
        with self.lock:
            unit = UnitDef(uid, symbol or unit_name(uid), [(uid, 1)])
            self._index_unit(unit, unit.symbol)
            log.debug('Defined base unit %s', unit.symbol)
            return unit

    def define_derived_unit(self, family, signature):
        '''
        Register a predefined family in terms of base families, e.g.
        velocity as length/time.
        '''
        uid = int(family)
        with self.lock:
            code = normalized(self.parse_unit_signature(signature))
            unit = UnitDef(uid, unit_name(uid), code)
            self._index_unit(unit, self.unit_signature(code))
            log.debug('Defined derived unit %s = %s', unit.symbol, signature)
            return unit

    def define_user_unit(self, signature):
        '''
        Allocate a new family for a unit signature nothing predefined covers.
        '''
        with self.lock:
            unit = UnitDef(self.next_uid, None,
                           normalized(self.parse_unit_signature(signature)))
            self.next_uid += 1
            self._index_unit(unit, signature)
            log.debug('Defined user unit %s = %s',
                      unit_name(unit.uid), signature)
            return unit

    def unit_def(self, uid):
        return self.units.get(uid)

    def unit_for_signature(self, signature):
        return self.unit_signatures.get(signature)

    # Types

    def _new_tid(self):
        self.types.append(None)
        return len(self.types) - 1

    def define_type(self, family, symbol, ratio, delta=0.0):
        '''
        Register a concrete type in a family.

        :param ratio: value of one reference unit of the family in this type.
        :param delta: additive offset, for affine scales.
        :returns: the new tag, or None if the family is undefined.
        '''
        uid = int(family)
        with self.lock:
            if uid not in self.units:
                log.error('Cannot define type %s: no unit definition for %s',
                          symbol, unit_name(uid))
                return None
            tid = self._new_tid()
            tag = TypeTag(uid, tid)
            typedef = TypeDef(uid, tid, [(tag, 1)], symbol, ratio, delta)
            self.types[tid] = typedef
            self.type_symbols[symbol] = tag
            # A lone factor renders as its symbol; index it as a signature
            # so products that reduce to it find it again.
            self.type_signatures[symbol] = tag
            log.debug('Defined type %s as %s', symbol, tag)
            return tag

    def define_derived_type(self, uid, signature):
        '''
        Register a symbol-less type made of other types, e.g. m/sec.

        Derived types carry no ratio of their own; their factors are scaled.
        '''
        with self.lock:
            code = normalized(self.parse_type_signature(signature))
            tid = self._new_tid()
            typedef = TypeDef(uid, tid, code)
            self.types[tid] = typedef
            self.type_signatures[self.type_signature(code)] = typedef.tag
            log.debug('Defined derived type %s as %s', signature, typedef.tag)
            return typedef.tag

    def type_def(self, tag):
        '''
        Definition of a tag, or None for sentinels and unknown tags.
        '''
        if not 0 < tag.tid < len(self.types):
            return None
        typedef = self.types[tag.tid]
        if typedef is None or typedef.uid != tag.uid:
            return None
        return typedef

    def tag_for_symbol(self, symbol):
        return self.type_symbols.get(symbol)

    def tag_for_signature(self, signature):
        return self.type_signatures.get(signature)

    def type_code(self, tag):
        '''
        Exponent vector of a tag. Untyped is the empty product.
        '''
        if tag == TAG_UNTYPED:
            return []
        typedef = self.type_def(tag)
        return None if typedef is None else list(typedef.code)

    def symbol(self, tag):
        '''
        Display symbol of a tag: None for untyped and none.
        '''
        if tag in SENTINEL_TAGS:
            return None
        typedef = self.type_def(tag)
        if typedef is None:
            return str(tag)
        if typedef.symbol:
            return typedef.symbol
        return self.type_signature(typedef.code)

    def type_signature(self, code):
        '''
        Render a type code in the order given.
        '''
        return self.lexer.render(code, self._factor_symbol)

    def _factor_symbol(self, tag):
        typedef = self.type_def(tag)
        if typedef is not None and typedef.symbol:
            return typedef.symbol
        return str(tag)

    def parse_type_signature(self, signature):
        return self.lexer.parse(signature, self.type_symbols.get)

    def is_affine(self, uid):
        '''
        True if any type of the family has an additive offset.
        '''
        return any(typedef is not None and typedef.uid == uid and
                   typedef.delta != 0
                   for typedef in self.types)

    def family_types(self, uid):
        return [typedef.tag
                for typedef in self.types
                if typedef is not None and typedef.uid == uid]

    def __iter__(self):
        return (typedef for typedef in self.types if typedef is not None)
