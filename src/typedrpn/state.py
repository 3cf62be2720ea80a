'''
Calculator state: the register stack, memory, data entry and the undo log.

A CalcState is a value. The engine copies the current state, mutates the
copy, and keeps the previous one in the undo log.
'''

from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional
import logging

from .formatting import (DEFAULT_FORMAT, DEFAULT_SCI_FORMAT, EXPONENT_MARK,
                         FormatRec, format_value)
from .units import TAG_NONE, TAG_UNTYPED, TypeTag
from .util import CalcError, EntryError


log = logging.getLogger(__name__)


STACK_PREFIXES = ('X', 'Y', 'Z', 'T')
REG_X, REG_Y, REG_Z, REG_T = range(len(STACK_PREFIXES))
DIGITS = frozenset('0123456789')


@dataclass(frozen=True)
class TaggedValue:
    tag: TypeTag
    value: float = 0.0
    fmt: FormatRec = DEFAULT_FORMAT


UNTYPED_ZERO = TaggedValue(TAG_UNTYPED)
VALUE_NONE = TaggedValue(TAG_NONE)


@dataclass(frozen=True)
class NamedValue:
    name: Optional[str]
    value: TaggedValue

    def is_type(self, tag):
        return self.value.tag == tag


@dataclass(frozen=True)
class RegisterRow:
    '''
    What a display shows for one register.
    '''
    prefix: Optional[str]
    register: str
    reg_addon: Optional[str] = None
    exponent: Optional[str] = None
    exp_addon: Optional[str] = None
    suffix: Optional[str] = None

    def __str__(self):
        text = self.register + (self.reg_addon or '')
        if self.exponent is not None:
            text += '^' + self.exponent + (self.exp_addon or '')
        parts = [self.prefix + ':' if self.prefix else None,
                 text, self.suffix]
        return ' '.join(part for part in parts if part)


class EntryState(Enum):
    IDLE = 'idle'
    MANTISSA = 'mantissa'
    EXPONENT = 'exponent'


def _fresh_stack():
    return [NamedValue(prefix, UNTYPED_ZERO) for prefix in STACK_PREFIXES]


@dataclass
class CalcState:
    '''
    The exact state of the calculator at a given time.
    '''
    stack: List[NamedValue] = field(default_factory=_fresh_stack)
    last_x: TaggedValue = UNTYPED_ZERO
    no_lift: bool = False
    memory: List[NamedValue] = field(default_factory=list)

    # Data entry
    entry_mode: bool = False
    exponent_entry: bool = False
    decimal_seen: bool = False
    negative_sign: bool = False
    digit_count: int = 0
    entry_text: str = ''
    exponent_text: str = ''

    STACK_SIZE = len(STACK_PREFIXES)

    def copy(self):
        return replace(self, stack=list(self.stack), memory=list(self.memory))

    # Registers

    def _get(self, index):
        return self.stack[index].value

    def _set(self, index, tv):
        self.stack[index] = replace(self.stack[index], value=tv)

    @property
    def xtv(self):
        return self._get(REG_X)

    @xtv.setter
    def xtv(self, tv):
        self._set(REG_X, tv)

    @property
    def ytv(self):
        return self._get(REG_Y)

    @ytv.setter
    def ytv(self, tv):
        self._set(REG_Y, tv)

    @property
    def x(self):
        return self.xtv.value

    @x.setter
    def x(self, value):
        self.xtv = replace(self.xtv, value=value)

    @property
    def y(self):
        return self.ytv.value

    @y.setter
    def y(self, value):
        self.ytv = replace(self.ytv, value=value)

    @property
    def z(self):
        return self._get(REG_Z).value

    @property
    def t(self):
        return self._get(REG_T).value

    @property
    def xt(self):
        return self.xtv.tag

    @xt.setter
    def xt(self, tag):
        self.xtv = replace(self.xtv, tag=tag)

    @property
    def yt(self):
        return self.ytv.tag

    @yt.setter
    def yt(self, tag):
        self.ytv = replace(self.ytv, tag=tag)

    @property
    def xfmt(self):
        return self.xtv.fmt

    @xfmt.setter
    def xfmt(self, fmt):
        self.xtv = replace(self.xtv, fmt=fmt)

    def registers(self):
        return [named.value for named in self.stack]

    # Stack

    def stack_lift(self):
        '''
        Push X up the stack, losing T. Skipped once if no_lift is set.
        '''
        if self.no_lift:
            log.debug('stack_lift: no-op')
            self.no_lift = False
            return
        log.debug('stack_lift: lift')
        for index in range(self.STACK_SIZE - 1, REG_X, -1):
            self._set(index, self._get(index - 1))

    def stack_drop(self):
        '''
        Drop the stack onto X. T is duplicated into Z.
        '''
        for index in range(REG_X, self.STACK_SIZE - 1):
            self._set(index, self._get(index + 1))

    def stack_roll(self):
        '''
        Roll down: X moves to T, everything else down by one.
        '''
        xtv = self.xtv
        self.stack_drop()
        self._set(self.STACK_SIZE - 1, xtv)

    def swap_xy(self):
        self.xtv, self.ytv = self.ytv, self.xtv

    # Data entry

    @property
    def entry_state(self):
        if not self.entry_mode:
            return EntryState.IDLE
        if self.exponent_entry:
            return EntryState.EXPONENT
        return EntryState.MANTISSA

    def clear_entry(self):
        self.entry_mode = False
        self.exponent_entry = False
        self.decimal_seen = False
        self.negative_sign = False
        self.digit_count = 0
        self.entry_text = ''
        self.exponent_text = ''
        log.debug('clear_entry')

    def start_text_entry(self, text):
        self.clear_entry()
        self.entry_mode = True
        self.entry_text = text
        self.digit_count = 1
        self.decimal_seen = '.' in text
        log.debug('start_text_entry: %s', text)

    def start_exp_entry(self):
        self.entry_text += EXPONENT_MARK
        self.exponent_text = ''
        self.exponent_entry = True

    def flip_text_sign(self):
        '''
        Toggle a leading minus on the active buffer.
        '''
        if self.exponent_entry:
            if self.exponent_text.startswith('-'):
                self.exponent_text = self.exponent_text[1:]
            else:
                self.exponent_text = '-' + self.exponent_text
        elif self.entry_text.startswith('-'):
            self.entry_text = self.entry_text[1:]
            self.negative_sign = False
        else:
            self.entry_text = '-' + self.entry_text
            self.negative_sign = True

    def recomma_entry(self):
        '''
        Regroup the mantissa by thousands, unless it has a decimal point.
        '''
        if self.decimal_seen:
            return
        digits = self.entry_text.lstrip('-').replace(',', '')
        head = len(digits) % 3 or 3
        groups = [digits[:head]] + [digits[index:index + 3]
                                    for index
                                    in range(head, len(digits), 3)]
        self.entry_text = ('-' if self.negative_sign else '') + \
            ','.join(groups)

    def append_text_entry(self, char):
        '''
        Append a digit, or the first decimal point, to the mantissa.
        '''
        if char == '.':
            if not self.decimal_seen:
                self.entry_text += char
                self.decimal_seen = True
        elif char in DIGITS:
            self.entry_text += char
            self.digit_count += 1
            self.recomma_entry()
        else:
            raise EntryError('Cannot enter {!r}'.format(char))
        log.debug('append_text_entry: %r -> %r', char, self.entry_text)

    def append_exp_entry(self, char):
        if char not in DIGITS:
            raise EntryError('Cannot enter {!r} in exponent'.format(char))
        self.exponent_text += char
        log.debug('append_exp_entry: %r -> %r', char, self.exponent_text)

    def backspace_entry(self):
        '''
        Remove the last character of the active buffer.

        :returns: True if the entry emptied and was abandoned, in which
            case the caller should also undo the lift that started it.
        '''
        if self.exponent_entry:
            if self.exponent_text:
                self.exponent_text = self.exponent_text[:-1]
            else:
                self.entry_text = self.entry_text[:-len(EXPONENT_MARK)]
                self.exponent_entry = False
            return False
        if self.entry_text:
            char = self.entry_text[-1]
            self.entry_text = self.entry_text[:-1]
            if char == '.':
                self.decimal_seen = False
            elif char in DIGITS:
                self.digit_count -= 1
                self.recomma_entry()
        if self.entry_text in ('', '-'):
            self.clear_entry()
            return True
        return False

    def accept_text_entry(self):
        '''
        Commit the entry buffers to X as an untyped value.
        '''
        if not self.entry_mode:
            return
        mantissa = self.entry_text
        if self.exponent_entry:
            mantissa = mantissa[:-len(EXPONENT_MARK)]
        mantissa = mantissa.replace(',', '')
        log.debug('accept_text_entry: %s', mantissa)
        if self.exponent_entry and self.exponent_text.lstrip('-'):
            self.xtv = TaggedValue(TAG_UNTYPED,
                                   float(mantissa + 'E' + self.exponent_text),
                                   DEFAULT_SCI_FORMAT)
        else:
            self.xtv = TaggedValue(TAG_UNTYPED, float(mantissa),
                                   DEFAULT_FORMAT)
        self.clear_entry()

    # Display

    def _row(self, named, registry):
        if named.is_type(TAG_NONE):
            return RegisterRow(named.name, '-')
        mantissa, exponent = format_value(named.value.value, named.value.fmt)
        return RegisterRow(named.name, mantissa, exponent=exponent,
                           suffix=registry.symbol(named.value.tag))

    def stack_row(self, index, registry):
        if self.entry_mode and index == REG_X:
            return RegisterRow(
                self.stack[REG_X].name,
                self.entry_text,
                reg_addon=None if self.exponent_entry else '_',
                exponent=self.exponent_text if self.exponent_entry else None,
                exp_addon='_' if self.exponent_entry else None)
        return self._row(self.stack[index], registry)

    def stack_rows(self, registry):
        return [self.stack_row(index, registry)
                for index
                in range(self.STACK_SIZE)]

    def memory_row(self, index, registry):
        if not 0 <= index < len(self.memory):
            return RegisterRow(None, 'Error')
        return self._row(self.memory[index], registry)

    def memory_rows(self, registry):
        return [self.memory_row(index, registry)
                for index
                in range(len(self.memory))]


class UndoStack:
    '''
    Bounded log of whole-state snapshots; the oldest is evicted when full.
    '''
    DEPTH = 12

    def __init__(self, depth=None):
        self.snapshots = deque()
        self.depth = depth or type(self).DEPTH

    def __len__(self):
        return len(self.snapshots)

    def push(self, state):
        '''
        Save a snapshot, returning the one evicted to make room, if any.
        '''
        self.snapshots.append(state)
        if len(self.snapshots) > self.depth:
            return self.snapshots.popleft()
        return None

    def pop(self):
        '''
        Remove and return the latest snapshot, or None if there is none.
        '''
        if not self.snapshots:
            return None
        return self.snapshots.pop()

    @contextmanager
    def checkpoint(self, state):
        '''
        Save a snapshot for the duration of an operation that may fail.

        On CalcError the log is put back exactly as it was, evicted
        snapshot included, and the error propagates.
        '''
        evicted = self.push(state)
        try:
            yield
        except CalcError:
            self.pop()
            if evicted is not None:
                self.snapshots.appendleft(evicted)
            raise
