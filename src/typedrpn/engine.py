'''
Calculator engine: maps key events to operators and applies them to the
state, transactionally.
'''

from dataclasses import replace
import logging
import math
import operator

from .algebra import TypeAlgebra
from .catalog import build_catalog
from .formatting import (DEFAULT_CURRENCY_FORMAT, DEFAULT_FORMAT,
                         DEFAULT_PERCENT_FORMAT, DEFAULT_SCI_FORMAT)
from .keys import (DIGIT_KEYS, ENTRY_KEYS, SOFT_KEYS, KeyCode, KeyEvent,
                   PAD_ANGLE, PAD_CRYPTO, PAD_FIAT, PAD_LENGTH, PAD_MASS,
                   PAD_MEMORY, PAD_TEMP, PAD_TIME, PAD_VELOCITY)
from .operators import (BinaryAdditive, BinaryMultiplicative, Constant,
                        Conversion, Custom, Unary, evaluate)
from .state import UNTYPED_ZERO, CalcState, NamedValue, TaggedValue, UndoStack
from .units import TAG_NONE, TAG_UNTYPED
from .util import CalcError, ConversionError, TypeMismatch


log = logging.getLogger(__name__)


# Soft key rows: pad -> type symbols bound to SK0, SK1, ...
UNIT_PADS = {
    PAD_LENGTH: ('mm', 'cm', 'm', 'km'),
    PAD_TIME: ('sec', 'min', 'hr', 'day', 'yr'),
    PAD_MASS: ('mg', 'g', 'kg', 'tonne'),
    PAD_ANGLE: ('deg', 'rad'),
    PAD_TEMP: ('C', 'F'),
    PAD_FIAT: ('USD', 'CAD', 'EUR', 'GBP', 'AUD', 'JPY'),
    PAD_CRYPTO: ('BTC', 'ETH', 'SOL', 'ADA', 'DOT', 'LINK'),
    PAD_VELOCITY: ('m/sec', 'km/hr'),
}


# Custom operators: fn(engine, state, event)

def _enter(engine, state, event):
    state.no_lift = False
    state.stack_lift()
    state.no_lift = True


def _clear_x(engine, state, event):
    state.xtv = UNTYPED_ZERO
    state.no_lift = True


def _roll(engine, state, event):
    state.stack_roll()


def _swap(engine, state, event):
    state.swap_xy()


def _last_x(engine, state, event):
    last_x = state.last_x
    state.stack_lift()
    state.xtv = last_x


def _percent(engine, state, event):
    '''
    Y percent of X: Y stays, X becomes Y·X/100 in Y's type.
    '''
    xtv, ytv = state.xtv, state.ytv
    if xtv.tag != TAG_UNTYPED:
        raise TypeMismatch('Percentage must be untyped')
    state.last_x = xtv
    state.xtv = TaggedValue(ytv.tag, evaluate(operator.mul, ytv.value,
                                              xtv.value / 100), ytv.fmt)


def _square(engine, state, event):
    xtv = state.xtv
    tag = engine.algebra.resolve_or_create_tag(
        engine.algebra.type_exponent(xtv.tag, 2))
    state.last_x = xtv
    state.xtv = TaggedValue(tag, evaluate(operator.mul, xtv.value, xtv.value),
                            xtv.fmt)


def _sqrt(engine, state, event):
    xtv = state.xtv
    tag = engine.algebra.resolve_or_create_tag(
        engine.algebra.type_root(xtv.tag, 2))
    state.last_x = xtv
    state.xtv = TaggedValue(tag, evaluate(math.sqrt, xtv.value), xtv.fmt)


def _inverse(engine, state, event):
    xtv = state.xtv
    tag = engine.algebra.resolve_or_create_tag(
        engine.algebra.type_exponent(xtv.tag, -1))
    state.last_x = xtv
    state.xtv = TaggedValue(tag, evaluate(operator.truediv, 1.0, xtv.value),
                            xtv.fmt)


def _power(engine, state, event):
    '''
    Y to the X. A typed Y only takes integer powers.
    '''
    xtv, ytv = state.xtv, state.ytv
    if xtv.tag != TAG_UNTYPED:
        raise TypeMismatch('Exponent must be untyped')
    if ytv.tag == TAG_UNTYPED:
        tag, result = TAG_UNTYPED, evaluate(math.pow, ytv.value, xtv.value)
    elif float(xtv.value).is_integer():
        n = int(xtv.value)
        result = evaluate(math.pow, ytv.value, n)
        tag = engine.algebra.resolve_or_create_tag(
            engine.algebra.type_exponent(ytv.tag, n))
    else:
        raise TypeMismatch('Typed values only take integer powers')
    state.last_x = xtv
    state.stack_drop()
    state.xtv = TaggedValue(tag, result, ytv.fmt)


def _digits(delta):
    def adjust(engine, state, event):
        state.xfmt = state.xfmt.with_digits(state.xfmt.digits + delta)
    adjust.__name__ = 'digits{:+d}'.format(delta)
    return adjust


def _format(fmt):
    def set_format(engine, state, event):
        state.xfmt = fmt
    set_format.__name__ = 'format_{}'.format(fmt.mode.value)
    return set_format


def _memory_slot(state, event):
    slot = event.slot
    if slot is None or not 0 <= slot < len(state.memory):
        raise CalcError('No memory slot {}'.format(slot))
    return slot


def _store(engine, state, event):
    '''
    Store X in a slot, or append it if the slot is one past the end.
    '''
    slot = len(state.memory) if event.slot is None else event.slot
    if slot == len(state.memory):
        state.memory.append(NamedValue(None, state.xtv))
    else:
        slot = _memory_slot(state, event)
        state.memory[slot] = replace(state.memory[slot], value=state.xtv)


def _recall(engine, state, event):
    slot = _memory_slot(state, event)
    state.stack_lift()
    state.xtv = state.memory[slot].value


def _memory_arithmetic(fn):
    def update(engine, state, event):
        slot = _memory_slot(state, event)
        named = state.memory[slot]
        seq = engine.algebra.convert(state.xt, named.value.tag)
        value = evaluate(fn, named.value.value, seq(state.x))
        state.memory[slot] = replace(named,
                                     value=replace(named.value, value=value))
    update.__name__ = 'memory_{}'.format(fn.__name__)
    return update


class Engine:
    '''
    Typed RPN calculator.

    Takes key events and runs them against the current state. Every event
    either fully applies or leaves the state exactly as it was.
    '''

    def __init__(self, registry=None, bindings=None):
        '''
        :param registry: type registry; the standard catalog if omitted.
        :param bindings: extra {KeyEvent: symbol} conversion keys.
        '''
        self.registry = registry if registry is not None else build_catalog()
        self.algebra = TypeAlgebra(self.registry)
        self.state = CalcState()
        self.undo = UndoStack()
        self.table = self._build_table()
        self.conversions = dict()
        for pad, symbols in UNIT_PADS.items():
            for key, symbol in zip(SOFT_KEYS, symbols):
                self.bind_conversion(KeyEvent(pad, key), symbol)
        for event, symbol in (bindings or dict()).items():
            self.bind_conversion(event, symbol)

    def _tag(self, symbol):
        '''
        Tag for a type symbol or signature; none if unknown.
        '''
        tag = self.registry.tag_for_symbol(symbol)
        if tag is None:
            tag = self.registry.tag_for_signature(symbol)
        if tag is None:
            log.warning('Unknown type symbol %r', symbol)
            return TAG_NONE
        return tag

    def _build_table(self):
        rad = self._tag('rad')
        return {
            KeyCode.PLUS: BinaryAdditive(operator.add),
            KeyCode.MINUS: BinaryAdditive(operator.sub),
            KeyCode.TIMES: BinaryMultiplicative(operator.mul),
            KeyCode.DIVIDE: BinaryMultiplicative(operator.truediv,
                                                 quotient=True),

            KeyCode.SIGN: Unary(operator.neg),
            KeyCode.SIN: Unary(math.sin, required=rad, result=TAG_UNTYPED),
            KeyCode.COS: Unary(math.cos, required=rad, result=TAG_UNTYPED),
            KeyCode.TAN: Unary(math.tan, required=rad, result=TAG_UNTYPED),
            KeyCode.ASIN: Unary(math.asin, required=TAG_UNTYPED, result=rad),
            KeyCode.ACOS: Unary(math.acos, required=TAG_UNTYPED, result=rad),
            KeyCode.ATAN: Unary(math.atan, required=TAG_UNTYPED, result=rad),
            KeyCode.LOG: Unary(math.log10, required=TAG_UNTYPED),
            KeyCode.LN: Unary(math.log, required=TAG_UNTYPED),
            KeyCode.TEN_X: Unary(lambda x: math.pow(10, x),
                                 required=TAG_UNTYPED),
            KeyCode.E_X: Unary(math.exp, required=TAG_UNTYPED),

            KeyCode.PI: Constant(math.pi),
            KeyCode.E: Constant(math.e),

            KeyCode.ENTER: Custom(_enter, clears_no_lift=False),
            KeyCode.CLEAR: Custom(_clear_x, clears_no_lift=False),
            KeyCode.ROLL: Custom(_roll),
            KeyCode.XY: Custom(_swap),
            KeyCode.LASTX: Custom(_last_x),
            KeyCode.PERCENT: Custom(_percent),
            KeyCode.SQUARE: Custom(_square),
            KeyCode.SQRT: Custom(_sqrt),
            KeyCode.INV: Custom(_inverse),
            KeyCode.POWER: Custom(_power),

            KeyCode.FIX_LESS: Custom(_digits(-1), clears_no_lift=False),
            KeyCode.FIX_MORE: Custom(_digits(+1), clears_no_lift=False),
            KeyCode.FMT_FIX: Custom(_format(DEFAULT_FORMAT),
                                    clears_no_lift=False),
            KeyCode.FMT_SCI: Custom(_format(DEFAULT_SCI_FORMAT),
                                    clears_no_lift=False),
            KeyCode.FMT_PERCENT: Custom(_format(DEFAULT_PERCENT_FORMAT),
                                        clears_no_lift=False),
            KeyCode.FMT_CURRENCY: Custom(_format(DEFAULT_CURRENCY_FORMAT),
                                         clears_no_lift=False),

            KeyCode.STO: Custom(_store),
            KeyCode.RCL: Custom(_recall),
            KeyCode.STO_PLUS: Custom(_memory_arithmetic(operator.add)),
            KeyCode.STO_MINUS: Custom(_memory_arithmetic(operator.sub)),
        }

    def bind_conversion(self, event, symbol):
        '''
        Bind a key to converting X to the type with this symbol.
        '''
        self.table[(event.pad, event.key)] = Conversion(self._tag(symbol))
        self.conversions[symbol] = KeyEvent(event.pad, event.key)

    def lookup(self, event):
        op = self.table.get((event.pad, event.key))
        if op is None:
            op = self.table.get(event.key)
        return op

    # Dispatch

    def key_press(self, event):
        '''
        Run one key event.

        :returns: False if the event was rejected, True otherwise.
        '''
        key = event.key
        if self.state.entry_mode and key in ENTRY_KEYS:
            self._entry_key(key)
            return True
        if key == KeyCode.BACK:
            self.undo_last()
            return True
        if self.state.entry_mode:
            committed = self.state.copy()
            committed.accept_text_entry()
            self.state = committed
        if key in DIGIT_KEYS or key in (KeyCode.DOT, KeyCode.EE):
            self._start_entry(key)
            return True
        op = self.lookup(event)
        if op is None:
            log.debug('No operator for %s', event)
            return True
        return self._execute(op, event)

    def feed(self, events):
        '''
        Run key events in order, stopping at the first rejected one.

        :returns: whether all were accepted.
        '''
        for event in events:
            if not self.key_press(event):
                return False
        return True

    def _start_entry(self, key):
        '''
        Lift the stack and start a new number. The pre-lift state goes on
        the undo log so that backspacing the number away restores it.
        '''
        state = self.state.copy()
        self.undo.push(self.state)
        state.stack_lift()
        if key == KeyCode.DOT:
            state.start_text_entry('0.')
        elif key == KeyCode.EE:
            state.start_text_entry('1')
            state.start_exp_entry()
        else:
            state.start_text_entry(str(int(key)))
        self.state = state

    def _entry_key(self, key):
        state = self.state.copy()
        if key == KeyCode.BACK:
            if state.backspace_entry():
                log.debug('Entry abandoned, undoing lift')
                self.undo_last()
                return
        elif key == KeyCode.SIGN:
            state.flip_text_sign()
        elif key == KeyCode.EE:
            if not state.exponent_entry:
                state.start_exp_entry()
        elif key == KeyCode.DOT:
            if not state.exponent_entry:
                state.append_text_entry('.')
        elif state.exponent_entry:
            state.append_exp_entry(str(int(key)))
        else:
            state.append_text_entry(str(int(key)))
        self.state = state

    def _execute(self, op, event):
        previous = self.state
        state = previous.copy()
        try:
            with self.undo.checkpoint(previous):
                self._apply(op, state, event)
        except CalcError as e:
            log.debug('Rejected %s: %s', event, e)
            return False
        if not isinstance(op, Custom) or op.clears_no_lift:
            state.no_lift = False
        self.state = state
        return True

    def _apply(self, op, state, event):
        if isinstance(op, Unary):
            self._apply_unary(op, state)
        elif isinstance(op, BinaryAdditive):
            self._apply_additive(op, state)
        elif isinstance(op, BinaryMultiplicative):
            self._apply_multiplicative(op, state)
        elif isinstance(op, Conversion):
            self._apply_conversion(op, state)
        elif isinstance(op, Constant):
            state.stack_lift()
            state.xtv = TaggedValue(op.tag, op.value)
        elif isinstance(op, Custom):
            op.fn(self, state, event)
        else:
            raise TypeError('Unknown operator {!r}'.format(op))

    def _apply_unary(self, op, state):
        xtv = state.xtv
        x, tag = xtv.value, xtv.tag
        if op.required is not None:
            x = self.algebra.convert(tag, op.required)(x)
            tag = op.required
        if op.result is not None:
            tag = op.result
        state.last_x = xtv
        state.xtv = TaggedValue(tag, evaluate(op.fn, x), xtv.fmt)

    def _apply_additive(self, op, state):
        xtv, ytv = state.xtv, state.ytv
        # X must convert into Y's type; an untyped X always does.
        try:
            x = self.algebra.convert(xtv.tag, ytv.tag)(xtv.value)
        except ConversionError as e:
            raise TypeMismatch(*e.args)
        result = evaluate(op.fn, ytv.value, x)
        state.last_x = xtv
        state.stack_drop()
        state.xtv = TaggedValue(ytv.tag, result, ytv.fmt)

    def _apply_multiplicative(self, op, state):
        xtv, ytv = state.xtv, state.ytv
        result = evaluate(op.fn, ytv.value, xtv.value)
        if xtv.tag == TAG_UNTYPED:
            tag = ytv.tag
        elif ytv.tag == TAG_UNTYPED:
            tag = xtv.tag
        else:
            code, ratio = self.algebra.compose_types(ytv.tag, xtv.tag,
                                                     quotient=op.quotient)
            tag = self.algebra.resolve_or_create_tag(code)
            result *= ratio
        state.last_x = xtv
        state.stack_drop()
        state.xtv = TaggedValue(tag, result, ytv.fmt)

    def _apply_conversion(self, op, state):
        if op.target == TAG_NONE:
            raise ConversionError('Conversion key is not bound to a type')
        xtv = state.xtv
        seq = self.algebra.convert(xtv.tag, op.target)
        state.last_x = xtv
        state.xtv = TaggedValue(op.target, seq(xtv.value), xtv.fmt)

    def undo_last(self):
        '''
        Restore the latest snapshot; no-op if there is none.
        '''
        previous = self.undo.pop()
        if previous is None:
            log.debug('Undo log empty')
            return
        self.state = previous

    # Memory

    def _transaction(self, fn):
        return self._execute(Custom(fn), KeyEvent(PAD_MEMORY, None))

    def add_memory_item(self, name=None):
        '''
        Append X to memory.
        '''
        def add(engine, state, event):
            state.memory.append(NamedValue(name, state.xtv))
        return self._transaction(add)

    def del_memory_items(self, indices):
        '''
        Remove memory items by index.
        '''
        def delete(engine, state, event):
            doomed = set(indices)
            if not doomed <= set(range(len(state.memory))):
                raise CalcError('No memory items {}'.format(sorted(doomed)))
            state.memory[:] = [named
                               for index, named
                               in enumerate(state.memory)
                               if index not in doomed]
        return self._transaction(delete)

    def rename_memory_item(self, index, name):
        def rename(engine, state, event):
            slot = _memory_slot(state, KeyEvent(PAD_MEMORY, None, index))
            state.memory[slot] = replace(state.memory[slot], name=name or None)
        return self._transaction(rename)

    def memory_records(self):
        '''
        Memory as plain records, for whoever persists them.
        '''
        return [{'name': named.name,
                 'symbol': self.registry.symbol(named.value.tag) or '',
                 'value': named.value.value}
                for named in self.state.memory]

    def load_memory(self, records):
        '''
        Replace memory with persisted records. Types are looked up, or
        defined, by signature.
        '''
        state = self.state.copy()
        state.memory = [
            NamedValue(record.get('name'),
                       TaggedValue(self.algebra.signature_tag(
                                       record.get('symbol', '')),
                                   float(record['value'])))
            for record in records]
        self.state = state

    # Display

    def stack_rows(self):
        return self.state.stack_rows(self.registry)

    def memory_rows(self):
        return self.state.memory_rows(self.registry)
