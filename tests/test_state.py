'''
Stack, data entry and undo log tests
'''

from typedrpn.formatting import DEFAULT_FORMAT, DEFAULT_SCI_FORMAT
from typedrpn.state import (CalcState, EntryState, NamedValue, RegisterRow,
                            TaggedValue, UndoStack, VALUE_NONE)
from typedrpn.units import TAG_UNTYPED
from typedrpn.util import EntryError, TypeMismatch

from pytest import approx, raises


def loaded(*values):
    '''
    State with X, Y, Z, T holding untyped values.
    '''
    state = CalcState()
    for index, value in enumerate(values):
        state.stack[index] = NamedValue(state.stack[index].name,
                                        TaggedValue(TAG_UNTYPED, value))
    return state


def values(state):
    return [tv.value for tv in state.registers()]


def entering(*chars):
    state = CalcState()
    state.start_text_entry(chars[0])
    for char in chars[1:]:
        state.append_text_entry(char)
    return state


def test_lift_then_drop():
    state = loaded(1, 2, 3, 4)
    state.stack_lift()
    assert values(state) == [1, 1, 2, 3]
    state.stack_drop()
    assert values(state) == [1, 2, 3, 3]


def test_lift_then_drop_full_round_trip():
    state = loaded(1, 2, 3, 3)
    state.stack_lift()
    state.stack_drop()
    assert values(state) == [1, 2, 3, 3]


def test_no_lift_skips_once():
    state = loaded(1, 2, 3, 4)
    state.no_lift = True
    state.stack_lift()
    assert values(state) == [1, 2, 3, 4]
    assert not state.no_lift
    state.stack_lift()
    assert values(state) == [1, 1, 2, 3]


def test_roll_and_swap():
    state = loaded(1, 2, 3, 4)
    state.stack_roll()
    assert values(state) == [2, 3, 4, 1]
    state.swap_xy()
    assert values(state) == [3, 2, 4, 1]
    assert [named.name for named in state.stack] == ['X', 'Y', 'Z', 'T']


def test_copy_is_independent():
    state = loaded(1, 2)
    other = state.copy()
    other.x = 5
    other.memory.append(NamedValue(None, other.xtv))
    assert state.x == 1
    assert state.memory == []


def test_grouping():
    state = entering('1', '2', '3', '4')
    assert state.entry_text == '1,234'
    for char in '567':
        state.append_text_entry(char)
    assert state.entry_text == '1,234,567'
    assert state.digit_count == 7


def test_decimal_stops_grouping():
    state = entering('1', '2', '3', '4', '.', '5', '.')
    assert state.entry_text == '1,234.5'
    assert state.decimal_seen


def test_sign_flip_keeps_grouping():
    state = entering('1', '2', '3', '4')
    state.flip_text_sign()
    assert state.entry_text == '-1,234'
    state.append_text_entry('5')
    assert state.entry_text == '-12,345'
    state.flip_text_sign()
    assert state.entry_text == '12,345'


def test_bad_character():
    state = entering('1')
    with raises(EntryError):
        state.append_text_entry('x')
    with raises(EntryError):
        state.append_exp_entry('.')


def test_backspace_regroups():
    state = entering('1', '2', '3', '4')
    assert not state.backspace_entry()
    assert state.entry_text == '123'
    assert not state.backspace_entry()
    assert not state.backspace_entry()
    assert state.entry_text == '1'
    assert state.backspace_entry()
    assert state.entry_state is EntryState.IDLE


def test_backspace_decimal_point():
    state = entering('1', '2', '3', '4', '.')
    state.backspace_entry()
    assert state.entry_text == '1,234'
    assert not state.decimal_seen


def test_exponent_entry():
    state = entering('1', '.', '5')
    state.start_exp_entry()
    assert state.entry_state is EntryState.EXPONENT
    state.append_exp_entry('3')
    state.flip_text_sign()
    assert state.exponent_text == '-3'
    state.accept_text_entry()
    assert state.x == approx(1.5e-3)
    assert state.xfmt == DEFAULT_SCI_FORMAT
    assert state.xt == TAG_UNTYPED
    assert state.entry_state is EntryState.IDLE


def test_exponent_backspace_returns_to_mantissa():
    state = entering('2')
    state.start_exp_entry()
    assert state.entry_text == '2\N{MULTIPLICATION SIGN}10'
    state.append_exp_entry('1')
    assert not state.backspace_entry()
    assert state.exponent_entry
    assert not state.backspace_entry()
    assert state.entry_text == '2'
    assert state.entry_state is EntryState.MANTISSA


def test_accept():
    state = entering('1', '2', '3', '4')
    state.accept_text_entry()
    assert state.x == 1234.0
    assert state.xfmt == DEFAULT_FORMAT
    assert not state.entry_mode


def test_accept_empty_exponent():
    state = entering('7')
    state.start_exp_entry()
    state.accept_text_entry()
    assert state.x == 7.0
    assert state.xfmt == DEFAULT_FORMAT


def test_undo_is_bounded():
    undo = UndoStack()
    states = [loaded(index) for index in range(UndoStack.DEPTH + 1)]
    evicted = [undo.push(state) for state in states]
    assert len(undo) == UndoStack.DEPTH
    assert evicted[-1] is states[0]
    assert evicted[:-1] == [None] * UndoStack.DEPTH
    assert undo.pop() is states[-1]


def test_undo_empty():
    assert UndoStack().pop() is None


def test_checkpoint_keeps_snapshot():
    undo = UndoStack()
    state = loaded(1)
    with undo.checkpoint(state):
        pass
    assert undo.pop() is state


def test_checkpoint_restores_evicted():
    undo = UndoStack()
    for index in range(UndoStack.DEPTH):
        undo.push(loaded(index))
    before = list(undo.snapshots)
    with raises(TypeMismatch):
        with undo.checkpoint(loaded(99)):
            raise TypeMismatch('nope')
    assert len(undo.snapshots) == len(before)
    assert all(a is b for a, b in zip(undo.snapshots, before))


def test_rows(registry):
    km = registry.tag_for_symbol('km')
    state = CalcState()
    state.xtv = TaggedValue(km, 1234.5)
    assert state.stack_row(0, registry) == \
        RegisterRow('X', '1,234.5', suffix='km')
    assert str(state.stack_row(0, registry)) == 'X: 1,234.5 km'
    assert str(state.stack_row(3, registry)) == 'T: 0'


def test_entry_row(registry):
    state = entering('4')
    assert state.stack_row(0, registry) == RegisterRow('X', '4',
                                                       reg_addon='_')
    state.start_exp_entry()
    state.append_exp_entry('2')
    assert str(state.stack_row(0, registry)) == \
        'X: 4\N{MULTIPLICATION SIGN}10^2_'


def test_scientific_row(registry):
    state = CalcState()
    state.xtv = TaggedValue(TAG_UNTYPED, 1500.0, DEFAULT_SCI_FORMAT)
    assert str(state.stack_row(0, registry)) == \
        'X: 1.5\N{MULTIPLICATION SIGN}10^3'


def test_memory_rows(registry):
    state = CalcState()
    state.memory.append(NamedValue('a', VALUE_NONE))
    state.memory.append(NamedValue(None, TaggedValue(TAG_UNTYPED, 3.0)))
    assert [str(row) for row in state.memory_rows(registry)] == ['a: -', '3']
    assert state.memory_row(5, registry) == RegisterRow(None, 'Error')
