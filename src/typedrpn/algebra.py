'''
Type algebra: conversion between types and composition of type codes.

All functions consult a TypeRegistry and hold no other state. The only
writes are the on-demand definitions made by resolve_or_create_tag.
'''

import logging

from .signature import normalized
from .units import TAG_NONE, TAG_UNTYPED
from .util import ConversionError, TypeMismatch


log = logging.getLogger(__name__)


class ScaleOp:
    def __init__(self, scale):
        self.scale = scale

    def apply(self, x):
        return x * self.scale

    def reverse(self, x):
        return x / self.scale


class OffsetOp:
    def __init__(self, offset):
        self.offset = offset

    def apply(self, x):
        return x + self.offset

    def reverse(self, x):
        return x - self.offset


class ConversionSeq:
    '''
    Conversion operator: a sequence of scale and offset steps.
    '''

    def __init__(self, ops):
        self.ops = list(ops)

    @classmethod
    def scale(cls, ratio):
        return cls([ScaleOp(ratio)])

    def apply(self, x):
        for op in self.ops:
            x = op.apply(x)
        return x

    def reverse(self, x):
        for op in reversed(self.ops):
            x = op.reverse(x)
        return x

    __call__ = apply

    @property
    def ratio(self):
        '''
        Product of the scale steps.
        '''
        ratio = 1.0
        for op in self.ops:
            if isinstance(op, ScaleOp):
                ratio *= op.scale
        return ratio

    @property
    def affine(self):
        return any(isinstance(op, OffsetOp) for op in self.ops)


class TypeAlgebra:
    '''
    Signature codecs, conversion and composition over a registry.
    '''

    def __init__(self, registry):
        self.registry = registry

    normalize = staticmethod(normalized)

    def parse_signature(self, signature):
        return self.registry.parse_type_signature(signature)

    def render_signature(self, code):
        '''
        Canonical signature of a type code.
        '''
        return self.registry.type_signature(normalized(code))

    def _typedef(self, tag):
        typedef = self.registry.type_def(tag)
        if typedef is None:
            raise TypeMismatch('Undefined type {}'.format(tag))
        return typedef

    def ratio(self, tag):
        '''
        Ratio of a type to its family's reference scale.

        Derived types have no ratio of their own; theirs is the product of
        their factors' ratios.
        '''
        typedef = self._typedef(tag)
        if typedef.code == [(tag, 1)]:
            return typedef.ratio
        ratio = typedef.ratio
        for factor, exp in typedef.code:
            ratio *= self._typedef(factor).ratio ** exp
        return ratio

    def convert(self, from_tag, to_tag):
        '''
        Conversion from one type to another of the same family.

        An untyped value converts to anything, unchanged.

        :raises ConversionError: if the families differ or a tag is unknown.
        '''
        if from_tag == TAG_UNTYPED or from_tag == to_tag:
            return ConversionSeq.scale(1.0)
        if from_tag.uid != to_tag.uid:
            raise ConversionError('Cannot convert {} to {}'.format(
                self.registry.symbol(from_tag),
                self.registry.symbol(to_tag)))
        def_from = self.registry.type_def(from_tag)
        def_to = self.registry.type_def(to_tag)
        if def_from is None or def_to is None:
            raise ConversionError('No definition for {} or {}'.format(
                from_tag, to_tag))
        ops = []
        if def_from.delta:
            ops.append(OffsetOp(-def_from.delta))
        ops.append(ScaleOp(self.ratio(to_tag) / self.ratio(from_tag)))
        if def_to.delta:
            ops.append(OffsetOp(def_to.delta))
        return ConversionSeq(ops)

    def _check_composable(self, code):
        for tag, _ in code:
            if self.registry.is_affine(tag.uid):
                raise TypeMismatch('Cannot compose affine type {}'.format(
                    self.registry.symbol(tag)))

    def compose_codes(self, code_a, code_b, quotient=False):
        '''
        Product (or quotient) of two type codes.

        Factors of the same family but different scale (cm and km) merge
        into A's scale; the returned ratio is what the raw numeric result
        must be multiplied by to be expressed in it.

        :returns: (type code, ratio)
        '''
        self._check_composable(code_a)
        self._check_composable(code_b)
        sign = -1 if quotient else 1
        remaining = list(code_b)
        result = []
        ratio = 1.0
        for tag_a, exp_a in code_a:
            same = [i for i, (tag_b, _) in enumerate(remaining)
                    if tag_b == tag_a]
            compatible = [i for i, (tag_b, _) in enumerate(remaining)
                          if tag_b.uid == tag_a.uid]
            if same:
                _, exp_b = remaining.pop(same[0])
            elif compatible:
                tag_b, exp_b = remaining.pop(compatible[0])
                ratio *= (self._typedef(tag_a).ratio /
                          self._typedef(tag_b).ratio) ** (sign * exp_b)
            else:
                exp_b = 0
            result.append((tag_a, exp_a + sign * exp_b))
        result.extend((tag_b, sign * exp_b) for tag_b, exp_b in remaining)
        return normalized(result), ratio

    def _code(self, tag):
        code = self.registry.type_code(tag)
        if code is None:
            raise TypeMismatch('Undefined type {}'.format(tag))
        return code

    def compose_types(self, tag_a, tag_b, quotient=False):
        '''
        Type code and scale ratio of A*B, or of A/B if quotient.

        :raises TypeMismatch: for undefined or affine types.
        '''
        return self.compose_codes(self._code(tag_a), self._code(tag_b),
                                  quotient=quotient)

    def type_exponent(self, tag, n):
        '''
        Type code of a tag raised to an integer power.
        '''
        base = self._code(tag)
        self._check_composable(base)
        return normalized([(factor, exp * n) for factor, exp in base])

    def type_root(self, tag, n):
        '''
        Type code whose n-th power is the tag's type code.

        :raises TypeMismatch: if no such type code exists, e.g. sqrt of m.
        '''
        code = self._code(tag)
        self._check_composable(code)
        if any(exp % n for _, exp in code):
            raise TypeMismatch('No {}th root of {}'.format(
                n, self.registry.symbol(tag)))
        return normalized([(factor, exp // n) for factor, exp in code])

    def resolve_or_create_tag(self, code):
        '''
        Tag for a type code, defining the type (and its family) if unseen.

        The empty code is untyped.
        '''
        code = normalized(code)
        if not code:
            return TAG_UNTYPED
        registry = self.registry
        signature = registry.type_signature(code)
        with registry.lock:
            tag = registry.tag_for_signature(signature)
            if tag is not None:
                return tag
            unit_signature = registry.unit_signature(
                [(factor.uid, exp) for factor, exp in code])
            unit = registry.unit_for_signature(unit_signature)
            if unit is None:
                unit = registry.define_user_unit(unit_signature)
            log.debug('New type %s in family %s', signature,
                      registry.unit_symbol(unit.uid))
            return registry.define_derived_type(unit.uid, signature)

    def signature_tag(self, signature):
        '''
        Tag for a type symbol or signature, e.g. restoring a memory record.

        A signature naming any unknown symbol, or a malformed one, is none.
        '''
        if not signature:
            return TAG_UNTYPED
        tag = self.registry.tag_for_symbol(signature)
        if tag is not None:
            return tag
        factors = list(self.registry.lexer.lex(signature))
        code = self.parse_signature(signature)
        if not factors or len(code) != len(factors):
            log.warning('Unknown type signature %r', signature)
            return TAG_NONE
        return self.resolve_or_create_tag(code)
