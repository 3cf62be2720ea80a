'''
Signature strings: the textual form of exponent vectors.

An exponent vector (a unit code or a type code) is a list of
``(identifier, exponent)`` pairs. Its signature lists the positive factors
joined by a middle dot, then a slash and the negative factors with their
sign stripped, e.g. ``[(m, 1), (sec, -2)]`` renders as ``m/sec^2``.
'''

from functools import reduce
import logging
import operator

import regex


log = logging.getLogger(__name__)


class SignatureLexer:
    '''
    Lexer for the signature grammar.

    Like the command line lexer, holds no internal state; the symbol table
    is passed in by whoever parses.
    '''
    TIMES = '\N{MIDDLE DOT}'
    OVER = '/'
    POWER = '^'

    # One factor: a symbol, then an exponent only when it isn't 1.
    FACTOR = r'''
              (?<symbol>
                  # Anything but the glyphs the grammar itself uses.
                  [^\s\N{MIDDLE DOT}/\^]+
              )
              (?:
                  \^
                  (?<exponent>
                      \d+
                  )
              )?
              '''
    # Factors joined by the multiplication glyph. Symbol-free, so it can be
    # repeated in SIGNATURE without clashing group names.
    FACTORS = r'''
               (?:
                   [^\s\N{MIDDLE DOT}/\^]+ (?:\^\d+)?
                   (?:
                       \N{MIDDLE DOT}
                       [^\s\N{MIDDLE DOT}/\^]+ (?:\^\d+)?
                   )*
               )
               '''
    # Whole signature. '1' stands in for an empty numerator, as in 1/sec.
    SIGNATURE = r'''
                 (?:
                     (?<one>1)
                     |
                     (?<numerator>{FACTORS})
                 )?
                 (?:
                     /
                     (?<denominator>{FACTORS})
                 )?
                 '''.format(FACTORS=FACTORS)
    FLAGS = reduce(operator.__or__,
                   {regex.VERSION1,
                    regex.VERBOSE},
                   0)

    def factors(self, text, sign=1):
        '''
        Yield (symbol, exponent) for each factor of one side of a signature.
        '''
        for part in text.split(type(self).TIMES):
            match = regex.fullmatch(type(self).FACTOR, part,
                                    flags=type(self).FLAGS)
            exponent = int(match.group('exponent') or 1)
            yield match.group('symbol'), sign * exponent

    def lex(self, signature):
        '''
        Split a signature into (symbol, exponent) pairs, denominator negated.

        A malformed signature yields nothing, with a warning.
        '''
        match = regex.fullmatch(type(self).SIGNATURE, signature,
                                flags=type(self).FLAGS)
        if match is None:
            log.warning('Malformed signature: %r', signature)
            return
        if match.group('numerator'):
            yield from self.factors(match.group('numerator'))
        if match.group('denominator'):
            yield from self.factors(match.group('denominator'), sign=-1)

    def parse(self, signature, lookup):
        '''
        Parse a signature into an exponent vector.

        :param lookup: maps a symbol to its identifier, or None if unknown.
            Unknown symbols are dropped with a warning.
        '''
        code = []
        for symbol, exponent in self.lex(signature):
            ident = lookup(symbol)
            if ident is None:
                log.warning('Undefined symbol %r in signature %r',
                            symbol, signature)
                continue
            code.append((ident, exponent))
        return code

    def render(self, code, name):
        '''
        Render an exponent vector as a signature, in the order given.

        :param name: maps an identifier to its symbol.
        '''
        if not code:
            return ''
        positive = [(ident, exp) for ident, exp in code if exp > 0]
        negative = [(ident, exp) for ident, exp in code if exp < 0]
        signature = type(self).TIMES.join(self._factor(name(ident), exp)
                                          for ident, exp in positive)
        if negative:
            signature = (signature or '1') + type(self).OVER + \
                type(self).TIMES.join(self._factor(name(ident), exp)
                                      for ident, exp in negative)
        return signature

    def _factor(self, symbol, exponent):
        if abs(exponent) > 1:
            return '{}{}{}'.format(symbol, type(self).POWER, abs(exponent))
        return symbol


def normalized(code):
    '''
    Return the exponent vector in canonical order.

    Positive exponents first, then negative ones, each bucket ordered by
    identifier. Zero exponents are dropped.
    '''
    return sorted(((ident, exp) for ident, exp in code if exp != 0),
                  key=lambda factor: (factor[1] < 0, factor[0]))
