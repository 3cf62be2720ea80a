from functools import reduce
import operator

import regex

from .keys import KeyCode, KeyEvent, PAD_ENTER, PAD_FUNCTIONS, PAD_MEMORY, \
    PAD_OP
from .util import CalcError


# Single character operators -> keys
OPERATORS = {
    '+': KeyCode.PLUS,
    '-': KeyCode.MINUS,
    '*': KeyCode.TIMES,
    '\N{MULTIPLICATION SIGN}': KeyCode.TIMES,
    '/': KeyCode.DIVIDE,
    '\N{DIVISION SIGN}': KeyCode.DIVIDE,
    '^': KeyCode.POWER,
    '%': KeyCode.PERCENT,
    # Like dc, _ is the sign: 3_ is -3.
    '_': KeyCode.SIGN,
    '<': KeyCode.FIX_LESS,
    '>': KeyCode.FIX_MORE,
}

# Named commands -> keys
WORDS = {
    'enter': KeyCode.ENTER,
    'clx': KeyCode.CLEAR,
    'undo': KeyCode.BACK,
    'roll': KeyCode.ROLL,
    'swap': KeyCode.XY,
    'lastx': KeyCode.LASTX,
    'sin': KeyCode.SIN,
    'cos': KeyCode.COS,
    'tan': KeyCode.TAN,
    'asin': KeyCode.ASIN,
    'acos': KeyCode.ACOS,
    'atan': KeyCode.ATAN,
    'log': KeyCode.LOG,
    'ln': KeyCode.LN,
    'alog': KeyCode.TEN_X,
    'exp': KeyCode.E_X,
    'sqrt': KeyCode.SQRT,
    'sq': KeyCode.SQUARE,
    'inv': KeyCode.INV,
    'pi': KeyCode.PI,
    'e': KeyCode.E,
    'fix': KeyCode.FMT_FIX,
    'sci': KeyCode.FMT_SCI,
    'pct': KeyCode.FMT_PERCENT,
    'cur': KeyCode.FMT_CURRENCY,
}

MEMORY_OPERATIONS = {
    'sto': KeyCode.STO,
    'rcl': KeyCode.RCL,
    'sto+': KeyCode.STO_PLUS,
    'sto-': KeyCode.STO_MINUS,
}


class Lexer:
    '''
    Lexer for the typed RPN command line *regular* grammar.

    For consistency, for now, needs to be instantiated, despite holding no
    internal state.
    '''
    # Integral part of a number
    INTEGRAL = r'''
                # DO NOT REPEAT ME! I REPEAT MYSELF INTERNALLY!
                (?:
                    # 1, 12, or the 1 in 1_200.
                    \d{1,3}
                    (?:
                        # The 4, 45, etc. in 1234, 12345, etc.
                        \d
                        |
                        # Support not just digits, but thousands separators
                        (?:
                            _\d{3}
                        )
                    )*
                )
                '''
    # Fractional part of a number
    FRACTIONAL = r'''
                  # DO NOT REPEAT ME! I REPEAT MYSELF INTERNALLY!
                  (?:
                      \d+
                  )
                  '''
    # Power of ten: 1e3, 1.5e-3
    EXPONENT = r'''
                (?:
                    [eE]
                    -?
                    \d+
                )
                '''
    # Number, of any kind supported by grammar.
    # String formatting and regex is a tricky business, because of the braces.
    # It works here. Be careful in general!
    NUMBER = r'''
              (?:
                  (?:
                      # 1, 12, 1_200, 1_200. (notice trailing dot), 1.3
                      {INTEGRAL}
                      (?:
                          \.
                          {FRACTIONAL}?
                      )?
                  )|(?:
                      # .2, 0.2
                      {INTEGRAL}?
                      \.
                      {FRACTIONAL}
                  )
              )
              {EXPONENT}?
              '''.format(INTEGRAL=INTEGRAL, FRACTIONAL=FRACTIONAL,
                         EXPONENT=EXPONENT)
    # Type symbol or signature to convert X to: 'km', 'm/sec'
    STR = r'''
           '
           (?<__str__>
               [^']*
           )
           '
           '''
    # Memory operation on a slot; no slot means append.
    MEMORY = r'''
              (?<memop>
                  sto[+-]?
                  |
                  rcl
              )
              (?<slot>
                  \d+
              )?
              '''
    WORD = r'[^\W\d_]+'

    assert not [operator
                for operator
                in OPERATORS
                if len(operator) != 1]
    OPERATOR = r'(?:' + r'|'.join(map(regex.escape, OPERATORS)) + r')'
    SPACE = r'\s+'

    # Immediate, as in immediately complete lexeme
    IMMEDIATE = r'(?<operator>' + OPERATOR + r')|' \
                r'(?<space>' + SPACE + r')'
    # All possible lexemes.
    LEXEME = r'(?<number>' + NUMBER + r')|' \
             r'(?<str>' + STR + r')|' \
             r'(?<memory>' + MEMORY + r')|' \
             r'(?<word>' + WORD + r')|' \
             r'(?<immediate>' + IMMEDIATE + r')'
    # Default regex flags for matching lexemes
    FLAGS = reduce(operator.__or__,
                   {regex.POSIX,
                    regex.VERSION1,
                    regex.VERBOSE},
                   0)

    def lex(self, line):
        '''
        Take a line and return all lexemes.

        Doesn't yield incomplete or incorrect lexemes, stopping on first bad.
        '''
        while line:
            match = regex.match(type(self).LEXEME, line,
                                flags=type(self).FLAGS)
            if match is None:
                break
            yield match
            line = line[len(match.group(0)):]
        if line:
            raise CalcError("Couldn't lex {0}".format(line.strip()))

    def isfeedable(self, match):
        '''
        Return True if lexeme can be fed to the engine.
        '''
        return 'space' not in self.matchedgroups(match).keys()

    def matchedgroups(self, match):
        '''
        Yield lexeme matches.
        '''
        return {key: value
                for key, value
                in match.groupdict().items()
                if value and key != 'immediate'}

    def events(self, groups, conversions):
        '''
        Key events for one lexeme.

        :param conversions: {symbol: KeyEvent} of bound conversion keys.
        '''
        if 'number' in groups:
            return list(self._number_events(groups['number']))
        elif 'str' in groups:
            symbol = groups['__str__']
            if symbol not in conversions:
                raise CalcError('No conversion to {!r}'.format(symbol))
            return [conversions[symbol]]
        elif 'memory' in groups:
            slot = groups.get('slot')
            return [KeyEvent(PAD_MEMORY,
                             MEMORY_OPERATIONS[groups['memop']],
                             None if slot is None else int(slot))]
        elif 'word' in groups:
            word = groups['word']
            if word not in WORDS:
                raise CalcError('Unknown command {!r}'.format(word))
            return [KeyEvent(PAD_FUNCTIONS, WORDS[word])]
        elif 'operator' in groups:
            return [KeyEvent(PAD_OP, OPERATORS[groups['operator']])]
        return []

    def _number_events(self, number):
        '''
        Key strokes typing a number: digits, point, EE, and sign.
        '''
        for char in number:
            if char.isdigit():
                yield KeyEvent.digit(char)
            elif char == '.':
                yield KeyEvent(PAD_ENTER, KeyCode.DOT)
            elif char in 'eE':
                yield KeyEvent(PAD_ENTER, KeyCode.EE)
            elif char == '-':
                yield KeyEvent(PAD_ENTER, KeyCode.SIGN)
