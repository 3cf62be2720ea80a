from os import isatty
import sys
from sys import stdin, stdout, exit
from argparse import ArgumentParser, REMAINDER, OPTIONAL
import logging

from prompt_toolkit import PromptSession

from .util import CalcError
from .keys import KeyCode, KeyEvent, PAD_ENTER
from .engine import Engine
from .lexer import Lexer


log = logging.getLogger(__name__)


class InteractiveInput:
    def __init__(self, prompt, engine):
        self.prompt = prompt
        self.engine = engine

    def _toolbar(self):
        # Memory and undo depth at a glance.
        return 'mem: {}  undo: {}'.format(len(self.engine.state.memory),
                                          len(self.engine.undo))

    def __iter__(self):
        try:
            session = PromptSession(message=self.prompt,
                                    vi_mode=True,
                                    enable_suspend=True,
                                    enable_open_in_editor=True,
                                    history=None,
                                    bottom_toolbar=self._toolbar,
                                    prompt_continuation=' ' * len(self.prompt),
                                    # Certainly not! But be explicit.
                                    erase_when_done=False)
            while True:
                yield session.prompt()
        except EOFError:
            return


class CLI:
    '''
    Command line interface to the typed RPN engine.
    '''

    DEFAULT_PROMPT = '> '

    def __init__(self):
        '''
        Create ready to run CLI.

        Does not run or parse command line arguments.
        '''
        self.engine = Engine()
        self.lexer = Lexer()
        self.argument_parser = ArgumentParser(description='Typed RPN calculator')
        self.argument_parser.add_argument('-v', '--verbose',
                                          action='store_true')
        self.argument_parser.add_argument('-m', '--memory',
                                          action='store_true',
                                          help='show memory after each line')
        int_nonint_groups = self.argument_parser.add_mutually_exclusive_group()
        int_nonint_groups.add_argument('-e', '--expression',
                                       nargs=REMAINDER,
                                       dest='expressions')
        int_nonint_groups.add_argument('-p', '--prompt',
                                       nargs=OPTIONAL,
                                       const=self.DEFAULT_PROMPT)
        main_groups = self.argument_parser.add_mutually_exclusive_group()
        for short_, long_, action in [('-G', '--raw-grammar',
                                       self.raw_grammar),
                                      ('-D', '--dump', self.dumper),
                                      ('-C', '--catalog', self.catalog)]:
            main_groups.add_argument(short_, long_,
                                     action='store_const',
                                     const=action,
                                     dest='action')
        self.argument_parser.set_defaults(action=self.executor,
                                          expressions=stdin)

    def dumper(self):
        '''
        Dump all lexemes matches and the key events they map to.
        '''
        print('[groups]\t<repr(lexeme)>\t<events>')
        for line in self.args.expressions:
            for match in self.lexer.lex(line):
                if not self.lexer.isfeedable(match):
                    continue
                groups = self.lexer.matchedgroups(match)
                events = self.lexer.events(groups, self.engine.conversions)
                print(*groups.keys(),
                      repr(match.group(0)),
                      ' '.join('{}:{}'.format(event.pad, event.key.name)
                               for event in events),
                      sep='\t')

    def feed_line(self, line):
        '''
        Lex a line and run it, stopping at the first rejected key.
        '''
        engine = self.engine
        for match in self.lexer.lex(line):
            if not self.lexer.isfeedable(match):
                continue
            groups = self.lexer.matchedgroups(match)
            events = self.lexer.events(groups, engine.conversions)
            # Two numbers in a row are separated by an implicit Enter.
            if 'number' in groups and engine.state.entry_mode:
                events.insert(0, KeyEvent(PAD_ENTER, KeyCode.ENTER))
            if not engine.feed(events):
                raise CalcError('Rejected {}'.format(match.group(0)))

    def print_rows(self):
        for row in reversed(self.engine.stack_rows()):
            print(row)
        if self.args.memory:
            for index, row in enumerate(self.engine.memory_rows()):
                print('M{}'.format(index), row)

    def executor(self):
        '''
        Run the engine on each line, printing the stack.
        '''
        for line in self.args.expressions:
            try:
                self.feed_line(line)
            # Abort entire rest of line, makes sense anyway
            except CalcError as e:
                print(e.args[0], file=sys.stderr)
            self.print_rows()

    def raw_grammar(self):
        '''
        Print current internally defined grammar.
        '''
        print(self.lexer.LEXEME)

    def catalog(self):
        '''
        Print every type in the registry with its family and ratio.
        '''
        registry = self.engine.registry
        for typedef in registry:
            print(typedef.tag,
                  registry.unit_symbol(typedef.uid),
                  registry.symbol(typedef.tag),
                  typedef.ratio,
                  sep='\t')

    def _prompting_input(self):
        '''
        Return prompting stdin.__iter__ decorator...

        If either:
        - prompt explicitly specified.
        - both stdin/out are a tty
        '''
        if self.args.prompt or \
           isatty(stdin.fileno()) and isatty(stdout.fileno()):
            return InteractiveInput(prompt=self.args.prompt or
                                    self.DEFAULT_PROMPT,
                                    engine=self.engine)
        else:
            return stdin

    def run(self, *, args=None):
        '''
        Run CLI, given these args, or previously passed CLI args.
        '''
        self.args = self.argument_parser.parse_args(args)
        logging.basicConfig(
            level=logging.DEBUG if self.args.verbose else logging.WARNING,
            format='%(levelname)s %(name)s: %(message)s')
        if self.args.expressions is stdin:
            self.args.expressions = self._prompting_input()
        try:
            self.args.action()
        except KeyboardInterrupt:
            exit(1)


def main():
    CLI().run()
