import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from .errors import MalformedExpression

logger = logging.getLogger(__name__)

OPERATORS = {'PLUS', 'MINUS', 'MUL', 'DIV', 'GT', 'LT'}
KEYWORDS = {'LET', 'PRINT', 'WHILE'}
CALLABLE = OPERATORS | KEYWORDS | {'FUNC'}
LITERALS = {'NUMBER', 'STRING', 'BOOLEAN'}


@dataclass(frozen=True)
class Ident:
    kind: str
    value: Optional[str] = None

    @property
    def is_callable(self):
        return self.kind in CALLABLE

    def __str__(self):
        return self.value if self.value is not None else self.kind.lower()


@dataclass(frozen=True)
class Constant:
    value: Any


@dataclass(frozen=True)
class Builtin:
    ident: Ident


@dataclass(frozen=True)
class Call:
    head: 'Expr'
    args: List['Expr'] = field(default_factory=list)


@dataclass(frozen=True)
class While:
    condition: 'Expr'
    body: List['Expr'] = field(default_factory=list)


Expr = Union[Constant, Builtin, Call, While]


class Parser:
    """Shift-reduce automaton over a flat token stream.

    Atoms are shifted onto ``stack`` as they arrive. Every ``(`` remembers the
    stack depth it was opened at in ``groups``, and the matching ``)`` reduces
    the nodes above that depth into one ``Call`` or ``While`` node.
    """

    def __init__(self, tokens):
        self.tokens = tokens
        self.stack = []
        self.groups = []

    def parse(self):
        logger.info('Parsing')
        previous = None
        for token in self.tokens:
            kind, value = token
            if kind == 'LPAREN':
                self.groups.append(len(self.stack))
            elif kind == 'RPAREN':
                self.stack.append(self.reduce())
            elif kind in LITERALS:
                self.stack.append(Constant(value))
            elif kind in OPERATORS or kind in KEYWORDS:
                self.stack.append(Builtin(Ident(kind, value)))
            elif kind == 'ID':
                # an identifier right after '(' names the function being called
                ident_kind = 'FUNC' if previous == 'LPAREN' else 'VAR'
                self.stack.append(Builtin(Ident(ident_kind, value)))
            else:
                raise MalformedExpression(f'Unexpected token: {token}')
            previous = kind

        if self.groups:
            raise MalformedExpression(f"{len(self.groups)} unclosed '(' at end of input")

        logger.debug(f'{len(self.stack)} top-level expressions')
        return self.stack

    def reduce(self):
        if not self.groups:
            raise MalformedExpression("Unexpected ')' without a matching '('")
        start = self.groups.pop()

        params = []
        while True:
            if len(self.stack) <= start:
                raise MalformedExpression('Expression has no function, operator or keyword at its head')
            node = self.stack.pop()
            if isinstance(node, Builtin) and node.ident.is_callable:
                head = node
                break
            params.append(node)

        if len(self.stack) != start:
            raise MalformedExpression(f"'{head.ident}' must come first in its expression")

        # stack pops are LIFO
        params.reverse()

        if head.ident.kind == 'WHILE':
            if not params:
                raise MalformedExpression('while loop is missing its condition')
            return While(params[0], params[1:])
        return Call(head, params)


def build_tree(tokens):
    return Parser(tokens).parse()
