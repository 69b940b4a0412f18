import logging
import re
from collections import namedtuple

from .errors import LexicalError

logger = logging.getLogger(__name__)

Token = namedtuple('Token', ['kind', 'value'])

TOKEN_SPEC = [
    ('NUMBER',   r'-?\d+(?:\.\d+)?(?![\w.])'),
    ('ID',       r'[A-Za-z_]\w*'),
    ('STRING',   r'"(?:[^"\\]|\\.)*"'),
    ('PLUS',     r'\+'),
    ('MINUS',    r'-'),
    ('MUL',      r'\*'),
    ('DIV',      r'/'),
    ('GT',       r'>'),
    ('LT',       r'<'),
    ('LPAREN',   r'\('),
    ('RPAREN',   r'\)'),
    ('COMMENT',  r';[^\n]*'),
    ('SKIP',     r'[ \t\r\f]+'),
    ('NEWLINE',  r'\n'),
    ('MISMATCH', r'.'),
]

TOKEN_REGEX = re.compile('|'.join('(?P<%s>%s)' % pair for pair in TOKEN_SPEC))

KEYWORDS = {
    'let': 'LET',
    'print': 'PRINT',
    'while': 'WHILE',
}

BOOLEANS = {
    'true': True,
    'false': False,
}


def gen_tokens(code):
    line = 1
    line_start = 0
    for mo in TOKEN_REGEX.finditer(code):
        kind = mo.lastgroup
        value = mo.group()
        if kind == 'NUMBER':
            value = float(value)
        elif kind == 'STRING':
            # escapes are passed through untouched
            value = value[1:-1]
            if '\n' in value:
                line += value.count('\n')
                line_start = mo.start() + 1 + value.rindex('\n') + 1
        elif kind == 'ID':
            if value in KEYWORDS:
                kind = KEYWORDS[value]
            elif value in BOOLEANS:
                kind = 'BOOLEAN'
                value = BOOLEANS[value]
        elif kind == 'NEWLINE':
            line += 1
            line_start = mo.end()
            continue
        elif kind == 'SKIP' or kind == 'COMMENT':
            continue
        elif kind == 'MISMATCH':
            raise LexicalError(value, line, mo.start() - line_start + 1)
        yield Token(kind, value)


def tokenize(code):
    logger.info('Tokenizing')
    tokens = list(gen_tokens(code))
    logger.debug(f'{len(tokens)} tokens')
    return tokens
