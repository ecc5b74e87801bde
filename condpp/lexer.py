import re

from .errors import BadExpression

class Token:
    def __init__(self, type, value, column):
        self.type = type
        self.value = value
        self.column = column

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return (self.type, self.value, self.column) == (other.type, other.value, other.column)

    def __hash__(self):
        return hash((self.type, self.value, self.column))

    def __repr__(self):
        return f"Token({self.type}, {repr(self.value)}, Col:{self.column})"

class Lexer:
    """Splits a #if condition into tokens."""

    # Order matters: the two-character operators win over everything else
    token_specs = [
        ('OR', r'\|\|'),
        ('AND', r'&&'),
        ('LPAREN', r'\('),
        ('RPAREN', r'\)'),
        ('NOT', r'!'),
        ('ZERO', r'0'),
        ('ONE', r'1'),
        ('SKIP', r'\s+'),
        ('MISMATCH', r'.'),
    ]

    master_pat = re.compile('|'.join('(?P<%s>%s)' % pair for pair in token_specs), re.DOTALL)

    def __init__(self, text):
        self.text = text

    def tokenize(self):
        for mo in self.master_pat.finditer(self.text):
            kind = mo.lastgroup
            if kind == 'SKIP':
                continue
            elif kind == 'MISMATCH':
                raise BadExpression("unexpected symbol")
            yield Token(kind, mo.group(), mo.start() + 1)
