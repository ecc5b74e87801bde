from .errors import BadExpression
from .lexer import Lexer, Token

class ExpressionParser:
    """Recursive-descent evaluator for #if conditions.

    The grammar only knows the literals 0 and 1, '!', '&&', '||' and
    parentheses.  '&&' and '||' share one precedence level and are folded
    strictly left to right, so ``1 || 0 && 1`` means ``(1 || 0) && 1``.
    Both operands are always parsed; nothing short-circuits.
    """
    def __init__(self, tokens):
        self.tokens = tokens
        self.pos = 0
        self.current_token = None
        self.advance()

    def advance(self):
        if self.pos < len(self.tokens):
            self.current_token = self.tokens[self.pos]
            self.pos += 1
        else:
            self.current_token = Token('EOF', '', -1)

    def match(self, type_name):
        return self.current_token.type == type_name

    def consume(self, type_name):
        if not self.match(type_name):
            return False
        self.advance()
        return True

    def parse(self):
        return self.parse_sequence(paren=False)

    def parse_sequence(self, paren):
        result = False
        op = None # None means the first value is assigned, not folded
        while True:
            value = self.parse_unary()
            if op is None:
                result = value
            elif op == 'AND':
                result = result and value
            else:
                result = result or value

            if self.consume('AND'):
                op = 'AND'
            elif self.consume('OR'):
                op = 'OR'
            elif paren and self.consume('RPAREN'):
                return result
            elif not paren and self.match('EOF'):
                return result
            else:
                raise BadExpression("unexpected token")

    def parse_unary(self):
        negate = False
        while self.consume('NOT'):
            negate = not negate
        return negate != self.parse_primary()

    def parse_primary(self):
        if self.consume('ONE'):
            return True
        if self.consume('ZERO'):
            return False
        if self.consume('LPAREN'):
            return self.parse_sequence(paren=True)
        raise BadExpression("unexpected token")

def tokenize(text):
    return list(Lexer(text).tokenize())

def evaluate(text):
    """Evaluate a boolean expression string, raising BadExpression when malformed."""
    try:
        return ExpressionParser(tokenize(text)).parse()
    except RecursionError:
        raise BadExpression("expression nested too deeply") from None
