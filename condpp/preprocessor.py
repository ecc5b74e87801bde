import io
import logging

from .errors import (
    PreprocessorError, PreprocessorIOError, UnexpectedDirective, UnclosedIf, IncludeError,
)
from .expression import evaluate
from .includes import IncludeDepthExceeded, as_resolver, as_stream
from .macros import MacroTable

log = logging.getLogger(__name__)

COMMENT = "//"

# Kinds of conditional block kept on the stack
IF = 'IF'
ELSE = 'ELSE'
INACTIVE_IF = 'INACTIVE_IF'          # #if nested in a dead region, never evaluated
INCLUDE_BOUNDARY = 'INCLUDE_BOUNDARY'

# Branch status of an IF block
NOT_YET = 'NOT_YET'
NOW = 'NOW'
ALREADY = 'ALREADY'


def is_active(block):
    if block is None:
        return True
    kind = block["kind"]
    if kind == INCLUDE_BOUNDARY:
        return True
    if kind == IF:
        return block["branch"] == NOW
    if kind == ELSE:
        return block["active"]
    return False


def line_ending(line):
    for end in ("\r\n", "\n"):
        if line.endswith(end):
            return end
    return ""


def read_lines(stream, source):
    lines = iter(stream)
    lineno = 0
    while True:
        try:
            line = next(lines)
            if isinstance(line, bytes):
                line = line.decode('utf-8')
        except StopIteration:
            return
        except (OSError, UnicodeDecodeError) as e:
            raise PreprocessorIOError(str(e), source, lineno + 1) from e
        lineno += 1
        yield lineno, line


class Context:
    """Macros and include resolver shared by every stream of one run."""
    def __init__(self, includes=None, macros=None, strip_comments=False, max_include_depth=None):
        self.includes = as_resolver(includes)
        self.macros = macros if isinstance(macros, MacroTable) else MacroTable(macros)
        self.strip_comments = strip_comments
        self.max_include_depth = max_include_depth

    @classmethod
    def with_includes(cls, includes, **kwargs):
        return cls(includes=includes, **kwargs)

    def define(self, name, value):
        self.macros.define(name, value)

    def undefine(self, name):
        self.macros.undefine(name)


class Preprocessor:
    def __init__(self, context=None):
        self.context = context if context is not None else Context()
        self.stack = []
        self.output = []
        self.depth = 0 # current #include nesting

    def run(self, stream, source="<input>"):
        """Process a whole stream and return the output text.

        The first error aborts the run; nothing of the output is returned.
        """
        self.stack = []
        self.output = []
        self.depth = 0
        self.process(stream, source)
        return "".join(self.output)

    def current(self):
        return self.stack[-1] if self.stack else None

    def active(self):
        return is_active(self.current())

    def process(self, stream, source):
        entry = len(self.stack)
        lineno = 0
        log.debug("processing %s", source)
        for lineno, line in read_lines(stream, source):
            try:
                self.handle_line(line)
            except PreprocessorError as e:
                raise e.locate(source, lineno)

        if len(self.stack) != entry:
            raise UnclosedIf("couldn't find matching #endif", source, lineno)

    def handle_line(self, line):
        cmd = line.split(COMMENT, 1)[0].strip()

        if cmd.startswith("#if "):
            self.directive_if(cmd[4:])
        elif cmd.startswith("#elseif "):
            self.directive_elseif(cmd[8:])
        elif cmd == "#else":
            self.directive_else()
        elif cmd == "#endif":
            self.directive_endif()
        elif cmd.startswith("#include "):
            if self.active():
                self.include(cmd[9:].strip(), line_ending(line))
        elif self.active():
            self.emit(line)

    def condition(self, text):
        return evaluate(self.context.macros.substitute(text))

    def directive_if(self, text):
        if self.active():
            branch = NOW if self.condition(text) else NOT_YET
            self.stack.append({"kind": IF, "branch": branch})
        else:
            self.stack.append({"kind": INACTIVE_IF})

    def directive_elseif(self, text):
        block = self.current()
        if block is not None and block["kind"] == IF:
            if block["branch"] == NOT_YET:
                if self.condition(text):
                    block["branch"] = NOW
            else:
                block["branch"] = ALREADY
        elif block is None or block["kind"] != INACTIVE_IF:
            raise UnexpectedDirective("unexpected #elseif")

    def directive_else(self):
        block = self.current()
        if block is not None and block["kind"] == IF:
            self.stack[-1] = {"kind": ELSE, "active": block["branch"] == NOT_YET}
        elif block is None or block["kind"] != INACTIVE_IF:
            raise UnexpectedDirective("unexpected #else")

    def directive_endif(self):
        # An included stream may not close its parent's blocks
        block = self.current()
        if block is None or block["kind"] == INCLUDE_BOUNDARY:
            raise UnexpectedDirective("unexpected #endif")
        self.stack.pop()

    def include(self, path, ending):
        limit = self.context.max_include_depth
        if limit is not None and self.depth >= limit:
            raise IncludeError(IncludeDepthExceeded(limit), path)
        try:
            content = self.context.includes.find_content(path)
        except Exception as e:
            raise IncludeError(e, path) from e

        stream = as_stream(content)
        self.stack.append({"kind": INCLUDE_BOUNDARY})
        self.depth += 1
        log.debug("including %s at depth %d", path, self.depth)
        try:
            self.process(stream, path)
        finally:
            self.depth -= 1
            close = getattr(stream, 'close', None)
            if close is not None:
                close()
        self.stack.pop()
        self.output.append(ending)

    def emit(self, line):
        if self.context.strip_comments and COMMENT in line:
            line = line.split(COMMENT, 1)[0].rstrip(" \t") + line_ending(line)
        self.output.append(self.context.macros.substitute(line))


def process(stream, context=None, source=None):
    if source is None:
        source = getattr(stream, 'name', "<input>")
    return Preprocessor(context).run(stream, source)


def process_str(text, context=None, source="<string>"):
    return process(io.StringIO(text), context, source)


def process_file(path, context=None, encoding="utf-8"):
    try:
        f = open(path, 'r', encoding=encoding, newline='\n')
    except OSError as e:
        raise PreprocessorIOError(str(e), str(path)) from e
    with f:
        return process(f, context, str(path))
