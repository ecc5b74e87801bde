class PreprocessorError(Exception):
    """Base class of every error raised while processing a stream.

    ``reason`` is the short message; ``source`` and ``line`` locate the line
    that raised it once the preprocessor has seen the error.
    """
    def __init__(self, reason, source=None, line=None):
        super().__init__(reason)
        self.reason = reason
        self.source = source
        self.line = line

    def locate(self, source, line):
        # Errors raised inside an include keep the innermost location
        if self.line is None:
            self.source = source
            self.line = line
        return self

    def __str__(self):
        if self.line is None:
            return self.reason
        return f"{self.source}:{self.line}: {self.reason}"


class PreprocessorIOError(PreprocessorError):
    """Reading the line source failed."""


class BadExpression(PreprocessorError):
    """A #if / #elseif condition is not a valid boolean expression."""


class UnexpectedDirective(PreprocessorError):
    """Stray #elseif, #else or #endif."""


class UnclosedIf(PreprocessorError):
    """The stream ended inside a conditional block."""


class IncludeError(PreprocessorError):
    """The include resolver could not supply content for a path."""
    def __init__(self, error, path=None, source=None, line=None):
        reason = f"cannot include {path}: {error}" if path else str(error)
        super().__init__(reason, source, line)
        self.error = error
        self.path = path
