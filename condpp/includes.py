import io
import logging
import os

log = logging.getLogger(__name__)


class NotSupported(Exception):
    def __init__(self, message="#include is not supported"):
        super().__init__(message)


class IncludeNotFound(LookupError):
    def __init__(self, path):
        super().__init__(f"include file not found: {path}")
        self.path = path


class IncludeDepthExceeded(RecursionError):
    def __init__(self, depth):
        super().__init__(f"#include nested more than {depth} levels deep")
        self.depth = depth


def as_stream(content):
    if isinstance(content, str):
        return io.StringIO(content)
    if isinstance(content, (bytes, bytearray)):
        return io.BytesIO(content)
    return content


class NoIncludes:
    """Resolver for contexts where inclusion is disallowed."""
    def find_content(self, path):
        raise NotSupported()


class DictIncludes:
    """In-memory resolver: include path -> text."""
    def __init__(self, files=None):
        self.files = dict(files or {})

    def add(self, path, text):
        self.files[path] = text

    def find_content(self, path):
        if path not in self.files:
            raise IncludeNotFound(path)
        return as_stream(self.files[path])


class CallableIncludes:
    """Adapts a plain function ``f(path) -> str | stream`` to a resolver."""
    def __init__(self, func):
        self.func = func

    def find_content(self, path):
        return as_stream(self.func(path))


class FileIncludes:
    """Looks include paths up on disk.

    Relative paths are tried against each search path in order.  Lines are
    split at LF only, so CRLF endings reach the output intact and a lone CR
    stays inside its line.
    """
    def __init__(self, search_paths=None, encoding="utf-8"):
        self.search_paths = list(search_paths or [])
        self.encoding = encoding

    def add_search_path(self, path, first=False):
        if path in self.search_paths:
            return
        if first:
            self.search_paths.insert(0, path)
        else:
            self.search_paths.append(path)

    def candidates(self, path):
        if os.path.isabs(path):
            return [path]
        if not self.search_paths:
            return [path]
        return [os.path.join(base, path) for base in self.search_paths]

    def find_content(self, path):
        if len(path) >= 2 and (path[0], path[-1]) in (('"', '"'), ('<', '>')):
            path = path[1:-1].strip()
        for candidate in self.candidates(path):
            if os.path.isfile(candidate):
                log.debug("resolved include %s -> %s", path, candidate)
                return open(candidate, 'r', encoding=self.encoding, newline='\n')
        raise IncludeNotFound(path)


def as_resolver(includes):
    if includes is None:
        return NoIncludes()
    if hasattr(includes, 'find_content'):
        return includes
    if callable(includes):
        return CallableIncludes(includes)
    if isinstance(includes, dict):
        return DictIncludes(includes)
    raise TypeError(f"not an include resolver: {includes!r}")
