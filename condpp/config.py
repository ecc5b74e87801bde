import json
import os

from .includes import FileIncludes, NoIncludes
from .macros import is_define_name
from .preprocessor import Context

class Config:
    def __init__(self):
        self.definitions = {}  # Macro name -> replacement text
        self.include_paths = []
        self.includes_enabled = True
        self.strip_comments = False
        self.max_include_depth = None

    def define(self, name, value="1"):
        name = name.strip()
        if not is_define_name(name):
            raise ValueError(f"invalid macro name: {name!r}")
        value = str(value).strip()
        # Booleans are spelled the way #if conditions understand them
        if value.lower() == 'true':
            value = "1"
        elif value.lower() == 'false':
            value = "0"
        self.definitions[name] = value

    def parse_defines(self, define_str):
        """Parses a string like 'WIN64=1,DEBUG=false,FLAG' into the definitions dict."""
        if not define_str:
            return

        for pair in define_str.split(','):
            if not pair.strip():
                continue
            if '=' in pair:
                key, value = pair.split('=', 1)
                self.define(key, value)
            else:
                # Assume true if no value provided
                self.define(pair)

    def load(self, filepath):
        """Loads a JSON config file and merges it into this config."""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ValueError(f"Error loading config {filepath}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Error loading config {filepath}: expected a JSON object")

        defines = data.get("defines", {})
        if not isinstance(defines, dict):
            raise ValueError(f"Error loading config {filepath}: 'defines' must be an object")
        include_paths = data.get("include_paths", [])
        if not isinstance(include_paths, list) or not all(isinstance(p, str) for p in include_paths):
            raise ValueError(f"Error loading config {filepath}: 'include_paths' must be a list of strings")
        max_depth = data.get("max_include_depth")
        if max_depth is not None and (isinstance(max_depth, bool) or not isinstance(max_depth, int)):
            raise ValueError(f"Error loading config {filepath}: 'max_include_depth' must be an integer")

        for name, value in defines.items():
            if isinstance(value, bool):
                value = "1" if value else "0"
            self.define(name, value)

        # Relative include paths are relative to the config file
        base_path = os.path.dirname(os.path.abspath(filepath))
        for path in include_paths:
            path = os.path.join(base_path, path)
            if path not in self.include_paths:
                self.include_paths.append(path)

        if "strip_comments" in data:
            self.strip_comments = bool(data["strip_comments"])
        if "max_include_depth" in data:
            self.max_include_depth = data["max_include_depth"]
        if "includes" in data:
            self.includes_enabled = bool(data["includes"])

    def resolver(self):
        if not self.includes_enabled:
            return NoIncludes()
        return FileIncludes(self.include_paths)

    def context(self, includes=None):
        context = Context(
            includes=includes if includes is not None else self.resolver(),
            strip_comments=self.strip_comments,
            max_include_depth=self.max_include_depth,
        )
        for name, value in self.definitions.items():
            context.define(name, value)
        return context
