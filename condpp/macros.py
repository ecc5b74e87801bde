import re

DEFINE_NAME = re.compile(r'[A-Za-z_][A-Za-z0-9_]*\Z')
DEFINE_RUN = re.compile(r'[A-Za-z0-9_]+')

def is_define_name(name):
    return isinstance(name, str) and DEFINE_NAME.match(name) is not None

class MacroTable:
    """Macro name -> literal replacement text."""
    def __init__(self, definitions=None):
        self.definitions = {}
        if definitions:
            self.update(definitions)

    def define(self, name, value):
        assert is_define_name(name), f"invalid macro name: {name!r}"
        self.definitions[name] = str(value)

    def undefine(self, name):
        self.definitions.pop(name, None)

    def update(self, definitions):
        for name, value in dict(definitions).items():
            self.define(name, value)

    def get(self, name, default=None):
        return self.definitions.get(name, default)

    def copy(self):
        return MacroTable(self.definitions)

    def __contains__(self, name):
        return name in self.definitions

    def __len__(self):
        return len(self.definitions)

    def __iter__(self):
        return iter(self.definitions)

    def substitute(self, text):
        """Replace every whole run of identifier characters that names a macro.

        Replacement text is not rescanned.
        """
        if not self.definitions:
            return text
        return DEFINE_RUN.sub(lambda mo: self.definitions.get(mo.group(), mo.group()), text)
