class _KeepMissing(dict):
    def __missing__(self, key):
        return "{" + key + "}"


class Prompt(str):
    """
    Prompt template whose ``{token}`` placeholders are filled in on render.

    Tokens unknown at render time are left untouched, so a template can be
    filled in several steps::

        greeting = Prompt("{salutation}, {name}", salutation="Hi")
        greeting.render(name="Ada")  # "Hi, Ada"

    Only the template is parsed for placeholders. Token values are inserted
    verbatim, braces included.
    """

    _tokens: dict[str, object]

    def __new__(cls, template: str, /, **tokens):
        obj = super().__new__(cls, template)
        obj._tokens = tokens
        return obj

    @property
    def template(self) -> str:
        return str.__str__(self)

    @property
    def tokens(self) -> dict[str, object]:
        return dict(self._tokens)

    def with_tokens(self, **tokens) -> "Prompt":
        return Prompt(self.template, **{**self._tokens, **tokens})

    def render(self, **extra_tokens) -> str:
        return self.template.format_map(_KeepMissing(self._tokens, **extra_tokens))

    def __str__(self) -> str:
        return self.render()

    def __eq__(self, other):
        if isinstance(other, str):
            return self.render() == str(other)
        return NotImplemented

    __hash__ = str.__hash__
