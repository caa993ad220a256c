from sqlalchemy.sql.elements import quoted_name


class InvalidIdentifierError(ValueError):
    """A table or column name that cannot be used safely in SQL text."""


class Identifier:
    """
    Validated SQL identifier for caller-controlled table and column names.

    Names are always emitted double-quoted, so case and special characters
    survive as given. A name containing the quote character is rejected
    outright instead of escaped.

    Example:
        Identifier("My Column").quoted  ->  '"My Column"'
        Identifier('bad"name')          ->  InvalidIdentifierError
    """

    __slots__ = ("name",)

    def __init__(self, name: str):
        if not isinstance(name, str) or not name:
            raise InvalidIdentifierError("Identifier must be a non-empty string")
        if '"' in name:
            raise InvalidIdentifierError(f"Identifier contains a quote character: {name!r}")
        if "\x00" in name:
            raise InvalidIdentifierError(f"Identifier contains a NUL character: {name!r}")
        self.name = name

    @property
    def quoted(self) -> str:
        return f'"{self.name}"'

    @property
    def sql_name(self) -> quoted_name:
        # Forces SQLAlchemy to quote the name whatever the dialect's rules
        return quoted_name(self.name, quote=True)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Identifier({self.name!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Identifier) and other.name == self.name

    def __hash__(self) -> int:
        return hash(self.name)
