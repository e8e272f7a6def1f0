"""
Expression tree for BigLisp surface syntax.

The parser produces these nodes and the expander consumes them:

- Symbol: identifiers, reserved words, operation names (if, let, defn, with-vars)
- Literal: integers, floats, strings, booleans
- Operator: + - * / = < > % and the two-character >= <= !=
- List: parenthesised forms, either special forms or plain calls
- Vector: bracketed collections

Nodes are immutable and child order is significant.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Leaf nodes
# ---------------------------------------------------------------------------


class Symbol(BaseModel):
    """An identifier, resolved at expansion time."""

    name: str = Field(description="Identifier text as written")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.name


class Literal(BaseModel):
    """A literal constant: bool, int, float or str."""

    value: bool | int | float | str = Field(description="The literal value")
    text: str = Field(default="", description="Verbatim token text")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.text:
            return self.text
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, str):
            return repr(self.value)
        return str(self.value)


class Operator(BaseModel):
    """A punctuation operator such as ``+`` or ``>=``."""

    symbol: str = Field(description="Operator text")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.symbol


# ---------------------------------------------------------------------------
# Compound nodes
# ---------------------------------------------------------------------------


class List(BaseModel):
    """
    Parenthesised form.

    Examples:
        - List(items=[]) → ()
        - List(items=[Operator(symbol="+"), Literal(value=1)]) → (+ 1)
    """

    items: list[Expr] = Field(default_factory=list, description="Child expressions")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "(" + " ".join(str(i) for i in self.items) + ")"

    @property
    def head(self) -> Expr | None:
        """First child, or None for the empty list."""
        return self.items[0] if self.items else None

    @property
    def args(self) -> list[Expr]:
        """All children after the head."""
        return self.items[1:]


class Vector(BaseModel):
    """Bracketed collection literal: [1 2 3]."""

    items: list[Expr] = Field(default_factory=list, description="Elements")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "[" + " ".join(str(i) for i in self.items) + "]"


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Expr = Symbol | Literal | Operator | List | Vector


class TopLevelForm(BaseModel):
    """One form of a multi-form program, with the position it started at."""

    expr: Expr
    line: int = Field(description="Line number (1-indexed)")
    column: int = Field(description="Column number (1-indexed)")

    model_config = ConfigDict(frozen=True)


# Rebuild models for recursive forward references
List.model_rebuild()
Vector.model_rebuild()
TopLevelForm.model_rebuild()
