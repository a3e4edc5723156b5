"""
WDL expressions composing literal values, arithmetic, comparison, conditionals,
string interpolation, arrays & maps, and function applications. These appear on
the right-hand side of value declarations and in task command substitutions,
task runtime sections, and workflow scatter and conditional sections.

The abstract syntax tree (AST) for any expression is represented by an instance
of a Python class deriving from ``WDLAST.Expr.Base``. Any such node may have other
nodes attached "beneath" it. ``str()`` of an expression renders it back to WDL
source, with parentheses only where precedence requires them.

.. inheritance-diagram:: WDLAST.Expr
"""
from abc import ABC
from typing import List, Optional, Dict, Tuple, Union, Iterable

from ._error_util import SourcePosition
from .Error import SourceNode


class Base(SourceNode, ABC):
    """Superclass of all expression AST nodes"""

    @property
    def literal(self) -> bool:
        """
        :type: bool

        True for a numeric, Boolean, or ``None`` literal
        """
        return isinstance(self, (Boolean, Int, Float, Null))


class Boolean(Base):
    """
    Boolean literal
    """

    value: bool
    """
    :type: bool

    Literal value
    """

    def __init__(self, pos: SourcePosition, literal: bool) -> None:
        super().__init__(pos)
        self.value = literal

    def __str__(self):
        return str(self.value).lower()


class Int(Base):
    """
    Integer literal
    """

    value: int
    """
    :type: int

    Literal value, including the sign when written as ``-1`` or ``+1``
    """

    radix: int
    """
    :type: int

    Notation of the literal in the source: 10, 16 (``0x1F``) or 8 (``017``). Retained for
    formatting only; it doesn't participate in equality comparisons.
    """

    _eq_exclude = ("pos", "radix")

    def __init__(self, pos: SourcePosition, literal: int, radix: int = 10) -> None:
        super().__init__(pos)
        assert radix in (8, 10, 16)
        self.value = literal
        self.radix = radix

    def __str__(self):
        sign = "-" if self.value < 0 else ""
        if self.radix == 16:
            return "{}0x{:X}".format(sign, abs(self.value))
        if self.radix == 8 and self.value:
            return "{}0{:o}".format(sign, abs(self.value))
        return str(self.value)


class Float(Base):
    """
    Floating-point literal
    """

    value: float
    """
    :type: float

    Literal value
    """

    def __init__(self, pos: SourcePosition, literal: float) -> None:
        super().__init__(pos)
        self.value = literal

    def __str__(self):
        return str(self.value)


class Null(Base):
    """
    WDL ``None`` literal

    (called ``Null`` to avoid conflict with Python ``None``)
    """

    value: None
    """
    :type: None
    """

    def __init__(self, pos: SourcePosition) -> None:
        super().__init__(pos)
        self.value = None

    def __str__(self):
        return "None"


class Placeholder(Base):
    """Holds an expression interpolated within a string or command"""

    options: Dict[str, str]
    """
    :type: Dict[str,str]

    Placeholder options (sep, true, false, default)"""

    expr: Base
    """
    :type: WDLAST.Expr.Base

    Expression to be evaluated and substituted
    """

    def __init__(self, pos: SourcePosition, options: Dict[str, str], expr: Base) -> None:
        super().__init__(pos)
        self.options = options
        self.expr = expr

    def __str__(self):
        options = []
        for option in self.options:
            options.append('{}="{}"'.format(option, self.options[option]))
        options.append(str(self.expr))
        return "~{{{}}}".format(" ".join(options))

    @property
    def children(self) -> Iterable[SourceNode]:
        yield self.expr


class String(Base):
    """String literal, possibly interleaved with expression placeholders for interpolation"""

    parts: List[Union[str, Placeholder]]
    """
    :type: List[Union[str,WDLAST.Expr.Placeholder]]

    Sequence of literal text and/or interleaved placeholder expressions. The enclosing quote marks
    aren't included, and escape sequences in the literal text have been decoded.
    """

    def __init__(self, pos: SourcePosition, parts: List[Union[str, Placeholder]]) -> None:
        super().__init__(pos)
        self.parts = parts

    def __str__(self):
        parts = []
        for part in self.parts:
            if isinstance(part, Placeholder):
                parts.append(str(part))
            else:
                parts.append(
                    part.replace("\\", "\\\\")
                    .replace('"', '\\"')
                    .replace("\n", "\\n")
                    .replace("\t", "\\t")
                    .replace("~{", "\\~{")
                    .replace("${", "\\${")
                )
        return '"' + "".join(parts) + '"'

    @property
    def children(self) -> Iterable[SourceNode]:
        for p in self.parts:
            if isinstance(p, Base):
                yield p


class Array(Base):
    """
    Array literal
    """

    items: List[Base]
    """
    :type: List[WDLAST.Expr.Base]

    Expression for each item in the array literal
    """

    def __init__(self, pos: SourcePosition, items: List[Base]) -> None:
        super(Array, self).__init__(pos)
        self.items = items

    def __str__(self):
        items = []
        for item in self.items:
            items.append(str(item))
        return "[{}]".format(", ".join(items))

    @property
    def children(self) -> Iterable[SourceNode]:
        for it in self.items:
            yield it


class Pair(Base):
    """
    Pair literal
    """

    left: Base
    """
    :type: WDLAST.Expr.Base

    Left-hand expression in the pair literal
    """
    right: Base
    """
    :type: WDLAST.Expr.Base

    Right-hand expression in the pair literal
    """

    def __init__(self, pos: SourcePosition, left: Base, right: Base) -> None:
        super().__init__(pos)
        self.left = left
        self.right = right

    def __str__(self):
        return "({}, {})".format(str(self.left), str(self.right))

    @property
    def children(self) -> Iterable[SourceNode]:
        yield self.left
        yield self.right


class Map(Base):
    """
    Map literal
    """

    items: List[Tuple[Base, Base]]
    """
    :type: List[Tuple[WDLAST.Expr.Base,WDLAST.Expr.Base]]

    Expressions for the map literal keys and values, in the order written. Duplicate keys are
    kept as-is.
    """

    def __init__(self, pos: SourcePosition, items: List[Tuple[Base, Base]]) -> None:
        super().__init__(pos)
        self.items = items

    def __str__(self):
        items = []
        for item in self.items:
            items.append("{}: {}".format(str(item[0]), str(item[1])))
        return "{{{}}}".format(", ".join(items))

    @property
    def children(self) -> Iterable[SourceNode]:
        for k, v in self.items:
            yield k
            yield v


class Struct(Base):
    """
    Object or struct literal, ``object { a: 1 }`` or ``Point { x: 1, y: 2 }``
    """

    members: List[Tuple[str, Base]]
    """
    :type: List[Tuple[str,WDLAST.Expr.Base]]

    Member names and expressions in the order written. Duplicate names are kept as-is, for a
    later pass to reject.
    """

    struct_type_name: Optional[str]
    """
    :type: Optional[str]

    The struct type name given before the opening brace, or ``None`` for an ``object`` literal.
    """

    def __init__(
        self,
        pos: SourcePosition,
        members: List[Tuple[str, Base]],
        struct_type_name: Optional[str] = None,
    ):
        super().__init__(pos)
        self.members = members
        self.struct_type_name = struct_type_name
        assert struct_type_name is None or isinstance(struct_type_name, str), str(struct_type_name)

    def __str__(self):
        members = []
        for (k, v) in self.members:
            members.append("{}: {}".format(k, str(v)))
        return "{} {{{}}}".format(self.struct_type_name or "object", ", ".join(members))

    @property
    def children(self) -> Iterable[SourceNode]:
        for (_, v) in self.members:
            yield v


class IfThenElse(Base):
    """
    Ternary conditional expression
    """

    condition: Base
    """
    :type: WDLAST.Expr.Base

    A Boolean expression for the condition
    """

    consequent: Base
    """
    :type: WDLAST.Expr.Base

    Expression evaluated when the condition is true
    """

    alternative: Base
    """
    :type: WDLAST.Expr.Base

    Expression evaluated when the condition is false
    """

    def __init__(
        self, pos: SourcePosition, condition: Base, consequent: Base, alternative: Base
    ) -> None:
        super().__init__(pos)
        self.condition = condition
        self.consequent = consequent
        self.alternative = alternative

    def __str__(self):
        return "if {} then {} else {}".format(
            str(self.condition), str(self.consequent), str(self.alternative)
        )

    @property
    def children(self) -> Iterable[SourceNode]:
        yield self.condition
        yield self.consequent
        yield self.alternative


class Ident(Base):
    """
    An identifier referencing a named value, call, or namespace
    """

    name: str
    """:type: str"""

    def __init__(self, pos: SourcePosition, name: str) -> None:
        super().__init__(pos)
        assert name and "." not in name
        self.name = name

    def __str__(self):
        return self.name


class Get(Base):
    """
    Member access ``expr.member``, for pair sides (``.left``, ``.right``), struct members, and call
    outputs (``call_name.output_name``)
    """

    expr: Base
    """
    :type: WDLAST.Expr.Base

    The expression whose member is accessed
    """

    member: str
    """
    :type: str
    """

    def __init__(self, pos: SourcePosition, expr: Base, member: str) -> None:
        super().__init__(pos)
        self.expr = expr
        self.member = member

    def __str__(self):
        return "{}.{}".format(_operand(self.expr, _POSTFIX), self.member)

    @property
    def children(self) -> Iterable[SourceNode]:
        yield self.expr


class At(Base):
    """
    Index access ``expr[index]`` into an array or map
    """

    expr: Base
    """
    :type: WDLAST.Expr.Base
    """

    index: Base
    """
    :type: WDLAST.Expr.Base
    """

    def __init__(self, pos: SourcePosition, expr: Base, index: Base) -> None:
        super().__init__(pos)
        self.expr = expr
        self.index = index

    def __str__(self):
        return "{}[{}]".format(_operand(self.expr, _POSTFIX), str(self.index))

    @property
    def children(self) -> Iterable[SourceNode]:
        yield self.expr
        yield self.index


precedence: Dict[str, int] = {
    "||": 1,
    "&&": 2,
    "==": 3,
    "!=": 3,
    "<": 4,
    "<=": 4,
    ">": 4,
    ">=": 4,
    "+": 5,
    "-": 5,
    "*": 6,
    "/": 6,
    "%": 6,
}
"""
Binding strength of each binary operator (higher binds tighter); all are left-associative
"""

_UNARY = 7
_POSTFIX = 8


def _binding(expr: Base) -> int:
    if isinstance(expr, Binary):
        return precedence[expr.operator]
    if isinstance(expr, Unary):
        return _UNARY
    if isinstance(expr, IfThenElse):
        return 0
    return _POSTFIX + 1


def _operand(expr: Base, parent: int, right: bool = False) -> str:
    """
    Render an operand, adding parentheses around it when it binds more loosely than the parent
    operator (or equally, on the right side of a left-associative operator)
    """
    b = _binding(expr)
    if b < parent or (right and b == parent and isinstance(expr, Binary)):
        return "({})".format(str(expr))
    return str(expr)


class Unary(Base):
    """
    Prefix operator application: logical not (``!``), negation (``-``), or unary plus (``+``)
    """

    operator: str
    """:type: str"""

    operand: Base
    """:type: WDLAST.Expr.Base"""

    def __init__(self, pos: SourcePosition, operator: str, operand: Base) -> None:
        super().__init__(pos)
        assert operator in ("!", "-", "+")
        self.operator = operator
        self.operand = operand

    def __str__(self):
        return self.operator + _operand(self.operand, _UNARY)

    @property
    def children(self) -> Iterable[SourceNode]:
        yield self.operand


class Binary(Base):
    """
    Infix operator application, e.g. ``left + right``; see ``precedence`` for the operators
    """

    operator: str
    """:type: str"""

    left: Base
    """:type: WDLAST.Expr.Base"""

    right: Base
    """:type: WDLAST.Expr.Base"""

    def __init__(self, pos: SourcePosition, operator: str, left: Base, right: Base) -> None:
        super().__init__(pos)
        assert operator in precedence
        self.operator = operator
        self.left = left
        self.right = right

    def __str__(self):
        p = precedence[self.operator]
        return "{} {} {}".format(
            _operand(self.left, p), self.operator, _operand(self.right, p, right=True)
        )

    @property
    def children(self) -> Iterable[SourceNode]:
        yield self.left
        yield self.right


class Apply(Base):
    """Application of a standard library function"""

    function_name: str
    """Name of the function applied

    :type: str"""
    arguments: List[Base]
    """
    :type: List[WDLAST.Expr.Base]

    Expressions for each function argument
    """

    def __init__(self, pos: SourcePosition, function: str, arguments: List[Base]) -> None:
        super().__init__(pos)
        self.function_name = function
        self.arguments = arguments

    def __str__(self):
        return "{}({})".format(self.function_name, ", ".join(str(arg) for arg in self.arguments))

    @property
    def children(self) -> Iterable[SourceNode]:
        for arg in self.arguments:
            yield arg
