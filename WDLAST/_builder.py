# pylint: skip-file
"""
Lowering from lark parse trees to the WDLAST abstract syntax tree. One transformer class per
front end: both share the document-level rules, and each has its own expression rules.
"""
import inspect
import logging
import codecs
from typing import Any, List, Optional, Set
import regex
import lark
from ._error_util import SourcePosition, SourceText, join
from ._util import StructuredLogMessage as _, strip_leading_whitespace
from . import Error, Tree, Type, Expr, Meta, _grammar

INT_MAX = 2**63 - 1


class BadCharacterEncoding(Exception):
    pos: SourcePosition

    def __init__(self, pos: SourcePosition):
        self.pos = pos


# Decode backslash-escape sequences in a str that may also contain unescaped, non-ASCII unicode
# characters. Inspired by: https://stackoverflow.com/a/24519338/13393076
ASCII_PARTS_RE = regex.compile(r"[\x01-\x7f]+", regex.UNICODE)


def decode_escapes(pos: SourcePosition, s: str):
    try:
        return ASCII_PARTS_RE.sub(lambda match: codecs.decode(match.group(0), "unicode-escape"), s)
    except (SyntaxError, ValueError, UnicodeError):
        raise BadCharacterEncoding(pos)


def _int_literal(pos: SourcePosition, text: str, radix: int) -> Expr.Int:
    value = int(text, radix)
    if value > INT_MAX:
        raise Error.InvalidLiteral(pos, "integer literal out of range: " + text)
    return Expr.Int(pos, value, radix)


def _unary(pos: SourcePosition, operator: str, operand: Expr.Base) -> Expr.Base:
    # a sign applied directly to a numeric literal folds into the literal
    if operator in ("-", "+"):
        if isinstance(operand, Expr.Int):
            value = -operand.value if operator == "-" else operand.value
            return Expr.Int(pos, value, operand.radix)
        if isinstance(operand, Expr.Float):
            value = -operand.value if operator == "-" else operand.value
            return Expr.Float(pos, value)
    return Expr.Unary(pos, operator, operand)


class _SourcePositionTransformerMixin:
    _source: SourceText
    _keywords: Set[str]
    _logger: logging.Logger

    def __init__(
        self,
        source: SourceText,
        keywords: Set[str],
        logger: logging.Logger,
        *args,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._source = source
        self._keywords = keywords
        self._logger = logger

    def _sp(self, meta):
        return self._source.position(meta)

    def _check_keyword(self, pos, name):
        if name in self._keywords:
            raise Error.SyntaxError(pos, "unexpected keyword {}".format(name))


# Transformer from lark.Tree to WDLAST.Expr, for the operands common to both front ends
class _ExprTransformer(_SourcePositionTransformerMixin, lark.Transformer):
    # pylint: disable=no-self-use,unused-argument

    def boolean_true(self, meta, items) -> Expr.Base:
        return Expr.Boolean(self._sp(meta), True)

    def boolean_false(self, meta, items) -> Expr.Base:
        return Expr.Boolean(self._sp(meta), False)

    def null(self, meta, items) -> Expr.Base:
        return Expr.Null(self._sp(meta))

    def string(self, meta, items) -> Expr.Base:
        # items are the opening quote, literal fragments & placeholders, and the closing quote
        assert len(items) >= 2 and items[0] in ['"', "'"] and items[-1] == items[0]
        parts = []
        for item in items[1:-1]:
            if isinstance(item, Expr.Placeholder):
                parts.append(item)
            else:
                parts.append(decode_escapes(self._sp(item), item.value))
        return Expr.String(self._sp(meta), parts)

    def string_literal(self, meta, items):
        assert len(items) == 1
        assert items[0].value.startswith('"') or items[0].value.startswith("'")
        return decode_escapes(self._sp(meta), items[0].value[1:-1])

    def placeholder_option(self, meta, items):
        assert len(items) == 2
        name = items[0].value
        if name not in ("default", "false", "true", "sep"):
            raise Error.InvalidPlaceholder(self._sp(meta), "unknown placeholder option " + name)
        value = items[1]
        if isinstance(value, Expr.Base):
            value = str(value.value)
        return (name, value, self._sp(meta))

    def placeholder(self, meta, items):
        options = {}
        for name, value, pos in items[:-1]:
            if name in options:
                raise Error.MultipleDefinitions(
                    pos, "duplicate option {} in expression placeholder".format(name)
                )
            options[name] = value
        return Expr.Placeholder(self._sp(meta), options, items[-1])

    def array(self, meta, items) -> Expr.Base:
        return Expr.Array(self._sp(meta), items)

    def pair(self, meta, items) -> Expr.Base:
        assert len(items) == 2
        return Expr.Pair(self._sp(meta), items[0], items[1])

    def group(self, meta, items) -> Expr.Base:
        # parentheses leave no node of their own, but widen the span of the enclosed expression
        assert len(items) == 1
        return items[0]._repositioned(self._sp(meta))

    def map_kv(self, meta, items):
        assert len(items) == 2
        return (items[0], items[1])

    def map(self, meta, items) -> Expr.Base:
        return Expr.Map(self._sp(meta), items)

    def ifthenelse(self, meta, items) -> Expr.Base:
        assert len(items) == 3
        return Expr.IfThenElse(self._sp(meta), *items)

    def apply(self, meta, items) -> Expr.Base:
        assert len(items) >= 1
        return Expr.Apply(self._sp(meta), items[0].value, items[1:])

    def object_kv(self, meta, items):
        assert len(items) == 2
        if isinstance(items[0], lark.Token):
            self._check_keyword(self._sp(items[0]), items[0].value)
            return (items[0].value, items[1])
        return (items[0], items[1])

    def obj(self, meta, items) -> Expr.Base:
        name = items[0].value
        if name == "object":
            return Expr.Struct(self._sp(meta), items[1:])
        self._check_keyword(self._sp(items[0]), name)
        return Expr.Struct(self._sp(meta), items[1:], struct_type_name=name)

    def left_name(self, meta, items) -> Expr.Base:
        assert len(items) == 1
        self._check_keyword(self._sp(meta), items[0].value)
        return Expr.Ident(self._sp(meta), items[0].value)

    def _member(self, pos, name):
        if name not in ("left", "right"):
            self._check_keyword(pos, name)


# Expressions from the front end whose grammar layers the binary operators by precedence
class _TreeExprTransformer(_ExprTransformer):
    def hex_int(self, meta, items) -> Expr.Base:
        return _int_literal(self._sp(meta), items[0].value, 16)

    def oct_int(self, meta, items) -> Expr.Base:
        return _int_literal(self._sp(meta), items[0].value, 8)

    def dec_int(self, meta, items) -> Expr.Base:
        return _int_literal(self._sp(meta), items[0].value, 10)

    def float(self, meta, items) -> Expr.Base:
        return Expr.Float(self._sp(meta), float(items[0].value))

    def logical_not(self, meta, items) -> Expr.Base:
        return _unary(self._sp(meta), "!", items[0])

    def negate(self, meta, items) -> Expr.Base:
        return _unary(self._sp(meta), "-", items[0])

    def unary_plus(self, meta, items) -> Expr.Base:
        return _unary(self._sp(meta), "+", items[0])

    def at(self, meta, items) -> Expr.Base:
        assert len(items) == 2
        return Expr.At(self._sp(meta), items[0], items[1])

    def get_name(self, meta, items) -> Expr.Base:
        assert len(items) == 2 and isinstance(items[1], lark.Token)
        self._member(self._sp(items[1]), items[1].value)
        return Expr.Get(self._sp(meta), items[0], items[1].value)


# binary operators
for op, sym in [
    ("lor", "||"),
    ("land", "&&"),
    ("eqeq", "=="),
    ("neq", "!="),
    ("lt", "<"),
    ("lte", "<="),
    ("gt", ">"),
    ("gte", ">="),
    ("add", "+"),
    ("sub", "-"),
    ("mul", "*"),
    ("div", "/"),
    ("rem", "%"),
]:

    def fn(self, meta, items, sym=sym):
        assert len(items) == 2
        return Expr.Binary(self._sp(meta), sym, items[0], items[1])

    setattr(_TreeExprTransformer, op, fn)


# Expressions from the front end whose grammar yields flat operand/operator sequences; operator
# precedence and numeric literal notation are resolved here
class _FlatExprTransformer(_ExprTransformer):
    def number(self, meta, items) -> Expr.Base:
        text = items[0].value
        pos = self._sp(meta)
        if text[:2] in ("0x", "0X"):
            return _int_literal(pos, text, 16)
        if any(c in text for c in ".eE"):
            return Expr.Float(pos, float(text))
        if len(text) > 1 and text[0] == "0":
            return _int_literal(pos, text, 8)
        return _int_literal(pos, text, 10)

    def binop(self, meta, items) -> str:
        return items[0].value

    def unary(self, meta, items) -> Expr.Base:
        # operator tokens followed by the operand; the innermost operator applies first
        *operators, ans = items
        end = self._sp(meta)
        for tok in reversed(operators):
            ans = _unary(join(self._sp(tok), end), tok.value, ans)
        return ans

    def index(self, meta, items):
        return ("[]", items[0], self._sp(meta))

    def field(self, meta, items):
        self._member(self._sp(items[0]), items[0].value)
        return (".", items[0].value, self._sp(meta))

    def access(self, meta, items) -> Expr.Base:
        ans = items[0]
        for kind, arg, pos in items[1:]:
            if kind == "[]":
                ans = Expr.At(join(ans.pos, pos), ans, arg)
            else:
                ans = Expr.Get(join(ans.pos, pos), ans, arg)
        return ans

    def infix(self, meta, items) -> Expr.Base:
        # precedence climbing over: operand (operator operand)*
        assert len(items) >= 3 and len(items) % 2 == 1
        operands = [items[0]]
        operators: List[str] = []

        def reduce() -> None:
            right = operands.pop()
            left = operands.pop()
            operands.append(
                Expr.Binary(join(left.pos, right.pos), operators.pop(), left, right)
            )

        for operator, operand in zip(items[1::2], items[2::2]):
            while operators and Expr.precedence[operators[-1]] >= Expr.precedence[operator]:
                reduce()
            operators.append(operator)
            operands.append(operand)
        while operators:
            reduce()
        assert len(operands) == 1
        return operands[0]


# Document-level rules, common to both front ends
class _DocTransformer:
    # pylint: disable=no-self-use,unused-argument

    def optional(self, meta, items):
        return (set(["optional"]), meta.start_pos)

    def nonempty(self, meta, items):
        return (set(["nonempty"]), meta.start_pos)

    def optional_nonempty(self, meta, items):
        return (set(["optional", "nonempty"]), meta.start_pos)

    def type(self, meta, items):
        pos = self._sp(meta)
        quantifiers = set()
        unquantified = pos
        if len(items) > 1 and isinstance(items[-1], tuple):
            quantifiers, quant_start = items.pop()
            unquantified = self._source.span(meta.start_pos, quant_start)
        name = items[0].value
        params = items[1:]

        if name == "Array":
            if len(params) != 1:
                raise Error.InvalidType(pos, "Array must have one type parameter")
            ans = Type.Array(unquantified, params[0], "nonempty" in quantifiers)
        elif "nonempty" in quantifiers:
            raise Error.InvalidType(pos, "invalid type quantifier(s) for " + name)
        elif name in ("Map", "Pair"):
            if len(params) != 2:
                raise Error.InvalidType(pos, name + " must have two type parameters")
            klass = Type.Map if name == "Map" else Type.Pair
            ans = klass(unquantified, params[0], params[1])
        else:
            atomic_types = {
                "Int": Type.Int,
                "Float": Type.Float,
                "Boolean": Type.Boolean,
                "String": Type.String,
                "File": Type.File,
                "Directory": Type.Directory,
                "Object": Type.Object,
            }
            if params:
                raise Error.InvalidType(pos, name + " type doesn't accept parameters")
            if name in atomic_types:
                ans = atomic_types[name](unquantified)
            else:
                ans = Type.StructInstance(unquantified, name)

        if "optional" in quantifiers:
            ans = Type.Optional(pos, ans)
        return ans

    def decl(self, meta, items):
        self._check_keyword(self._sp(items[1]), items[1].value)
        return Tree.Decl(
            self._sp(meta), items[0], items[1].value, (items[2] if len(items) > 2 else None)
        )

    def input_decls(self, meta, items):
        return ("inputs", items, self._sp(meta))

    def noninput_decl(self, meta, items):
        return items[0]

    def output_decls(self, meta, items):
        for decl in items:
            if decl.expr is None:
                raise Error.MissingInitializer(decl, decl.name)
        return ("outputs", items, self._sp(meta))

    def meta_kv(self, meta, items):
        return (items[0].value, items[1], self._sp(meta))

    def meta_object(self, meta, items):
        d = dict()
        for k, v, pos in items:
            if k in d:
                raise Error.MultipleDefinitions(pos, "duplicate key {} in meta object".format(k))
            d[k] = v
        return Meta.Object(self._sp(meta), d)

    def meta_null(self, meta, items):
        return Meta.Null(self._sp(meta))

    def meta_true(self, meta, items):
        return Meta.Boolean(self._sp(meta), True)

    def meta_false(self, meta, items):
        return Meta.Boolean(self._sp(meta), False)

    def meta_string(self, meta, items):
        return Meta.String(self._sp(meta), items[0])

    def meta_array(self, meta, items):
        return Meta.Array(self._sp(meta), items)

    def meta_number(self, meta, items):
        number = items[-1]
        value = -number.value if len(items) > 1 and items[0] == "-" else number.value
        if isinstance(number, Expr.Int):
            return Meta.Int(self._sp(meta), value, number.radix)
        return Meta.Float(self._sp(meta), value)

    def meta_section(self, meta, items):
        kind = items[0].value
        assert kind in ["meta", "parameter_meta"]
        return (kind, items[1].members, self._sp(meta))

    def runtime_kv(self, meta, items):
        return (items[0].value, items[1], self._sp(meta))

    def runtime_section(self, meta, items):
        d = dict()
        for k, v, pos in items:
            if k in d:
                self._logger.warning(
                    _(
                        "duplicate key in runtime section; the last value is used",
                        key=k,
                        uri=pos.uri,
                        line=pos.line,
                        column=pos.column,
                    )
                )
            d[k] = v
        return ("runtime", d, self._sp(meta))

    def command_brace(self, meta, items):
        return (False, items)

    def command_heredoc(self, meta, items):
        return (True, items)

    def command(self, meta, items):
        heredoc, items = items[0]
        parts = []
        for item in items:
            if isinstance(item, Expr.Placeholder):
                parts.append(item)
            else:
                parts.append(item.value)
        pos = self._sp(meta)
        to_strip, parts = strip_leading_whitespace(parts)
        if to_strip is None:
            self._logger.warning(
                _(
                    "command's leading whitespace mixes tabs and spaces; indentation left as-is",
                    uri=pos.uri,
                    line=pos.line,
                    column=pos.column,
                )
            )
        return Tree.Command(pos, parts, heredoc)

    def _sections(self, kind, items):
        # sort task/workflow items into named sections and body elements
        sections = {}
        body = []
        for item in items:
            if isinstance(item, tuple):
                key, value, pos = item
                if key in sections:
                    raise Error.MultipleDefinitions(
                        pos, "redundant {} sections in {}".format(key, kind)
                    )
                sections[key] = value
            else:
                body.append(item)
        return (sections, body)

    def task(self, meta, items):
        name = items[0]
        self._check_keyword(self._sp(name), name.value)
        sections, body = self._sections("task", items[1:])
        postinputs = [elt for elt in body if isinstance(elt, Tree.Decl)]
        command = [elt for elt in body if isinstance(elt, Tree.Command)]
        assert len(command) == 1 and len(postinputs) + 1 == len(body)
        return Tree.Task(
            self._sp(meta),
            name.value,
            sections.get("inputs", []),
            postinputs,
            command[0],
            sections.get("outputs", []),
            sections.get("parameter_meta", {}),
            sections.get("runtime", {}),
            sections.get("meta", {}),
        )

    def namespaced_ident(self, meta, items):
        assert items
        return [item.value for item in items]

    def input_colon(self, meta, items):
        return None

    def call_input(self, meta, items):
        self._check_keyword(self._sp(items[0]), items[0].value)
        if len(items) > 1:
            return (items[0].value, items[1])
        return (items[0].value, Expr.Ident(self._sp(meta), items[0].value))

    def call_inputs(self, meta, items):
        # duplicate names are kept as written
        return [item for item in items if isinstance(item, tuple)]

    def call(self, meta, items):
        return Tree.Call(self._sp(meta), items[0], None, items[1] if len(items) > 1 else [])

    def call_as(self, meta, items):
        self._check_keyword(self._sp(items[1]), items[1].value)
        return Tree.Call(
            self._sp(meta), items[0], items[1].value, items[2] if len(items) > 2 else []
        )

    def scatter(self, meta, items):
        self._check_keyword(self._sp(items[0]), items[0].value)
        return Tree.Scatter(self._sp(meta), items[0].value, items[1], items[2:])

    def conditional(self, meta, items):
        return Tree.Conditional(self._sp(meta), items[0], items[1:])

    def workflow(self, meta, items):
        name = items[0]
        self._check_keyword(self._sp(name), name.value)
        sections, body = self._sections("workflow", items[1:])
        return Tree.Workflow(
            self._sp(meta),
            name.value,
            sections.get("inputs", []),
            body,
            sections.get("outputs", []),
            sections.get("parameter_meta", {}),
            sections.get("meta", {}),
        )

    def struct(self, meta, items):
        assert len(items) >= 1
        name = items[0]
        self._check_keyword(self._sp(name), name.value)
        seen = set()
        for decl in items[1:]:
            assert decl.expr is None
            if decl.name in seen:
                raise Error.MultipleDefinitions(
                    decl, "duplicate member {} in struct {}".format(decl.name, name.value)
                )
            seen.add(decl.name)
        return Tree.StructTypeDef(self._sp(meta), name.value, items[1:])

    def import_alias(self, meta, items):
        assert len(items) == 2
        self._check_keyword(self._sp(items[1]), items[1].value)
        return (items[0].value, items[1].value, self._sp(meta))

    def import_doc(self, meta, items):
        pos = self._sp(meta)
        uri = items[0]
        if len(items) > 1 and isinstance(items[1], lark.Token):
            namespace = items[1].value
        else:
            # infer namespace from filename/URI
            namespace = uri
            try:
                namespace = namespace[namespace.rindex("/") + 1 :]
            except ValueError:
                pass
            namespace = namespace.split("?")[0].split(".")[0]
        if not regex.fullmatch("[a-zA-Z][a-zA-Z0-9_]*", namespace) or namespace in self._keywords:
            raise Error.SyntaxError(
                pos,
                """declare an import namespace that follows WDL name rules and isn't a language keyword """
                """(import "filename" as some_namespace)""",
            )
        aliases = {}
        for src, dst, alias_pos in (p for p in items[1:] if isinstance(p, tuple)):
            if src in aliases:
                raise Error.MultipleDefinitions(
                    alias_pos, "struct type {} aliased more than once in import".format(src)
                )
            aliases[src] = dst
        return Tree.Import(pos, uri, namespace, aliases)

    def version(self, meta, items):
        ans = Tree.Version(self._sp(meta), items[0].value)
        if ans.identifier not in _grammar.versions:
            raise Error.UnsupportedVersion(
                ans,
                "unsupported WDL version {}; choices: {}".format(
                    ans.identifier, ", ".join(_grammar.versions)
                ),
            )
        return ans

    def document(self, meta, items):
        version = None
        body = []
        workflow = None
        for item in items:
            if isinstance(item, Tree.Version):
                if version is not None:
                    raise Error.MultipleVersions(item)
                if body:
                    raise Error.MisplacedVersion(item)
                version = item
                continue
            if isinstance(item, Tree.Workflow):
                if workflow is not None:
                    raise Error.MultipleDefinitions(item, "Document has multiple workflows")
                workflow = item
            assert isinstance(item, Tree.DocumentElement)
            body.append(item)
        if version is None:
            start = self._source.char_pos(body[0].pos.line, body[0].pos.column) if body else 0
            raise Error.MissingVersion(self._source.span(start, start))
        return Tree.Document(
            self._source.text, self._source.span(0, len(self._source.text)), version, body
        )


class _TreeBuilder(_DocTransformer, _TreeExprTransformer):
    pass


class _FlatBuilder(_DocTransformer, _FlatExprTransformer):
    pass


_builders = {"tree": _TreeBuilder, "flat": _FlatBuilder}

# have lark pass the 'meta' with line/column numbers to each transformer method
for _klass in [_ExprTransformer, _TreeExprTransformer, _FlatExprTransformer, _DocTransformer]:
    for name, method in list(_klass.__dict__.items()):
        if inspect.isfunction(method) and not name.startswith("_"):
            setattr(_klass, name, lark.v_args(meta=True)(method))  # pyre-fixme


def build(
    front_end: str,
    concrete: lark.Tree,
    source: SourceText,
    keywords: Optional[Set[str]] = None,
    logger: Optional[logging.Logger] = None,
) -> Any:
    """
    Lower the lark parse tree produced by the named front end into a ``Tree.Document`` (or, for a
    tree parsed from the ``expr`` start symbol, an ``Expr.Base``)

    :raises WDLAST.Error.ParseError: on the first structural violation
    """
    builder = _builders[front_end](
        source,
        keywords if keywords is not None else _grammar.keywords,
        logger or logging.getLogger("wdlast.builder"),
    )
    try:
        return builder.transform(concrete)
    except lark.exceptions.VisitError as exn:
        orig = exn.orig_exc
        if isinstance(orig, BadCharacterEncoding):
            raise Error.SyntaxError(
                orig.pos, "Bad escape sequence in string literal", front_end
            ) from None
        raise orig from None
