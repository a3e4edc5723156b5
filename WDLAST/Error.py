from typing import Optional, Union, Iterable, TypeVar, Dict, Any, Tuple

from ._error_util import SourcePosition


TVSourceNode = TypeVar("TVSourceNode", bound="SourceNode")


class SourceNode:
    """
    Base class for an AST node, recording the source position

    Nodes are read-only once constructed: each attribute may be assigned only once. Equality is
    structural, comparing node classes and attributes while ignoring source positions, so that two
    independent parses of the same WDL source compare equal.
    """

    pos: SourcePosition
    """
    :type: SourcePosition

    Source position for this AST node
    """

    _eq_exclude: Tuple[str, ...] = ("pos",)

    def __init__(self, pos: SourcePosition) -> None:
        self.pos = pos

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.__dict__:
            raise AttributeError(f"{self.__class__.__name__}.{name} is read-only")
        super().__setattr__(name, value)

    def _eq_fields(self) -> Dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if k not in self._eq_exclude}

    def __eq__(self, rhs: Any) -> bool:
        if not isinstance(rhs, SourceNode):
            return NotImplemented
        return type(self) is type(rhs) and self._eq_fields() == rhs._eq_fields()

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self._eq_fields().items())
        return f"{self.__class__.__name__}({fields})"

    def _repositioned(self: TVSourceNode, pos: SourcePosition) -> TVSourceNode:
        # copy of this node with another source position
        ans = object.__new__(self.__class__)
        ans.__dict__.update(self.__dict__)
        ans.__dict__["pos"] = pos
        return ans

    @property
    def children(self: TVSourceNode) -> Iterable[TVSourceNode]:
        """
        :type: Iterable[SourceNode]

        Yield all child nodes
        """
        return []


class ParseError(Exception):
    """
    Base class for any failure to produce a document from WDL source; ``kind`` distinguishes syntax
    errors, structural validation errors, and I/O errors
    """

    pos: SourcePosition
    """:type: SourcePosition"""

    kind: str = "parse"
    """:type: str"""

    def __init__(self, pos: SourcePosition, message: str) -> None:
        super().__init__(message)
        self.pos = pos

    @property
    def message(self) -> str:
        return str(self)


class SyntaxError(ParseError):
    """Failure to lex/parse a WDL document"""

    kind = "syntax"

    front_end: Optional[str]
    """:type: Optional[str]

    name of the grammar front end which rejected the source"""

    def __init__(self, pos: SourcePosition, msg: str, front_end: Optional[str] = None) -> None:
        super().__init__(pos, msg)
        self.front_end = front_end


class ReadError(ParseError):
    """Failure to read a WDL source file

    The ``__cause__`` attribute holds the underlying ``OSError`` or ``UnicodeDecodeError``."""

    kind = "io"

    def __init__(self, filename: str, message: str) -> None:
        super().__init__(
            SourcePosition(
                uri=filename,
                abspath=filename,
                line=0,
                column=0,
                end_line=0,
                end_column=0,
                offset=0,
                end_offset=0,
            ),
            f"unable to read {filename}: {message}",
        )


class ConfigError(ParseError):
    """The parser configuration (``wdlast.cfg`` or ``WDLAST__*`` environment) is unusable, so the
    document at ``pos.uri`` wasn't parsed

    The ``__cause__`` attribute holds the underlying ``WDLAST.config.ConfigInvalid``."""

    kind = "config"

    def __init__(self, uri: str, message: str) -> None:
        super().__init__(
            SourcePosition(
                uri=uri,
                abspath=uri,
                line=0,
                column=0,
                end_line=0,
                end_column=0,
                offset=0,
                end_offset=0,
            ),
            message,
        )


class ValidationError(ParseError):
    """
    Base class for a structural error: the source conforms to the grammar, but violates a
    well-formedness rule of the AST (duplicate definitions, missing initializers, misplaced version
    statement, etc.)
    """

    kind = "structural"

    node: Optional[SourceNode] = None
    """:type: Optional[SourceNode]"""

    def __init__(self, node: Union[SourceNode, SourcePosition], message: str) -> None:
        if isinstance(node, SourceNode):
            self.node = node
            super().__init__(node.pos, message)
        else:
            super().__init__(node, message)


class MissingVersion(ValidationError):
    kind = "missing_version"

    def __init__(self, pos: SourcePosition) -> None:
        super().__init__(pos, "document must begin with a version statement, e.g. version 1.1")


class MisplacedVersion(ValidationError):
    kind = "misplaced_version"

    def __init__(self, node: Union[SourceNode, SourcePosition]) -> None:
        super().__init__(node, "version statement must precede all other document elements")


class MultipleVersions(ValidationError):
    kind = "multiple_versions"

    def __init__(self, node: Union[SourceNode, SourcePosition]) -> None:
        super().__init__(node, "multiple version statements")


class UnsupportedVersion(ValidationError):
    kind = "unsupported_version"


class MultipleDefinitions(ValidationError):
    kind = "multiple_definitions"


class MissingInitializer(ValidationError):
    kind = "missing_initializer"

    def __init__(self, node: Union[SourceNode, SourcePosition], name: str) -> None:
        super().__init__(node, f"output declaration {name} must have an initializer expression")


class InvalidType(ValidationError):
    kind = "invalid_type"


class InvalidLiteral(ValidationError):
    kind = "invalid_literal"


class InvalidPlaceholder(ValidationError):
    kind = "invalid_placeholder"
