"""
``wdlast`` parses documents in the `Workflow Description Language (WDL) <http://openwdl.org/>`_
(versions 1.0, 1.1 and 1.2) into one canonical abstract syntax tree, for type-checkers, evaluators,
formatters and linters to consume. Simply ``import WDLAST`` and call :func:`parse_source` or
:func:`parse_file`.

Two interchangeable grammar front ends are available (see :func:`front_ends`); whichever runs, the
resulting documents are equal. Imports are recorded as written, not loaded, and no type checking
is performed.
"""
import os
import logging
import threading
from typing import List, Optional
from . import _util, _parser, _builder, _grammar, Error, Type, Expr, Meta, Tree, Walker
from ._error_util import SourceText
from .config import Loader, ConfigInvalid
from .Tree import (
    Version,
    Import,
    Decl,
    StructTypeDef,
    Command,
    Task,
    Call,
    Scatter,
    Conditional,
    Workflow,
    Document,
    DocumentElement,
    WorkflowNode,
    WorkflowSection,
)

SourcePosition = Error.SourcePosition
SourceNode = Error.SourceNode

_logger = logging.getLogger("wdlast")

# configuration loaded from files & environment on first use, for parses not given one
_default_cfg: Optional[Loader] = None
_default_cfg_lock = threading.Lock()


def _default_config(uri: str) -> Loader:
    global _default_cfg
    with _default_cfg_lock:
        if _default_cfg is None:
            try:
                _default_cfg = Loader(_logger.getChild("config"))
            except ConfigInvalid as exn:
                raise Error.ConfigError(uri, str(exn)) from exn
        return _default_cfg


def _parse(
    source_text: str,
    start: str,
    uri: str,
    abspath: Optional[str],
    front_end: Optional[str],
    cfg: Optional[Loader],
):
    if cfg is None:
        cfg = _default_config(uri)
    fe = _parser.get_front_end(front_end or cfg["parser"]["front_end"])
    keywords = _grammar.keywords if cfg["parser"].get_bool("check_keywords") else set()
    source = SourceText(source_text, uri, abspath if abspath is not None else uri)
    ans = _builder.build(
        fe.name, fe.parse(source, start), source, keywords, _logger.getChild("builder")
    )
    _logger.debug(
        _util.StructuredLogMessage(
            "parse",
            front_end=fe.name,
            uri=uri,
            start=start,
            elements=len(ans.body) if isinstance(ans, Document) else None,
        )
    )
    return ans


def parse_source(
    source_text: str,
    uri: str = "(buffer)",
    abspath: Optional[str] = None,
    front_end: Optional[str] = None,
    cfg: Optional[Loader] = None,
) -> Document:
    """
    Parse WDL document text into an abstract syntax tree. Doesn't load imported documents nor
    typecheck the AST.

    :param uri: filename/URI for source positions & error reporting (not otherwise used)
    :param abspath: absolute filename/URI for source positions (default: same as ``uri``)
    :param front_end: grammar front end name (default: from configuration option
                      ``[parser] front_end``, which defaults to ``tree``)
    :param cfg: configuration :class:`~WDLAST.config.Loader` (default: load configuration files
                & environment as described there)
    :raises WDLAST.Error.ParseError: a ``SyntaxError`` or a ``ValidationError`` subclass; or
                                    ``ConfigError`` if ``cfg`` is omitted and the configuration
                                    files or environment are unusable
    :raises ValueError: unknown ``front_end``
    """
    return _parse(source_text, "document", uri, abspath, front_end, cfg)


def parse_file(
    filename: str, front_end: Optional[str] = None, cfg: Optional[Loader] = None
) -> Document:
    """
    Read a WDL document from the filesystem and parse it with :func:`parse_source`

    :raises WDLAST.Error.ReadError: the file couldn't be read or isn't UTF-8 text
    """
    try:
        with open(filename, "r", encoding="utf-8", newline="") as infile:
            source_text = infile.read()
    except (OSError, UnicodeDecodeError) as exn:
        raise Error.ReadError(filename, str(exn)) from exn
    return parse_source(
        source_text,
        uri=filename,
        abspath=os.path.abspath(filename),
        front_end=front_end,
        cfg=cfg,
    )


def parse_expr(
    source_text: str, front_end: Optional[str] = None, cfg: Optional[Loader] = None
) -> Expr.Base:
    """
    Parse an isolated WDL expression text into an abstract syntax tree
    """
    return _parse(source_text, "expr", "(buffer)", None, front_end, cfg)


def front_ends() -> List[str]:
    """
    Names of the available grammar front ends
    """
    return list(_parser.front_ends)
