# pylint: skip-file
"""
Grammar front ends: each wraps a lark LALR parser for one rendition of the WDL grammar, taking
source text to a lark parse tree, or raising a located ``WDLAST.Error.SyntaxError``.
"""
import threading
from abc import ABC
from typing import Dict
import lark
from ._error_util import SourcePosition, SourceText
from . import Error, _grammar

# memoize Lark parsers constructed per grammar
_lark_cache: Dict[str, lark.Lark] = {}
_lark_lock = threading.Lock()


def _lark(name: str) -> lark.Lark:
    with _lark_lock:
        if name not in _lark_cache:
            _lark_cache[name] = lark.Lark(
                _grammar.grammars[name],
                start=["document", "expr"],
                parser="lalr",
                lexer="contextual",
                maybe_placeholders=False,
                propagate_positions=True,
            )
        return _lark_cache[name]


class FrontEnd(ABC):
    """
    A grammar front end, converting source text to a concrete parse tree for
    ``WDLAST._builder.build``
    """

    name: str
    """:type: str

    Registered front end name, also selecting the builder for its parse trees"""

    def parse(self, source: SourceText, start: str = "document") -> lark.Tree:
        """
        :param start: grammar start symbol, ``document`` or ``expr``
        :raises WDLAST.Error.SyntaxError:
        """
        txt = source.text
        try:
            return _lark(self.name).parse(txt + ("\n" if not txt.endswith("\n") else ""), start)
        except lark.exceptions.UnexpectedInput as exn:
            raise Error.SyntaxError(_error_position(source, exn), str(exn), self.name) from exn


class TreeFrontEnd(FrontEnd):
    """
    Grammar with expression productions layered by operator precedence, and a separate terminal
    for each numeric literal notation
    """

    name = "tree"


class FlatFrontEnd(FrontEnd):
    """
    Grammar with flat expressions (operands separated by binary operators) and a single numeric
    literal terminal
    """

    name = "flat"


front_ends: Dict[str, FrontEnd] = {fe.name: fe for fe in (TreeFrontEnd(), FlatFrontEnd())}


def get_front_end(name: str) -> FrontEnd:
    try:
        return front_ends[name]
    except KeyError:
        raise ValueError(
            "unknown parser front end {}; choices: {}".format(name, ", ".join(front_ends))
        ) from None


def _error_position(source: SourceText, exn: lark.exceptions.UnexpectedInput) -> SourcePosition:
    # span the offending token if lark reports one (at end of input, the token borrows the
    # position of the last one lexed); otherwise the offending character
    token = getattr(exn, "token", None)
    if isinstance(token, lark.Token) and token.start_pos is not None and token.end_pos is not None:
        start, end = token.start_pos, token.end_pos
        accepts = getattr(exn, "accepts", None) or getattr(exn, "expected", None) or set()
        if token.type != "$END" and token.type not in accepts:
            # text the contextual lexer rejected, relexed by lark with every terminal; that token
            # may run far past the offending text, so keep only its first word
            end = min(end, len(source.text))
            stop = start + 1
            while stop < end and not source.text[stop].isspace():
                stop += 1
            end = stop
        return source.span(start, end)
    line = getattr(exn, "line", None)
    column = getattr(exn, "column", None)
    if isinstance(line, int) and isinstance(column, int) and line > 0:
        start = source.char_pos(line, column)
        return source.span(start, start + 1)
    return source.span(len(source.text), len(source.text))
