# pyre-strict
# misc utility functions...

import sys
import os
import json
import logging
from contextlib import contextmanager
from typing import Tuple, Dict, Iterator, List, Optional, Any
from pythonjsonlogger import jsonlogger

__all__: List[str] = []


def export(obj) -> str:  # pyre-ignore
    __all__.append(obj.__name__)
    return obj


@export
def strip_leading_whitespace(parts: List[Any]) -> Tuple[Optional[int], List[Any]]:
    # Given the parts of a multi-line command template (str interleaved with placeholders), drop
    # the first line if it's all whitespace, and likewise the last line. Then determine the largest
    # w such that each non-blank line begins with at least w whitespace characters (a line that
    # starts with a placeholder has no leading whitespace beyond what precedes it). Return w and
    # the parts with w characters removed from the beginning of each non-blank line; or, if the
    # leading whitespace mixes tabs & spaces, return None and strip nothing more.
    lines: List[List[Any]] = [[]]
    for part in parts:
        if isinstance(part, str):
            pieces = part.split("\n")
            lines[-1].append(pieces[0])
            lines.extend([piece] for piece in pieces[1:])
        else:
            lines[-1].append(part)

    if len(lines) > 1 and _indentation(lines[0]) is None:
        lines = lines[1:]
    if lines and _indentation(lines[-1]) is None:
        lines = lines[:-1]

    indents = [ind for ind in (_indentation(line) for line in lines) if ind is not None]
    to_strip: Optional[int] = min((len(ind) for ind in indents), default=0)
    if any(" " in ind for ind in indents) and any("\t" in ind for ind in indents):
        to_strip = None
    elif to_strip:
        lines = [_dedent(line, to_strip) if _indentation(line) is not None else line for line in lines]

    ans: List[Any] = []
    for i, line in enumerate(lines):
        for piece in (["\n"] if i else []) + line:
            if isinstance(piece, str):
                if not piece:
                    continue
                if ans and isinstance(ans[-1], str):
                    ans[-1] += piece
                    continue
            ans.append(piece)
    return (to_strip, ans)


def _indentation(line: List[Any]) -> Optional[str]:
    # leading whitespace of the line, or None if the line is blank
    ws = ""
    for piece in line:
        if not isinstance(piece, str):
            return ws
        if piece.strip():
            return ws + piece[: len(piece) - len(piece.lstrip(" \t"))]
        ws += piece
    return None


def _dedent(line: List[Any], n: int) -> List[Any]:
    ans = []
    for piece in line:
        if n and isinstance(piece, str):
            k = min(n, len(piece))
            piece = piece[k:]
            n -= k
        ans.append(piece)
    return ans


@export
class StructuredLogMessage:
    message: str
    kwargs: Dict[str, Any]

    # from https://docs.python.org/3.8/howto/logging-cookbook.html#implementing-structured-logging
    def __init__(self, _message: str, **kwargs) -> None:  # pyre-fixme
        self.message = _message
        self.kwargs = kwargs

    def __str__(self) -> str:
        return (
            f"{self.message} :: {', '.join(k+ ': ' + json.dumps(v) for k,v in self.kwargs.items())}"
        )


@export
class StructuredLogMessageJSONFormatter(jsonlogger.JsonFormatter):
    "JSON formatter for StructuredLogMessages"

    def format(self, rec: logging.LogRecord) -> str:
        if isinstance(rec.msg, StructuredLogMessage):
            ans = {"level": rec.levelname, "message": rec.msg.message}
            for k, v in rec.msg.kwargs.items():
                if k not in ans:
                    ans[k] = v
            rec.msg = ans
        return super().format(rec)

    def add_fields(
        self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = round(record.created, 3)
        log_record["source"] = record.name
        log_record["level"] = record.levelname
        log_record["levelno"] = record.levelno


LOGGING_FORMAT = "%(asctime)s.%(msecs)03d %(name)s %(levelname)s %(message)s"
COLORED_LOGGING_FORMAT = "%(asctime)s.%(msecs)03d %(name)s %(message)s"  # colors obviate levelname
__all__.append("LOGGING_FORMAT")


@export
@contextmanager
def configure_logger(
    force_tty: bool = False, json: bool = False, stream: Any = None, level: int = logging.INFO
) -> Iterator[logging.Logger]:
    """
    contextmanager attaching a stderr (or ``stream``) handler to the ``wdlast`` logger, writing
    JSON lines if ``json`` is set, colored output if stderr isatty (or ``force_tty``), or plain
    ``LOGGING_FORMAT`` lines otherwise; yields the logger and removes the handler on exit
    """
    logger = logging.getLogger("wdlast")
    prev_level = logger.level
    logger.setLevel(level)
    stream = stream if stream is not None else sys.stderr
    tty = force_tty or (stream.isatty() and "NO_COLOR" not in os.environ)

    if json:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredLogMessageJSONFormatter())
    elif tty:
        import coloredlogs  # delayed heavy import

        level_styles = dict(coloredlogs.DEFAULT_LEVEL_STYLES)
        level_styles["debug"]["color"] = 242
        level_styles["error"]["bold"] = True
        level_styles["warning"]["bold"] = True
        level_styles["info"] = {}
        field_styles = dict(coloredlogs.DEFAULT_FIELD_STYLES)
        field_styles["asctime"] = {"color": "blue"}
        field_styles["name"] = {"color": "magenta"}
        handler = logging.StreamHandler(stream)
        handler.setFormatter(
            coloredlogs.ColoredFormatter(
                fmt=COLORED_LOGGING_FORMAT, level_styles=level_styles, field_styles=field_styles
            )
        )
    else:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(LOGGING_FORMAT))

    logger.addHandler(handler)
    try:
        yield logger
    finally:
        logger.removeHandler(handler)
        logger.setLevel(prev_level)
