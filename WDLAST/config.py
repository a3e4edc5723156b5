"""
Parser options, layered from (highest priority first):

1. ``overrides`` given to :class:`Loader`, ``{"section": {"key": value}}``
2. environment variables ``WDLAST__SECTION__KEY``
3. a custom configuration file: the first extant one of the ``filenames`` given to
   :class:`Loader`; else the file named by environment variable ``WDLAST_CFG``; else
   ``wdlast.cfg`` in XDG_CONFIG_HOME or XDG_CONFIG_DIRS (usually ``~/.config/wdlast.cfg``)
4. the packaged ``config_templates/default.cfg``

Every option in :data:`OPTIONS` is checked as soon as the configuration is loaded (or overridden),
so a bad value fails fast with :class:`ConfigInvalid` instead of during some later parse.
"""
import os
import configparser
import logging
from typing import Optional, List, Dict, Any, Callable, Tuple
from xdg_base_dirs import xdg_config_dirs, xdg_config_home
from ._util import StructuredLogMessage as _
from . import _parser

DEFAULT_CFG = os.path.join(os.path.dirname(__file__), "config_templates", "default.cfg")


class ConfigMissing(Exception):
    pass


class ConfigInvalid(ValueError):
    pass


def _parse_bool(v: str) -> bool:
    v = v.lower()
    if v in ("t", "y", "1", "true", "yes", "on"):
        return True
    if v in ("f", "n", "0", "false", "no", "off"):
        return False
    raise ValueError(v)


def _parse_front_end(v: str) -> str:
    if v not in _parser.front_ends:
        raise ValueError(v)
    return v


OPTIONS: Dict[Tuple[str, str], Tuple[str, Callable[[str], Any]]] = {
    ("parser", "front_end"): ("one of: " + ", ".join(_parser.front_ends), _parse_front_end),
    ("parser", "check_keywords"): ("bool", _parse_bool),
}
"""
Known options: ``(section, key)`` to a description of the expected values and a parse function
"""


class Section:
    _parent: "Loader"
    _section: str

    def __init__(self, parent: "Loader", section: str):
        self._parent = parent
        self._section = section

    def __getitem__(self, key: str) -> str:
        return self._parent.get(self._section, key)

    def get_bool(self, key: str) -> bool:
        return self._parent.get_bool(self._section, key)


class Loader:
    """
    Layered parser configuration, as described in :mod:`WDLAST.config`. If ``filenames`` is an
    empty list, no custom configuration file is read.

    :raises ConfigInvalid: an option's value is unusable
    """

    _logger: logging.Logger
    _defaults: configparser.ConfigParser
    _file: configparser.ConfigParser
    _overrides: configparser.ConfigParser

    cfg_filename: Optional[str] = None
    """:type: Optional[str]

    custom configuration file that was read, if any"""

    def __init__(
        self,
        logger: logging.Logger,
        filenames: Optional[List[str]] = None,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        self._logger = logger
        self._defaults = configparser.ConfigParser()
        self._file = configparser.ConfigParser()
        self._overrides = configparser.ConfigParser()

        self._defaults.read(DEFAULT_CFG)

        if filenames is None:
            if "WDLAST_CFG" in os.environ:
                filenames = os.environ["WDLAST_CFG"].split(":")
            else:
                filenames = [
                    str(dn.joinpath("wdlast.cfg"))
                    for dn in reversed(xdg_config_dirs() + [xdg_config_home()])
                ]
        found = next((fn for fn in filenames if os.path.isfile(fn)), None)
        if found:
            self._logger.info(_("read configuration file", path=found))
            self._file.read(found)
            self.cfg_filename = found
        else:
            self._logger.debug(_("no configuration file found", searched=filenames))

        if overrides:
            self.override(overrides)
        else:
            self._check()

    def override(self, options: Dict[str, Dict[str, Any]]) -> None:
        """
        Apply ``{"section": {"key": value}}`` over the loaded configuration

        :raises ConfigInvalid: an option's value is unusable
        """
        previous = self._overrides
        self._overrides = configparser.ConfigParser()
        self._overrides.read_dict(previous)
        self._overrides.read_dict(
            {
                section: {
                    key: (str(v).lower() if isinstance(v, bool) else str(v))
                    for key, v in options[section].items()
                }
                for section in options
            }
        )
        try:
            self._check()
        except ConfigInvalid:
            self._overrides = previous
            raise
        self._logger.debug(_("applied configuration overrides", **options))

    def _lookup(self, section: str, key: str) -> Tuple[str, str]:
        # value & where it came from
        env_key = f"WDLAST__{section.upper()}__{key.upper()}"
        if self._overrides.has_option(section, key):
            return (self._overrides.get(section, key), "overrides")
        if env_key in os.environ:
            return (os.environ[env_key], "environment variable " + env_key)
        if self._file.has_option(section, key):
            return (self._file.get(section, key), str(self.cfg_filename))
        if self._defaults.has_option(section, key):
            return (self._defaults.get(section, key), DEFAULT_CFG)
        if not self.has_section(section):
            raise ConfigMissing(f"missing config section [{section}]")
        raise ConfigMissing(f"missing config option [{section}] {key}")

    def _check(self) -> None:
        for (section, key), (expected, parse) in OPTIONS.items():
            try:
                value, origin = self._lookup(section, key)
            except ConfigMissing as exn:
                raise ConfigInvalid(str(exn)) from None
            try:
                parse(value.strip())
            except ValueError:
                raise ConfigInvalid(
                    f"configuration option [{section}] {key} should be {expected}, not {value!r}"
                    f" (from {origin})"
                ) from None

    def get(self, section: str, key: str) -> str:
        return self._lookup(str(section).lower(), str(key).lower())[0].strip()

    def get_bool(self, section: str, key: str) -> bool:
        value = self.get(section, key)
        try:
            return _parse_bool(value)
        except ValueError:
            raise ConfigInvalid(
                f"configuration option [{section}] {key} should be bool, not {value!r}"
            ) from None

    def has_section(self, section: str) -> bool:
        return any(
            layer.has_section(section) for layer in (self._defaults, self._file, self._overrides)
        )

    def has_option(self, section: str, key: str) -> bool:
        try:
            self.get(section, key)
            return True
        except ConfigMissing:
            return False

    def __getitem__(self, section: str) -> Section:
        return Section(self, section)
