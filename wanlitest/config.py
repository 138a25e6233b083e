"""Access to wanlitest configuration values.

Values come from four layers, later ones winning: the process environment, the defaults in
configdef, the user's wanlitestrc Python file and overrides given on the command line.
"""

import contextlib
import functools
import importlib.machinery
import importlib.util
import logging
import os
import sys
from types import ModuleType
from typing import Any, Optional

from wanlitest import configdef


CONFIG_FILE = 'wanlitestrc'

# The loaded wanlitestrc, or an empty module if there is none
rc_module = None  # type: Optional[ModuleType]

# Values set with --set
overrides = {}  # type: dict[str, Any]


def xdg_dir(var: str, *home_parts: str) -> str:
    """Return an XDG base directory, defaulting to its standard location under $HOME."""
    if var in os.environ:
        return os.environ[var]
    if 'HOME' in os.environ:
        return os.path.join(os.environ['HOME'], *home_parts)
    return '.'


def config_dir() -> str:
    return xdg_dir('XDG_CONFIG_HOME', '.config')


def persistent_dir() -> str:
    """Return the base directory for data kept between runs, like the results archive."""
    return xdg_dir('XDG_DATA_HOME', '.local', 'share')


@contextlib.contextmanager
def override_var(obj, name: str, value: Any):
    """Temporarily set an attribute, yielding its previous value."""
    previous = getattr(obj, name)
    setattr(obj, name, value)
    try:
        yield previous
    finally:
        setattr(obj, name, previous)


def load_rc(path: str) -> ModuleType:
    """Execute a wanlitestrc file and return it as a module."""
    loader = importlib.machinery.SourceFileLoader(CONFIG_FILE, path)
    spec = importlib.util.spec_from_loader(CONFIG_FILE, loader)
    module = importlib.util.module_from_spec(spec)
    # A cached bytecode file next to the rc file could hide later edits
    with override_var(sys, 'dont_write_bytecode', True):
        loader.exec_module(module)
    return module


def config() -> ModuleType:
    """Return the user's configuration module, loading it on first use."""
    global rc_module
    if rc_module is None:
        path = os.path.join(config_dir(), CONFIG_FILE)
        if os.access(path, os.R_OK):
            logging.debug('Loading configuration from %s', path)
            rc_module = load_rc(path)
        else:
            logging.info('Configuration file %s not found', path)
            rc_module = ModuleType('empty')
    return rc_module


def environ() -> dict[str, Any]:
    """Return every variable visible to the configuration, merged in priority order.

    Environment variables come first so that a stray one can never replace a configured value.
    XDG_DATA_HOME and XDG_CONFIG_HOME are always present for use in expansions.
    """
    env = {**os.environ, **configdef.__dict__, **config().__dict__, **overrides}
    env.setdefault('XDG_DATA_HOME', persistent_dir())
    env.setdefault('XDG_CONFIG_HOME', config_dir())
    return env


def expandstr(template: str) -> str:
    """Fill in {NAME} references in a string from the configuration environment."""
    return template.format(**environ())


@functools.lru_cache(maxsize=None)
def get(var: str) -> Any:
    """Return a configuration value as it was set."""
    return environ()[var]


@functools.lru_cache(maxsize=None)
def expand(var: str) -> str:
    """Return a string configuration value with its {NAME} references filled in."""
    return expandstr(get(var))


def add_override(name: str, value: Any):
    """Set a value that takes precedence over all other configuration.

    Cached lookups are discarded so the new value is seen immediately.
    """
    overrides[name] = value
    get.cache_clear()
    expand.cache_clear()
