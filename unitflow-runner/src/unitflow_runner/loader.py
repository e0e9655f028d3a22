"""Resolution of test registration functions.

A registrar registers tests on a Suite. Run configs and the command line
name it as "module:attribute", where the attribute may be dotted to reach
a function on a class or nested object:

    my_tests.parser:register
    my_tests.parser:ParserTests.register

Example:
    register = load_registrar("my_tests.parser:register")
    register(suite)
"""

from __future__ import annotations

import inspect
import logging
import pkgutil
from typing import Callable

from unitflow_suite.suite import Suite

logger = logging.getLogger(__name__)

# Called once with the Suite to populate
Registrar = Callable[[Suite], None]


def load_registrar(registrar_path: str) -> Registrar:
    """Resolve a "module:attribute" path to a registration function.

    Args:
        registrar_path: Registrar location, e.g. "my_tests.parser:register".

    Returns:
        The registration function.

    Raises:
        ValueError: If the path is not in module:function form.
        ImportError: If the module cannot be imported.
        AttributeError: If the attribute cannot be found.
        TypeError: If the attribute is not a function taking a suite.
    """
    module_path, sep, attr_path = registrar_path.partition(":")
    if not sep:
        raise ValueError(f"Registrar '{registrar_path}' is not in 'module:function' form")
    if not module_path or not attr_path:
        raise ValueError(f"Registrar '{registrar_path}' needs both a module and a function")

    try:
        registrar = pkgutil.resolve_name(registrar_path)
    except ImportError as exc:
        raise ImportError(f"Failed to import registrar module '{module_path}': {exc}") from exc
    except AttributeError as exc:
        raise AttributeError(f"'{module_path}' has no attribute '{attr_path}'") from exc

    if not callable(registrar):
        raise TypeError(f"Registrar '{registrar_path}' is not callable")
    _check_accepts_suite(registrar_path, registrar)

    logger.debug("Resolved registrar %s", registrar_path)
    return registrar


def _check_accepts_suite(registrar_path: str, registrar: Callable[..., object]) -> None:
    try:
        signature = inspect.signature(registrar)
    except (TypeError, ValueError):
        # Some builtins expose no signature; let the call decide.
        return
    try:
        signature.bind(None)
    except TypeError as exc:
        raise TypeError(
            f"Registrar '{registrar_path}' must accept the suite as its only argument"
        ) from exc
