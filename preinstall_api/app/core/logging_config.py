"""
Logging setup for the registration API.

Modules log through ``logging.getLogger(__name__)``.  ``setup_logging``
gives the root logger a console handler and, when ``LOG_FILE`` is set,
a file handler, both sharing one format.  Uvicorn's loggers are then
emptied and left to propagate, so access lines end up in the same
place as application messages.

Handlers installed here carry a marker attribute.  A repeated call
(for example one ``create_app`` per test) only updates the level; it
never stacks a second set of handlers and never touches handlers that
someone else, such as pytest, attached.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from preinstall_api.app.core.config import resolve_project_path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

HANDLER_MARKER = "_preinstall_api_handler"

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def parse_level(level: Union[str, int]) -> int:
    """Return the numeric level for ``level``; unknown names mean ``INFO``."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def installed_handlers(logger: logging.Logger):
    return [h for h in logger.handlers if getattr(h, HANDLER_MARKER, False)]


def route_to_root(names: Iterable[str] = UVICORN_LOGGERS) -> None:
    """Remove the handlers of ``names`` and let their records propagate."""
    for name in names:
        named = logging.getLogger(name)
        for handler in list(named.handlers):
            named.removeHandler(handler)
        named.propagate = True


def _build_handlers(logfile: Optional[str]):
    handlers = [logging.StreamHandler()]
    if logfile:
        log_path = Path(resolve_project_path(logfile))
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    return handlers


def setup_logging(
    level: Union[str, int] = "INFO",
    logfile: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> logging.Logger:
    """Configure ``logger`` (the root logger by default) and return it.

    Parameters
    ----------
    level : str or int
        Level name such as ``"debug"`` or a numeric level.  Applied on
        every call.
    logfile : Optional[str]
        File to append records to.  Relative paths are anchored at the
        project root and missing parent directories are created.  Only
        honoured on the first call for a given logger.
    logger : Optional[logging.Logger]
        Logger to configure instead of the root logger.  Uvicorn's
        loggers are only rerouted when the root logger is configured.
    """
    target = logger if logger is not None else logging.getLogger()
    target.setLevel(parse_level(level))
    if installed_handlers(target):
        return target

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _build_handlers(logfile):
        handler.setFormatter(formatter)
        setattr(handler, HANDLER_MARKER, True)
        target.addHandler(handler)

    if target is logging.getLogger():
        route_to_root()
    return target
