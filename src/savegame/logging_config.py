from __future__ import annotations

import logging
import sys

PACKAGE_LOGGER = "savegame"

_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def level_for(verbosity: int = 0, debug: bool = False) -> int:
    """Map CLI flags to a level: WARNING by default, -v for INFO, -vv or --debug for DEBUG."""
    if debug or verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(verbosity: int = 0, debug: bool = False) -> logging.Logger:
    """Send ``savegame.*`` records to stderr at the level chosen by the CLI flags.

    Only the package logger is touched, so an embedding application keeps
    control of the root logger.  Calling this again replaces the handler
    installed by the previous call instead of stacking another one.
    """
    pkg = logging.getLogger(PACKAGE_LOGGER)
    pkg.setLevel(level_for(verbosity, debug))
    for h in list(pkg.handlers):
        if getattr(h, "_savegame_cli", False):
            pkg.removeHandler(h)
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._savegame_cli = True  # type: ignore[attr-defined]
    pkg.addHandler(handler)
    return pkg
