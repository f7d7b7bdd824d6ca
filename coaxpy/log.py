"""Console logging for scripts using coaxpy.

Modules log through ``logging.getLogger`` of their own module name and the
package only installs a :class:`logging.NullHandler`; :func:`configure` is the
opt-in console setup.
"""

from __future__ import annotations

import logging
import os

_FORMAT = "%(levelname)s (%(name)s): %(message)s"


def configure(level: int | str | None = None) -> logging.Logger:
    """Attach a console handler to the ``coaxpy`` logger.

    Parameters
    ----------
    level:
        Logging level (name or number). Defaults to ``COAXPY_LOG_LEVEL`` or
        ``WARNING`` when the variable is unset or unknown.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """

    if level is None:
        level = os.environ.get("COAXPY_LOG_LEVEL", "WARNING")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        level = resolved if isinstance(resolved, int) else logging.WARNING

    logger = logging.getLogger("coaxpy")
    logger.setLevel(level)
    if not any(getattr(h, "_coaxpy", False) for h in logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(_FORMAT))
        console._coaxpy = True
        logger.addHandler(console)
    return logger
