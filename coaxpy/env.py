"""Environment-variable helpers.

These helpers centralize parsing/normalization of the environment variables
that control coaxpy at runtime:

- ``COAXPY_APPLY_KERNEL``: replay kernel of baked operators
  (``auto``, ``numba`` or ``numpy``)
- ``COAXPY_APPLY_TIMING``: log the duration of every baked apply
- ``COAXPY_REPLAY_CACHE_SIZE``: number of ``(nmax, kind)`` row tables the numpy
  replay keeps (read once at import)
- ``COAXPY_LOG_LEVEL``: default level used by :func:`coaxpy.log.configure`

Notes
-----
These are intentionally forgiving: invalid inputs fall back to defaults rather
than raising, to keep batch runs robust.
"""

from __future__ import annotations

import os

APPLY_KERNELS = ("numba", "numpy")

_SWITCHES = {
    "1": True,
    "true": True,
    "yes": True,
    "on": True,
    "0": False,
    "false": False,
    "no": False,
    "off": False,
}


def parse_bool_env(name: str, *, default: bool) -> bool:
    """Read an on/off switch such as ``COAXPY_APPLY_TIMING``.

    Unset, empty and unrecognized values all give ``default``.
    """

    return _SWITCHES.get(os.environ.get(name, "").strip().lower(), default)


def parse_int_env(name: str, *, default: int, minimum: int = 1) -> int:
    """Read a size such as ``COAXPY_REPLAY_CACHE_SIZE``, clipped to ``minimum``.

    Parameters
    ----------
    name:
        Environment variable name.
    default:
        Returned unclipped when the variable is unset or not an integer.
    minimum:
        Smallest value returned for a parsed integer.
    """

    try:
        value = int(os.environ[name])
    except (KeyError, ValueError):
        return default
    return max(minimum, value)


def normalize_apply_kernel(value: str) -> str:
    """Normalize the replay kernel selector.

    Parameters
    ----------
    value:
        A raw environment variable value.

    Returns
    -------
    str
        One of ``{'numba', 'numpy'}``; ``auto`` and unknown values map to
        ``numba``.
    """

    value = value.strip().lower()
    if value in APPLY_KERNELS:
        return value
    return "numba"


def apply_kernel_from_env() -> str:
    """Replay kernel selected by ``COAXPY_APPLY_KERNEL``."""

    return normalize_apply_kernel(os.environ.get("COAXPY_APPLY_KERNEL", "auto"))


def apply_timing_enabled() -> bool:
    """Whether ``COAXPY_APPLY_TIMING`` requests per-apply timing logs."""

    return parse_bool_env("COAXPY_APPLY_TIMING", default=False)
