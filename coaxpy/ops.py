"""Protocol and shape helpers shared by all expansion transforms.

Both recurrence engines (:class:`coaxpy.coaxial.CoaxialTranslation`,
:class:`coaxpy.rotation.RotationCoefficients`) and the baked operators of
:mod:`coaxpy.baked` map an expansion vector or matrix onto another one of the
same shape. Rows are (n, m) terms in global flat order, columns are
independent right-hand sides; a vector is the one-column case.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np


class ExpansionTransform(Protocol):
    """Protocol for linear maps acting on expansion coefficients."""

    def apply(self, x: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
        """Compute the transformed expansion.

        Parameters
        ----------
        x:
            Input of shape ``(rows,)`` or ``(rows, columns)`` with
            ``rows == (nmax + 1)**2``.
        out:
            Optional output array of the same shape as ``x``. It is zeroed,
            filled and returned.

        Returns
        -------
        numpy.ndarray
            The transformed expansion, same shape as ``x``.
        """


def as_columns(x: np.ndarray) -> tuple[np.ndarray, tuple[int, ...]]:
    """Return ``x`` as a contiguous complex 2D array and its original shape.

    Raises
    ------
    ValueError
        If ``x`` has more than two dimensions.
    """

    x = np.asarray(x)
    if x.ndim == 0 or x.ndim > 2:
        raise ValueError(
            f"Expansions are vectors or matrices, got an array with {x.ndim} dimensions."
        )
    shape = x.shape
    columns = np.ascontiguousarray(x.reshape((shape[0], -1)), dtype=complex)
    return columns, shape


def deliver(
    result: np.ndarray, shape: tuple[int, ...], out: np.ndarray | None
) -> np.ndarray:
    """Reshape ``result`` to ``shape`` and copy it into ``out`` if given.

    Raises
    ------
    ValueError
        If ``out`` does not have the shape of the input.
    """

    result = result.reshape(shape)
    if out is None:
        return result
    if out.shape != shape:
        raise ValueError(
            f"The output has shape {out.shape} but the input has shape {shape}."
        )
    out[...] = 0
    out += result
    return out


def check_out(out: np.ndarray | None, shape: tuple[int, ...]) -> None:
    """Fail fast on a mismatched output before any work is done.

    Raises
    ------
    ValueError
        If ``out`` does not have the shape of the input or cannot hold complex
        values.
    """

    if out is None:
        return
    if out.shape != shape:
        raise ValueError(
            f"The output has shape {out.shape} but the input has shape {shape}."
        )
    if not np.can_cast(np.complex128, out.dtype):
        raise ValueError(
            f"The output needs a complex dtype to hold the result, got {out.dtype}."
        )
