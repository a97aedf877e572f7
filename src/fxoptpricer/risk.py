"""Finite-difference helpers.

Used where no closed-form derivative exists (barrier second-order Greeks,
American theta and cross Greeks) and by the tests to check the adjoints.
"""

from __future__ import annotations

from typing import Callable

__all__ = [
    "central_difference",
    "one_sided_difference",
    "second_difference",
]


def _step(x: float, shift: float, relative: bool) -> float:
    return shift * x if relative else shift


def central_difference(
    func: Callable[[float], float],
    x: float,
    shift: float,
    *,
    relative: bool = True,
) -> float:
    """``(f(x + h) - f(x - h)) / (2 h)``.

    Parameters
    ----------
    func : callable
        ``func(x) -> float``.
    x : float
        Point of evaluation.
    shift : float
        Bump size; relative to ``x`` unless ``relative=False``.
    """
    h = _step(x, shift, relative)
    return (func(x + h) - func(x - h)) / (2.0 * h)


def one_sided_difference(
    func: Callable[[float], float],
    x: float,
    shift: float,
    *,
    relative: bool = False,
) -> float:
    """Forward difference ``(f(x + h) - f(x)) / h``."""
    h = _step(x, shift, relative)
    return (func(x + h) - func(x)) / h


def second_difference(
    func: Callable[[float], float],
    x: float,
    shift: float,
    *,
    relative: bool = True,
) -> float:
    """``(f(x + h) - 2 f(x) + f(x - h)) / h**2``."""
    h = _step(x, shift, relative)
    return (func(x + h) - 2.0 * func(x) + func(x - h)) / (h * h)
