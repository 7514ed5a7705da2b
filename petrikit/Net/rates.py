# Net/rates.py
"""
Transition rates as explicit tagged values.

A rate is one of

* :class:`Constant` – a fixed number,
* :class:`TimeVarying` – ``fn(t)``,
* :class:`StateVarying` – ``fn(u, t)``,
* :class:`Parameter` – a placeholder filled from the parameter argument
  ``p`` of the vectorfield at evaluation time.

:func:`as_rate` picks the variant once, when the value is stored, so the
vectorfield never has to guess how to call a function.
"""

from __future__ import annotations

import inspect
import numbers
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional

from ..exceptions import RateEvaluationError


class Rate(ABC):
    """Common interface of all rate variants."""

    #: whether the value has to be looked up in the parameter argument
    is_placeholder: bool = False

    @abstractmethod
    def evaluate(self, u: Any, t: float) -> float:
        """
        Instantaneous rate constant at state ``u`` and time ``t``.

        :raises RateEvaluationError: If the rate cannot be evaluated.
        """
        raise NotImplementedError


@dataclass(frozen=True)
class Constant(Rate):
    """
    Time- and state-independent rate.

    :param value: The rate constant.
    :type value: float
    """

    value: float

    def evaluate(self, u: Any, t: float) -> float:
        return self.value

    def __repr__(self) -> str:
        return f"Constant({self.value!r})"


@dataclass(frozen=True)
class TimeVarying(Rate):
    """
    Rate given as a function of time only.

    :param fn: ``fn(t) -> float``.
    :type fn: Callable[[float], float]
    """

    fn: Callable[[float], float]

    def evaluate(self, u: Any, t: float) -> float:
        try:
            return self.fn(t)
        except Exception as exc:
            raise RateEvaluationError(
                f"Time-varying rate {self.fn!r} failed at t={t!r}: {exc}"
            ) from exc


@dataclass(frozen=True)
class StateVarying(Rate):
    """
    Rate given as a function of state and time.

    :param fn: ``fn(u, t) -> float``; ``u`` is the state exactly as passed
        to the vectorfield.
    :type fn: Callable[[Any, float], float]
    """

    fn: Callable[[Any, float], float]

    def evaluate(self, u: Any, t: float) -> float:
        try:
            return self.fn(u, t)
        except Exception as exc:
            raise RateEvaluationError(
                f"State-varying rate {self.fn!r} failed at t={t!r}: {exc}"
            ) from exc


@dataclass(frozen=True)
class Parameter(Rate):
    """
    Placeholder resolved from the vectorfield's parameter argument.

    :param key: Lookup key in ``p``; ``None`` means "the transition's own
        identifier".
    :type key: Optional[Hashable]
    """

    key: Optional[Hashable] = None
    is_placeholder = True

    def evaluate(self, u: Any, t: float) -> float:
        raise RateEvaluationError(
            f"Parameter({self.key!r}) has no value; pass it through 'p'"
        )


def _positional_arity(fn: Callable[..., Any]) -> int:
    """Number of positional arguments ``fn`` can be called with (1 or 2)."""
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError) as exc:
        raise RateEvaluationError(
            f"Cannot inspect the signature of {fn!r}; wrap it in TimeVarying "
            "or StateVarying explicitly"
        ) from exc

    positional = (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    )
    params = list(sig.parameters.values())
    required = sum(
        1 for p in params if p.kind in positional and p.default is p.empty
    )
    accepted = sum(1 for p in params if p.kind in positional)
    variadic = any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params)

    if required == 2:
        return 2
    if required == 1 or (required == 0 and (accepted >= 1 or variadic)):
        return 1
    raise RateEvaluationError(
        f"Rate function {fn!r} must accept (t) or (u, t); "
        f"it requires {required} positional argument(s)"
    )


def as_rate(value: Any) -> Rate:
    """
    Classify ``value`` into a :class:`Rate` variant.

    * :class:`Rate` instances are returned unchanged.
    * ``None`` becomes :class:`Parameter` (resolved from ``p``).
    * Real numbers become :class:`Constant`.
    * Callables become :class:`TimeVarying` when they take one required
      positional argument and :class:`StateVarying` when they take two.

    :param value: Raw rate value.
    :type value: Any
    :returns: Tagged rate.
    :rtype: Rate
    :raises RateEvaluationError: If ``value`` fits none of the variants.

    .. code-block:: python

        as_rate(0.3)                       # Constant(0.3)
        as_rate(lambda t: 0.1 * t)         # TimeVarying
        as_rate(lambda u, t: 0.1 * u[1])   # StateVarying
    """
    if isinstance(value, Rate):
        return value
    if value is None:
        return Parameter()
    if isinstance(value, numbers.Real):
        return Constant(value)
    if callable(value):
        if _positional_arity(value) == 2:
            return StateVarying(value)
        return TimeVarying(value)
    raise RateEvaluationError(f"Cannot interpret {value!r} as a rate")
