"""
Public API for :mod:`petrikit.Dynamics`.

Re-exported names
-----------------
- rate variants :class:`~petrikit.Net.rates.Constant`,
  :class:`~petrikit.Net.rates.TimeVarying`,
  :class:`~petrikit.Net.rates.StateVarying`,
  :class:`~petrikit.Net.rates.Parameter` and :func:`~petrikit.Net.rates.as_rate`
- :func:`~petrikit.Dynamics.vectorfield.vectorfield`,
  :func:`~petrikit.Dynamics.vectorfield.build_plan`,
  :func:`~petrikit.Dynamics.vectorfield.vectorfield_plan`,
  :func:`~petrikit.Dynamics.vectorfield.ode_rhs`
"""

from __future__ import annotations
from typing import List

from ..Net.rates import Constant, Parameter, Rate, StateVarying, TimeVarying, as_rate
from .vectorfield import EvaluationPlan, build_plan, ode_rhs, vectorfield, vectorfield_plan

__all__: List[str] = [
    "Rate",
    "Constant",
    "TimeVarying",
    "StateVarying",
    "Parameter",
    "as_rate",
    "EvaluationPlan",
    "build_plan",
    "vectorfield",
    "vectorfield_plan",
    "ode_rhs",
]
