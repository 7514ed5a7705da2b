# Dynamics/vectorfield.py
"""
Mass-action vectorfields of reaction nets.

For a net with input matrix ``In`` and stoichiometry ``D = Out - In``
(both ``transitions x species``) the vectorfield is

.. math::

    \\rho_t = k_t(u, t) \\prod_s u_s^{In_{ts}}, \\qquad
    \\dot u_s = \\sum_t \\rho_t D_{ts}.

Two evaluators are provided. :func:`vectorfield` walks the dense matrices
on every call; :func:`vectorfield_plan` compiles the sparse structure once
into an :class:`EvaluationPlan` and closes over it. Both perform the same
floating-point operations in the same order and therefore agree exactly.

Every evaluator has the signature ``f(du, u, p, t) -> du``:

* ``u``/``du`` are mappings keyed by species identifier or positional
  sequences (numpy arrays included) in species order; ``du=None``
  allocates a fresh container of the same kind as ``u``.
* ``p`` supplies the rates of transitions whose stored rate is a
  :class:`~petrikit.Net.rates.Parameter` (or of every transition when the
  net has no ``rate`` column): a mapping keyed by transition identifier
  (or ``Parameter.key``) or a positional sequence in transition order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Hashable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..Net.matrices import transition_matrices
from ..Net.petri import PetriNet
from ..Net.rates import Rate, as_rate
from ..exceptions import RateEvaluationError

LOGGER = logging.getLogger(__name__)

VectorField = Callable[[Any, Any, Any, float], Any]


# ----------------------------------------------------------------------
# Shared helpers
# ----------------------------------------------------------------------
def _parameter(p: Any, key: Hashable, position: int) -> Any:
    if p is None:
        raise RateEvaluationError(
            f"Transition {key!r} has no stored rate and no parameters were given"
        )
    try:
        if isinstance(p, Mapping):
            return p[key]
        return p[position]
    except (KeyError, IndexError):
        raise RateEvaluationError(f"No parameter for transition {key!r}") from None


def _rate_value(
    rate: Optional[Rate], tname: Hashable, position: int, u: Any, p: Any, t: float
) -> Any:
    """Rate constant of one transition at ``(u, t)``."""
    if rate is not None and not rate.is_placeholder:
        return rate.evaluate(u, t)
    key = tname if rate is None or rate.key is None else rate.key
    value = _parameter(p, key, position)
    if isinstance(value, Rate):
        return value.evaluate(u, t)
    if callable(value):
        return as_rate(value).evaluate(u, t)
    if value is None:
        raise RateEvaluationError(f"Parameter for transition {key!r} is None")
    return value


def _state(u: Any, snames: Sequence[Hashable]) -> Sequence[Any]:
    if isinstance(u, Mapping):
        try:
            return [u[name] for name in snames]
        except KeyError as exc:
            raise KeyError(f"State has no value for species {exc.args[0]!r}") from None
    return u


def _output(du: Any, u: Any, ns: int) -> Any:
    if du is not None:
        return du
    if isinstance(u, Mapping):
        return {}
    return np.zeros(ns)


def _store(du: Any, snames: Sequence[Hashable], j: int, value: Any) -> None:
    if isinstance(du, Mapping):
        du[snames[j]] = value
    else:
        du[j] = value


def _stored_rates(net: PetriNet) -> List[Optional[Rate]]:
    if net.has_subpart("rate"):
        return net.subparts("rate")
    return [None] * net.nt()


# ----------------------------------------------------------------------
# Interpreted evaluator
# ----------------------------------------------------------------------
def vectorfield(net: PetriNet) -> VectorField:
    """
    Interpreted mass-action vectorfield of ``net``.

    The transition matrices are computed once; each call loops over every
    ``(transition, species)`` entry.

    :param net: Any Petri-net variant.
    :type net: PetriNet
    :returns: ``f(du, u, p, t) -> du``.

    .. code-block:: python

        f = vectorfield(sir)
        f({}, {"S": 10.0, "I": 1.0, "R": 0.0}, None, 0.0)
        # {"S": -4.0, "I": 3.6, "R": 0.4}
    """
    tm = transition_matrices(net)
    inp = tm.input
    delta = tm.stoichiometry
    nt, ns = tm.shape
    snames = net.snames()
    tnames = net.tnames()
    rates = _stored_rates(net)

    def f(du: Any, u: Any, p: Any, t: float) -> Any:
        x = _state(u, snames)
        du = _output(du, u, ns)
        rho = [0.0] * nt
        for i in range(nt):
            r = _rate_value(rates[i], tnames[i], i, u, p, t)
            for j in range(ns):
                e = inp[i, j]
                if e != 0:
                    r *= x[j] ** int(e)
            rho[i] = r
        for j in range(ns):
            acc = 0.0
            for i in range(nt):
                d = delta[i, j]
                if d != 0:
                    acc += rho[i] * int(d)
            _store(du, snames, j, acc)
        return du

    return f


# ----------------------------------------------------------------------
# Compiled evaluator
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class EvaluationPlan:
    """
    Sparse evaluation schedule of a net.

    :param species: Species identifiers in id order.
    :param transitions: Transition identifiers in id order.
    :param rates: Stored rate of every transition (``None`` when absent).
    :param consumes: Per transition, ``(species position, exponent)`` pairs
        for every species with non-zero input stoichiometry, ascending.
    :param changes: Per species, ``(transition position, delta)`` pairs for
        every transition with non-zero net change, ascending.
    """

    species: Tuple[Hashable, ...]
    transitions: Tuple[Hashable, ...]
    rates: Tuple[Optional[Rate], ...]
    consumes: Tuple[Tuple[Tuple[int, int], ...], ...]
    changes: Tuple[Tuple[Tuple[int, int], ...], ...]

    @property
    def n_terms(self) -> int:
        """Number of non-zero entries the plan visits per call."""
        return sum(map(len, self.consumes)) + sum(map(len, self.changes))


def build_plan(net: PetriNet) -> EvaluationPlan:
    """
    Compile ``net`` into an :class:`EvaluationPlan`.

    :param net: Any Petri-net variant.
    :returns: Immutable plan; later edits to ``net`` do not affect it.
    """
    tm = transition_matrices(net)
    inp = tm.input
    delta = tm.stoichiometry
    consumes = tuple(
        tuple((int(j), int(inp[i, j])) for j in np.flatnonzero(inp[i]))
        for i in range(inp.shape[0])
    )
    changes = tuple(
        tuple((int(i), int(delta[i, j])) for i in np.flatnonzero(delta[:, j]))
        for j in range(delta.shape[1])
    )
    plan = EvaluationPlan(
        species=tuple(net.snames()),
        transitions=tuple(net.tnames()),
        rates=tuple(_stored_rates(net)),
        consumes=consumes,
        changes=changes,
    )
    LOGGER.debug(
        "Built evaluation plan: %d species, %d transitions, %d terms",
        len(plan.species),
        len(plan.transitions),
        plan.n_terms,
    )
    return plan


def vectorfield_plan(net: PetriNet) -> VectorField:
    """
    Mass-action vectorfield evaluated from a precompiled plan.

    Returns exactly the same values as :func:`vectorfield` while visiting
    only the non-zero stoichiometry entries.

    :param net: Any Petri-net variant.
    :returns: ``f(du, u, p, t) -> du``.
    """
    plan = build_plan(net)
    snames = plan.species
    tnames = plan.transitions
    rates = plan.rates
    consumes = plan.consumes
    changes = plan.changes
    nt = len(tnames)
    ns = len(snames)

    def f(du: Any, u: Any, p: Any, t: float) -> Any:
        x = _state(u, snames)
        du = _output(du, u, ns)
        rho = [0.0] * nt
        for i in range(nt):
            r = _rate_value(rates[i], tnames[i], i, u, p, t)
            for j, e in consumes[i]:
                r *= x[j] ** e
            rho[i] = r
        for j in range(ns):
            acc = 0.0
            for i, d in changes[j]:
                acc += rho[i] * d
            _store(du, snames, j, acc)
        return du

    return f


# ----------------------------------------------------------------------
# Integrator adapter
# ----------------------------------------------------------------------
def ode_rhs(net: PetriNet, p: Any = None, *, strategy: str = "plan") -> Callable:
    """
    Right-hand side ``fun(t, y) -> dy`` for ``scipy.integrate.solve_ivp``
    style integrators (positional state in species order).

    :param net: Any Petri-net variant.
    :param p: Parameters forwarded to every evaluation.
    :param strategy: ``"plan"`` (default) or ``"interpreted"``.
    :returns: Callable returning a fresh ``numpy.ndarray``.
    :raises ValueError: If ``strategy`` is unknown.

    .. code-block:: python

        from scipy.integrate import solve_ivp
        sol = solve_ivp(ode_rhs(sir), (0.0, 10.0), [10.0, 1.0, 0.0])
    """
    if strategy == "plan":
        f = vectorfield_plan(net)
    elif strategy == "interpreted":
        f = vectorfield(net)
    else:
        raise ValueError(f"Unknown strategy {strategy!r}; use 'plan' or 'interpreted'")
    ns = net.ns()

    def fun(t: float, y: Any) -> np.ndarray:
        return f(np.zeros(ns), np.asarray(y, dtype=float), p, t)

    return fun
