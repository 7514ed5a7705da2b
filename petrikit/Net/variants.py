# Net/variants.py
"""
Constructors and conversions for the Petri-net variants.

Every constructor returns a brand new :class:`PetriNet`; nothing is
returned when construction fails, so a failed build never leaves a
half-populated net behind.

Transition specs follow the ``inputs -> outputs`` convention, written as
a Python pair ``(ins, outs)`` where each side is a single species or a
tuple/list of species (repeats encode stoichiometry):

.. code-block:: python

    sir = petri_net(3, ((1, 2), (2, 2)), (2, 3))

    sir = labelled_petri_net(
        ["S", "I", "R"],
        ("inf", (("S", "I"), ("I", "I"))),
        ("rec", ("I", "R")),
    )

    sir = labelled_reaction_net(
        {"S": 990, "I": 10, "R": 0},
        (("inf", 0.3 / 1000), (("S", "I"), ("I", "I"))),
        (("rec", 0.2), ("I", "R")),
    )
"""

from __future__ import annotations

import logging
import numbers
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Hashable,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from .petri import (
    LABELLED,
    LABELLED_REACTION,
    PETRI,
    PROPERTY,
    REACTION,
    PetriNet,
    petri_schema,
)
from ..exceptions import MissingAttributeError, UnknownNameError

LOGGER = logging.getLogger(__name__)

TransitionSpec = Tuple[Any, Any]
AttrValues = Union[Mapping[int, Any], Sequence[Any]]


# ---------------------------------------------------------------------------
# Transition-pair helpers
# ---------------------------------------------------------------------------


def _transition_items(transitions: Tuple[Any, ...]) -> List[Tuple[Any, Any]]:
    """Accept either ``*pairs`` or a single mapping ``{head: (ins, outs)}``."""
    if len(transitions) == 1 and isinstance(transitions[0], Mapping):
        return list(transitions[0].items())
    items = []
    for spec in transitions:
        if not isinstance(spec, (tuple, list)) or len(spec) != 2:
            raise ValueError(f"Transition spec must be a pair, got {spec!r}")
        items.append((spec[0], spec[1]))
    return items


def _side(value: Any, resolve: Callable[[Any], int], known: Callable[[Any], bool]) -> List[int]:
    """
    Expand one side of a transition into species ids.

    A value that is itself a known species (this covers tuple-valued names)
    counts once; other tuples and lists are multisets.
    """
    if known(value):
        return [resolve(value)]
    if isinstance(value, (tuple, list)):
        return [resolve(v) for v in value]
    return [resolve(value)]


def _add_arcs(net: PetriNet, t: int, ins: List[int], outs: List[int]) -> None:
    net.add_inputs(len(ins), t, ins)
    net.add_outputs(len(outs), t, outs)


def _split_io(spec: Any) -> Tuple[Any, Any]:
    if not isinstance(spec, (tuple, list)) or len(spec) != 2:
        raise ValueError(f"Expected an (inputs, outputs) pair, got {spec!r}")
    return spec[0], spec[1]


def _index_resolver(n: int) -> Tuple[Callable[[Any], int], Callable[[Any], bool]]:
    def resolve(s: Any) -> int:
        if isinstance(s, bool) or not isinstance(s, numbers.Integral) or not 1 <= s <= n:
            raise IndexError(f"Species {s!r} is not in 1..{n}")
        return int(s)

    return resolve, lambda s: False


def _name_resolver(names: Sequence[Hashable]) -> Tuple[Callable[[Any], int], Callable[[Any], bool]]:
    # build-once name map for this construction; first occurrence wins
    index: Dict[Hashable, int] = {}
    for k, name in enumerate(names, start=1):
        index.setdefault(name, k)

    def known(s: Any) -> bool:
        try:
            return s in index
        except TypeError:
            return False

    def resolve(s: Any) -> int:
        if not known(s):
            raise UnknownNameError(f"Transition references unknown species {s!r}")
        return index[s]

    return resolve, known


def _as_list(names: Any) -> List[Any]:
    if isinstance(names, Iterable) and not isinstance(names, (str, bytes)):
        return list(names)
    return [names]


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------


def petri_net(n: int, *transitions: TransitionSpec) -> PetriNet:
    """
    Plain Petri net with ``n`` species and the given transitions.

    :param n: Number of species.
    :type n: int
    :param transitions: ``(ins, outs)`` pairs of 1-based species ids.
    :returns: New plain net; transition ``k`` is the ``k``-th pair.
    :rtype: PetriNet
    :raises IndexError: If a transition references a species outside ``1..n``.
    """
    net = PetriNet(PETRI)
    net.add_species(int(n))
    resolve, known = _index_resolver(int(n))
    for spec in _transition_items(transitions):
        ins, outs = _split_io(spec)
        t = net.add_transition()
        _add_arcs(net, t, _side(ins, resolve, known), _side(outs, resolve, known))
    return net


def labelled_petri_net(names: Any, *transitions: Any) -> PetriNet:
    """
    Petri net with species and transition names.

    :param names: Species names in id order (a single name is accepted).
    :param transitions: ``(tname, (ins, outs))`` pairs, or one mapping
        ``{tname: (ins, outs)}``; sides reference species by name.
    :returns: New labelled net.
    :rtype: PetriNet
    :raises UnknownNameError: If a transition references an absent name.
    """
    names = _as_list(names)
    net = PetriNet(LABELLED)
    net.add_species(len(names), sname=names)
    resolve, known = _name_resolver(names)
    for tname, spec in _transition_items(transitions):
        ins, outs = _split_io(spec)
        t = net.add_transition(tname=tname)
        _add_arcs(net, t, _side(ins, resolve, known), _side(outs, resolve, known))
    return net


def reaction_net(concentrations: Any, *transitions: Any) -> PetriNet:
    """
    Petri net with species concentrations and transition rates.

    :param concentrations: Initial concentration per species, in id order.
    :param transitions: ``(rate, (ins, outs))`` pairs or one mapping
        ``{rate: (ins, outs)}``; sides use 1-based species ids. Rates are
        anything :func:`~petrikit.Net.rates.as_rate` accepts.
    :returns: New reaction net.
    :rtype: PetriNet
    """
    concentrations = _as_list(concentrations)
    n = len(concentrations)
    net = PetriNet(REACTION)
    net.add_species(n, concentration=concentrations)
    resolve, known = _index_resolver(n)
    for rate, spec in _transition_items(transitions):
        ins, outs = _split_io(spec)
        t = net.add_transition(rate=rate)
        _add_arcs(net, t, _side(ins, resolve, known), _side(outs, resolve, known))
    return net


def labelled_reaction_net(states: Any, *transitions: Any) -> PetriNet:
    """
    Labelled reaction net.

    :param states: Mapping ``name -> concentration`` or a sequence of
        ``(name, concentration)`` pairs, in id order.
    :param transitions: ``((tname, rate), (ins, outs))`` pairs or one
        mapping ``{(tname, rate): (ins, outs)}``; sides use species names.
    :returns: New labelled reaction net.
    :rtype: PetriNet
    :raises UnknownNameError: If a transition references an absent name.
    """
    pairs = list(states.items()) if isinstance(states, Mapping) else list(states)
    for pair in pairs:
        if not isinstance(pair, (tuple, list)) or len(pair) != 2:
            raise ValueError(f"State must be a (name, concentration) pair, got {pair!r}")
    names = [name for name, _ in pairs]
    net = PetriNet(LABELLED_REACTION)
    net.add_species(
        len(pairs), sname=names, concentration=[c for _, c in pairs]
    )
    resolve, known = _name_resolver(names)
    for head, spec in _transition_items(transitions):
        if not isinstance(head, (tuple, list)) or len(head) != 2:
            raise ValueError(f"Transition head must be (name, rate), got {head!r}")
        tname, rate = head
        ins, outs = _split_io(spec)
        t = net.add_transition(tname=tname, rate=rate)
        _add_arcs(net, t, _side(ins, resolve, known), _side(outs, resolve, known))
    return net


# ---------------------------------------------------------------------------
# Casting
# ---------------------------------------------------------------------------


def _normalize_values(column: str, values: AttrValues, n: int) -> Dict[int, Any]:
    if isinstance(values, Mapping):
        out = {int(k): v for k, v in values.items()}
    else:
        out = {k: v for k, v in enumerate(values, start=1)}
    bad = [k for k in out if not 1 <= k <= n]
    if bad:
        raise IndexError(f"{column!r} values given for nonexistent ids {sorted(bad)}")
    return out


def cast(
    net: PetriNet,
    attributes: Iterable[str],
    values: Optional[Mapping[str, AttrValues]] = None,
    *,
    defaults: Optional[Mapping[str, Any]] = None,
) -> PetriNet:
    """
    Copy ``net`` into another variant.

    Species, transitions and arcs keep their ids. Columns shared with the
    source are copied; ``values`` (``column -> {id: value}``, or a sequence
    in id order) override them. A column the target carries but the
    source does not must be fully covered by ``values`` or have an entry
    in ``defaults``. Columns the target lacks are dropped.

    :param net: Source net (not modified).
    :type net: PetriNet
    :param attributes: Target capability set.
    :type attributes: Iterable[str]
    :param values: Per-column attribute values keyed by id.
    :type values: Optional[Mapping[str, AttrValues]]
    :param defaults: Per-column fallback for ids absent from ``values``.
    :type defaults: Optional[Mapping[str, Any]]
    :returns: New net of the target variant.
    :rtype: PetriNet
    :raises MissingAttributeError: If a required column cannot be filled,
        or ``values``/``defaults`` name a column the target lacks.

    .. code-block:: python

        rn = cast(net, REACTION, {"concentration": [10, 1, 0], "rate": [0.4, 0.4]})
    """
    target: FrozenSet[str] = frozenset(attributes)
    schema = petri_schema(target)
    values = dict(values or {})
    defaults = dict(defaults or {})

    for column in list(values) + list(defaults):
        if column not in schema.attrs:
            raise MissingAttributeError(
                f"Target variant {sorted(target)} has no column {column!r}"
            )

    counts = {"S": net.ns(), "T": net.nt()}
    supplied = {
        column: _normalize_values(column, vals, counts[schema.attrs[column]])
        for column, vals in values.items()
    }

    fill: Dict[str, Dict[int, Any]] = {}
    for column, ob in schema.attrs.items():
        given = supplied.get(column, {})
        if net.has_subpart(column):
            fill[column] = given
            continue
        missing = [k for k in range(1, counts[ob] + 1) if k not in given]
        if missing and column not in defaults:
            raise MissingAttributeError(
                f"Column {column!r} is required by {sorted(target)} but no value "
                f"or default was given for {ob} {missing}"
            )
        fill[column] = {k: given.get(k, defaults.get(column)) for k in range(1, counts[ob] + 1)}

    out = PetriNet(target)
    out.copy_parts(net)
    for column, by_id in fill.items():
        for k, value in by_id.items():
            out.set_subpart(k, column, value)
    LOGGER.debug(
        "cast %s -> %s (ns=%d, nt=%d)",
        sorted(net.attributes),
        sorted(target),
        out.ns(),
        out.nt(),
    )
    return out


def to_petri_net(net: PetriNet) -> PetriNet:
    """Drop every attribute column."""
    return cast(net, PETRI)


def to_labelled_petri_net(
    net: PetriNet,
    snames: AttrValues,
    tnames: AttrValues,
    *,
    defaults: Optional[Mapping[str, Any]] = None,
) -> PetriNet:
    """Labelled copy of ``net`` with the given species/transition names."""
    return cast(net, LABELLED, {"sname": snames, "tname": tnames}, defaults=defaults)


def to_reaction_net(
    net: PetriNet,
    concentrations: AttrValues,
    rates: AttrValues,
    *,
    defaults: Optional[Mapping[str, Any]] = None,
) -> PetriNet:
    """Reaction-net copy of ``net`` with the given concentrations and rates."""
    return cast(
        net,
        REACTION,
        {"concentration": concentrations, "rate": rates},
        defaults=defaults,
    )


def to_labelled_reaction_net(
    net: PetriNet,
    snames: AttrValues,
    tnames: AttrValues,
    concentrations: AttrValues,
    rates: AttrValues,
    *,
    defaults: Optional[Mapping[str, Any]] = None,
) -> PetriNet:
    """Labelled reaction-net copy of ``net``."""
    return cast(
        net,
        LABELLED_REACTION,
        {
            "sname": snames,
            "tname": tnames,
            "concentration": concentrations,
            "rate": rates,
        },
        defaults=defaults,
    )


def to_property_net(
    net: PetriNet,
    sprops: AttrValues,
    tprops: AttrValues,
    *,
    defaults: Optional[Mapping[str, Any]] = None,
) -> PetriNet:
    """
    Add species/transition properties to ``net``, keeping its other columns.

    :returns: Copy of ``net`` carrying the ``properties`` group as well.
    :rtype: PetriNet
    """
    return cast(
        net,
        net.attributes | PROPERTY,
        {"sprop": sprops, "tprop": tprops},
        defaults=defaults,
    )


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


def flat_symbol(name: Any, sep: str = "_") -> Any:
    """
    Flatten an arbitrarily nested tuple name into one string.

    ``("S", ("Q", "young"))`` becomes ``"S_Q_young"``; non-tuples are
    returned unchanged.
    """
    if not isinstance(name, tuple):
        return name
    return sep.join(str(flat_symbol(part, sep)) for part in name)


def flatten_labels(net: PetriNet, *, sep: str = "_") -> PetriNet:
    """
    Copy of a labelled net whose nested tuple names are joined by ``sep``.

    :raises MissingAttributeError: If ``net`` carries no labels.
    """
    if not net.has_labels:
        raise MissingAttributeError("flatten_labels requires a labelled net")
    out = net.copy()
    for s in out.parts("S"):
        out.set_sname(s, flat_symbol(out.sname(s), sep))
    for t in out.parts("T"):
        out.set_tname(t, flat_symbol(out.tname(t), sep))
    return out
