# Open/typed.py
"""
Typed Petri nets and stratification.

A :class:`TypedPetriNet` is a net (``dom``) together with a structure
preserving map into a fixed *type net* (``codom``, an ontology such as
"infect / disease / strata" over one ``Pop`` species). Every species,
transition and arc of ``dom`` is sent to one of ``codom`` such that arcs
keep their endpoints' types.

Two models typed over the same ontology are *stratified* by
:func:`typed_product`, the pullback over the type net: its species and
transitions are the pairs of equally typed parts of both models.

.. code-block:: python

    ontology = labelled_petri_net(
        ["Pop"],
        ("infect", (("Pop", "Pop"), ("Pop", "Pop"))),
        ("disease", ("Pop", "Pop")),
        ("strata", ("Pop", "Pop")),
    )
    sird = oapply_typed(
        ontology,
        WiringDiagram.relation((), ("infect", ("S", "I", "I", "I")),
                               ("disease", ("I", "R")), ("disease", ("I", "D"))),
        ["inf", "recover", "die"],
    )
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Sequence, Tuple

from .compose import oapply
from .open_net import OpenPetriNet
from .wiring import WiringDiagram
from ..Net.petri import LABELLED, LABELLED_REACTION, PetriNet
from ..Net.variants import cast, flat_symbol
from ..exceptions import ArityMismatchError, SchemaMismatchError, WiringError

LOGGER = logging.getLogger(__name__)

Components = Mapping[str, Sequence[int]]

# arc tables with their (transition, species) foreign keys
_ARCS = {"I": ("it", "is"), "O": ("ot", "os")}


class TypedPetriNet:
    """
    A Petri net mapped into a type net.

    ``components`` maps each of ``"S"``, ``"T"``, ``"I"`` and ``"O"`` to
    the type of every part of ``dom`` (ids into ``codom``, in part order).
    Both nets are copied.

    :param dom: The typed model.
    :type dom: PetriNet
    :param codom: The type net.
    :type codom: PetriNet
    :param components: Per-object type assignments.
    :type components: Mapping[str, Sequence[int]]
    :raises ValueError: If a component has the wrong length, points outside
        ``codom``, or an arc's type does not match its endpoints' types.
    """

    def __init__(self, dom: PetriNet, codom: PetriNet, components: Components) -> None:
        comps: Dict[str, Tuple[int, ...]] = {}
        for ob in ("S", "T", "I", "O"):
            values = tuple(int(v) for v in components.get(ob, ()))
            if len(values) != dom.nparts(ob):
                raise ValueError(
                    f"Type component {ob!r} has {len(values)} entries for "
                    f"{dom.nparts(ob)} parts"
                )
            bad = [v for v in values if not 1 <= v <= codom.nparts(ob)]
            if bad:
                raise ValueError(f"Type component {ob!r} references nonexistent parts {bad}")
            comps[ob] = values

        for ob, (t_hom, s_hom) in _ARCS.items():
            for arc, kind in enumerate(comps[ob], start=1):
                t = dom.subpart(arc, t_hom)
                s = dom.subpart(arc, s_hom)
                if (
                    codom.subpart(kind, t_hom) != comps["T"][t - 1]
                    or codom.subpart(kind, s_hom) != comps["S"][s - 1]
                ):
                    raise ValueError(
                        f"Arc {ob}{arc} is typed as {ob}{kind}, which does not "
                        "connect the types of its transition and species"
                    )

        self._dom = dom.copy()
        self._codom = codom.copy()
        self._components = comps

    @property
    def dom(self) -> PetriNet:
        """A copy of the typed model."""
        return self._dom.copy()

    @property
    def codom(self) -> PetriNet:
        """A copy of the type net."""
        return self._codom.copy()

    @property
    def components(self) -> Dict[str, Tuple[int, ...]]:
        return dict(self._components)

    def species_type(self, s: int) -> int:
        return self._components["S"][s - 1]

    def transition_type(self, t: int) -> int:
        return self._components["T"][t - 1]

    def species_of_type(self, kind: int) -> List[int]:
        """Species of ``dom`` sent to species ``kind`` of the type net."""
        return [s for s, k in enumerate(self._components["S"], start=1) if k == kind]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypedPetriNet):
            return NotImplemented
        return (
            self._components == other._components
            and self._dom == other._dom
            and self._codom == other._codom
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"TypedPetriNet({self._dom!r} -> {self._codom!r})"


def _positional_arc_types(
    dom: PetriNet, codom: PetriNet, transition_types: Sequence[int]
) -> Dict[str, List[int]]:
    """
    Type the arcs of ``dom`` by position: the k-th input (output) arc of a
    transition goes to the k-th input (output) arc of its type.
    """
    arcs: Dict[str, List[int]] = {}
    for ob, (t_hom, _) in _ARCS.items():
        kinds = [0] * dom.nparts(ob)
        for t, kind in enumerate(transition_types, start=1):
            own = dom.incident(t, t_hom)
            typed = codom.incident(kind, t_hom)
            if len(own) != len(typed):
                raise ArityMismatchError(
                    f"Transition {dom.tname(t)!r} has {len(own)} {ob}-arc(s) but its "
                    f"type {codom.tname(kind)!r} has {len(typed)}"
                )
            for arc, arc_kind in zip(own, typed):
                kinds[arc - 1] = arc_kind
        arcs[ob] = kinds
    return arcs


def _species_types(dom: PetriNet, codom: PetriNet, arcs: Dict[str, List[int]]) -> List[int]:
    """Species types read off the arcs; every species must touch an arc."""
    found: Dict[int, int] = {}
    for ob, (_, s_hom) in _ARCS.items():
        for arc, kind in enumerate(arcs[ob], start=1):
            s = dom.subpart(arc, s_hom)
            want = codom.subpart(kind, s_hom)
            if found.setdefault(s, want) != want:
                raise WiringError(
                    f"Species {dom.sname(s)!r} is used as both "
                    f"{codom.sname(found[s])!r} and {codom.sname(want)!r}"
                )
    missing = [s for s in dom.parts("S") if s not in found]
    if missing:
        raise WiringError(f"Species {missing} are not attached to any typed transition")
    return [found[s] for s in dom.parts("S")]


def oapply_typed(
    type_net: PetriNet,
    diagram: WiringDiagram,
    tnames: Optional[Sequence[Hashable]] = None,
) -> TypedPetriNet:
    """
    Build a typed model from a wiring diagram whose boxes name transitions
    of ``type_net``.

    Each box becomes a one-transition net whose ports are the inputs of
    its type followed by its outputs; species are named after the
    junctions they are wired to. The boxes are glued with
    :func:`~petrikit.Open.compose.oapply`.

    :param type_net: The ontology; box names are looked up as its
        transition names (or ids for unlabelled type nets).
    :type type_net: PetriNet
    :param diagram: Wiring diagram; every port must be wired.
    :type diagram: WiringDiagram
    :param tnames: Names of the resulting transitions, in box order
        (default: the box names).
    :returns: Labelled model typed over ``type_net``.
    :rtype: TypedPetriNet
    :raises UnknownNameError: If a box names no transition of the ontology.
    :raises ArityMismatchError: If a box's port count differs from the
        arity of its type, or ``tnames`` has the wrong length.
    :raises WiringError: If a port is unwired or a junction is used with two
        different species types.
    """
    boxes = diagram.boxes
    if tnames is None:
        tnames = [name for name, _ in boxes]
    tnames = list(tnames)
    if len(tnames) != len(boxes):
        raise ArityMismatchError(f"{len(tnames)} transition name(s) for {len(boxes)} box(es)")

    box_nets: List[OpenPetriNet] = []
    transition_types: List[int] = []
    for (name, ports), tname in zip(boxes, tnames):
        kind = type_net.transition_index(name)
        n_in = len(type_net.inputs(kind))
        n_out = len(type_net.outputs(kind))
        if len(ports) != n_in + n_out:
            raise ArityMismatchError(
                f"Box {name!r} has {len(ports)} port(s); its type takes "
                f"{n_in} input(s) and {n_out} output(s)"
            )
        if None in ports:
            raise WiringError(f"Box {name!r} has an unwired port")
        net = PetriNet(LABELLED)
        species = net.add_species(
            len(ports), sname=[diagram.junction_name(j) for j in ports]
        )
        t = net.add_transition(tname=tname)
        net.add_inputs(n_in, t, list(species[:n_in]))
        net.add_outputs(n_out, t, list(species[n_in:]))
        box_nets.append(OpenPetriNet(net, [(s,) for s in species]))
        transition_types.append(kind)

    dom = oapply(diagram, box_nets).apex
    arcs = _positional_arc_types(dom, type_net, transition_types)
    species_types = _species_types(dom, type_net, arcs)
    LOGGER.debug(
        "oapply_typed: %d box(es) -> ns=%d, nt=%d", len(boxes), dom.ns(), dom.nt()
    )
    return TypedPetriNet(
        dom,
        type_net,
        {"S": species_types, "T": transition_types, "I": arcs["I"], "O": arcs["O"]},
    )


def _by_name(net: PetriNet, values: Mapping[Hashable, Any], ob: str) -> Dict[int, Any]:
    index = net.species_index if ob == "S" else net.transition_index
    return {index(name): value for name, value in values.items()}


def add_params(
    typed: TypedPetriNet,
    concentrations: Mapping[Hashable, Any],
    rates: Mapping[Hashable, Any],
) -> TypedPetriNet:
    """
    Give a typed model initial concentrations and rates.

    The model is cast to a labelled reaction net (keeping any other
    attribute group it carries); the typing is unchanged.

    :param typed: Typed model with a labelled ``dom``.
    :param concentrations: ``species name -> concentration``.
    :param rates: ``transition name -> rate``.
    :returns: New typed model.
    :rtype: TypedPetriNet
    :raises UnknownNameError: If a key names no species/transition.
    :raises MissingAttributeError: If a species or transition is left
        without a value.
    """
    dom = typed.dom
    values = {
        "concentration": _by_name(dom, concentrations, "S"),
        "rate": _by_name(dom, rates, "T"),
    }
    out = cast(dom, dom.attributes | LABELLED_REACTION, values)
    return TypedPetriNet(out, typed.codom, typed.components)


def add_reflexives(
    typed: TypedPetriNet,
    reflexive_types: Sequence[Sequence[Hashable]],
    type_net: Optional[PetriNet] = None,
) -> TypedPetriNet:
    """
    Add identity-like transitions so a model can take part in every kind of
    event of the ontology.

    For species ``s`` and each type name ``k`` in ``reflexive_types[s - 1]``
    a transition of type ``k`` is added whose input and output arcs all
    sit on ``s``. It is named ``"<k>_<sname>"``; on reaction nets its rate
    is left as a placeholder.

    :param typed: Typed model.
    :param reflexive_types: One list of type-transition names per species,
        in species order.
    :param type_net: Type net used to resolve the names (default:
        ``typed.codom``).
    :returns: New typed model.
    :rtype: TypedPetriNet
    :raises ValueError: If ``reflexive_types`` has the wrong length.
    :raises WiringError: If a type transition touches a species type other
        than the species' own.
    """
    type_net = typed.codom if type_net is None else type_net
    dom = typed.dom
    if len(reflexive_types) != dom.ns():
        raise ValueError(
            f"Expected reflexive types for {dom.ns()} species, got {len(reflexive_types)}"
        )
    comps = {ob: list(v) for ob, v in typed.components.items()}
    for s, kinds in zip(dom.parts("S"), reflexive_types):
        own = comps["S"][s - 1]
        for name in kinds:
            kind = type_net.transition_index(name)
            typed_arcs = {ob: type_net.incident(kind, t_hom) for ob, (t_hom, _) in _ARCS.items()}
            for ob, (_, s_hom) in _ARCS.items():
                if any(type_net.subpart(a, s_hom) != own for a in typed_arcs[ob]):
                    raise WiringError(
                        f"Type {name!r} cannot act on species {dom.sname(s)!r} alone"
                    )
            attrs: Dict[str, Any] = {}
            if dom.has_labels:
                attrs["tname"] = flat_symbol((type_net.tname(kind), dom.sname(s)))
            t = dom.add_transition(**attrs)
            dom.add_inputs(len(typed_arcs["I"]), t, s)
            dom.add_outputs(len(typed_arcs["O"]), t, s)
            comps["T"].append(kind)
            comps["I"].extend(typed_arcs["I"])
            comps["O"].extend(typed_arcs["O"])
    return TypedPetriNet(dom, type_net, comps)


def typed_product(
    a: TypedPetriNet,
    b: TypedPetriNet,
    *,
    combine_rates: Optional[Callable[[Any, Any], Any]] = None,
) -> TypedPetriNet:
    """
    Stratify two models typed over the same ontology (pullback over the
    type net).

    Species and transitions of the product are the pairs ``(x_a, x_b)``
    with equal types, ordered by ``x_a`` then ``x_b``. For every transition
    pair and every arc of their common type, the product has one arc per
    pair of arcs of that type. Names are pairs of names and, when both
    models carry the group, concentrations and properties are pairs too.
    Rates stay placeholders (looked up by the pair name at evaluation
    time) unless ``combine_rates(rate_a, rate_b)`` is given.

    :param a: First model.
    :param b: Second model.
    :param combine_rates: Optional combination of the two factor rates.
    :returns: The stratified model, typed over the common type net.
    :rtype: TypedPetriNet
    :raises SchemaMismatchError: If the type nets differ.

    .. code-block:: python

        stratified = typed_product(quarantine, sird)
        stratified.dom.sname(1)   # ("Q", "S")
    """
    codom = a.codom
    if codom != b.codom:
        raise SchemaMismatchError("typed_product needs models over the same type net")
    da, db = a.dom, b.dom
    ca, cb = a.components, b.components

    shared = da.attributes & db.attributes
    result = PetriNet(LABELLED | shared)

    species = [
        (sa, sb)
        for sa, sb in itertools.product(da.parts("S"), db.parts("S"))
        if ca["S"][sa - 1] == cb["S"][sb - 1]
    ]
    s_values: Dict[str, List[Any]] = {"sname": [(da.sname(x), db.sname(y)) for x, y in species]}
    for column in ("concentration", "sprop"):
        if result.has_subpart(column):
            s_values[column] = [(da.subpart(x, column), db.subpart(y, column)) for x, y in species]
    result.add_species(len(species), **s_values)
    s_id = {pair: k for k, pair in enumerate(species, start=1)}

    transitions = [
        (ta, tb)
        for ta, tb in itertools.product(da.parts("T"), db.parts("T"))
        if ca["T"][ta - 1] == cb["T"][tb - 1]
    ]
    t_values: Dict[str, List[Any]] = {
        "tname": [(da.tname(x), db.tname(y)) for x, y in transitions]
    }
    if result.has_subpart("tprop"):
        t_values["tprop"] = [(da.tprop(x), db.tprop(y)) for x, y in transitions]
    if result.has_subpart("rate") and combine_rates is not None:
        t_values["rate"] = [combine_rates(da.rate(x), db.rate(y)) for x, y in transitions]
    result.add_transitions(len(transitions), **t_values)

    comps: Dict[str, List[int]] = {
        "S": [ca["S"][x - 1] for x, _ in species],
        "T": [ca["T"][x - 1] for x, _ in transitions],
        "I": [],
        "O": [],
    }
    for t, (ta, tb) in enumerate(transitions, start=1):
        kind = comps["T"][t - 1]
        for ob, (t_hom, s_hom) in _ARCS.items():
            for arc_kind in codom.incident(kind, t_hom):
                own_a = [x for x in da.incident(ta, t_hom) if ca[ob][x - 1] == arc_kind]
                own_b = [y for y in db.incident(tb, t_hom) if cb[ob][y - 1] == arc_kind]
                for x, y in itertools.product(own_a, own_b):
                    s = s_id[(da.subpart(x, s_hom), db.subpart(y, s_hom))]
                    result.add_part(ob, **{t_hom: t, s_hom: s})
                    comps[ob].append(arc_kind)

    LOGGER.debug(
        "typed_product: (%d, %d) x (%d, %d) -> ns=%d, nt=%d",
        da.ns(),
        da.nt(),
        db.ns(),
        db.nt(),
        result.ns(),
        result.nt(),
    )
    return TypedPetriNet(result, codom, comps)
