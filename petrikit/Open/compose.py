# Open/compose.py
"""
Gluing open Petri nets along a wiring diagram.

:func:`oapply` is the single composition primitive; :func:`compose`
(sequential), :func:`oplus` and :func:`otimes` (parallel) build a small
diagram and delegate to it. :func:`identity`, :func:`mcopy` and
:func:`mmerge` are the species-only open nets that route legs between
them.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from networkx.utils import UnionFind

from .open_net import OpenPetriNet
from .wiring import WiringDiagram
from ..Net.petri import PETRI, PetriNet
from ..exceptions import (
    ArityMismatchError,
    SchemaMismatchError,
    UnboundBoxError,
    WiringError,
)

LOGGER = logging.getLogger(__name__)

Nets = Union[Mapping[Any, OpenPetriNet], Sequence[Optional[OpenPetriNet]]]


def _bind(diagram: WiringDiagram, nets: Nets) -> List[OpenPetriNet]:
    """Open net of every box, in box order."""
    bound: List[OpenPetriNet] = []
    for b, (name, ports) in enumerate(diagram.boxes, start=1):
        if isinstance(nets, Mapping):
            net = nets.get(name)
        else:
            net = nets[b - 1] if b <= len(nets) else None
        if net is None:
            raise UnboundBoxError(f"Box {b} ({name!r}) has no open net bound to it")
        if not isinstance(net, OpenPetriNet):
            raise TypeError(
                f"Box {b} ({name!r}) is bound to {type(net).__name__}, "
                "expected OpenPetriNet"
            )
        if net.n_legs != len(ports):
            raise ArityMismatchError(
                f"Box {b} ({name!r}) has {len(ports)} port(s) but its net "
                f"exposes {net.n_legs} leg(s)"
            )
        bound.append(net)
    return bound


def _common_attributes(bound: List[OpenPetriNet]):
    attributes = {frozenset(o.attributes) for o in bound}
    if len(attributes) > 1:
        raise SchemaMismatchError(
            "Cannot compose nets with different attribute sets: "
            + ", ".join(sorted(",".join(sorted(a)) or "plain" for a in attributes))
        )
    return attributes.pop() if attributes else frozenset()


def oapply(diagram: WiringDiagram, nets: Nets) -> OpenPetriNet:
    """
    Compose open nets along an undirected wiring diagram.

    The apexes are laid side by side in box order, every pair of species
    meeting at a junction (leg position by leg position) is identified, and
    each outer port exposes the image of a leg bound at its junction.

    :param diagram: Wiring diagram.
    :type diagram: WiringDiagram
    :param nets: ``box name -> OpenPetriNet`` or a sequence in box order.
    :returns: The composite open net; the inputs are left untouched.
    :rtype: OpenPetriNet
    :raises UnboundBoxError: If a box has no net.
    :raises ArityMismatchError: If ports and legs disagree in number, or
        legs meeting at a junction have different lengths.
    :raises SchemaMismatchError: If the nets carry different attribute sets.
    :raises WiringError: If an outer junction touches no box port.

    .. code-block:: python

        sir = oapply(
            WiringDiagram.relation(("s", "i", "r"),
                                   ("infection", ("s", "i")),
                                   ("recovery", ("i", "r"))),
            {"infection": Open(inf_net), "recovery": Open(rec_net)},
        )
    """
    bound = _bind(diagram, nets)
    attributes = _common_attributes(bound)

    # 1. disjoint union of the apexes
    total = PetriNet(attributes)
    junction_legs: Dict[int, List[Tuple[int, ...]]] = {}
    for (_, ports), o in zip(diagram.boxes, bound):
        shift = total.ns()
        total.copy_parts(o.apex)
        for jid, leg in zip(ports, o.legs):
            if jid is not None:
                junction_legs.setdefault(jid, []).append(tuple(s + shift for s in leg))

    # 2. identify species through the junctions
    uf = UnionFind(total.parts("S"))
    for jid, legs in junction_legs.items():
        lengths = {len(leg) for leg in legs}
        if len(lengths) > 1:
            raise ArityMismatchError(
                f"Legs meeting at junction {diagram.junction_name(jid)!r} "
                f"have different lengths {sorted(lengths)}"
            )
        first = legs[0]
        for leg in legs[1:]:
            for a, b in zip(first, leg):
                uf.union(a, b)

    outer_legs: List[Tuple[int, ...]] = []
    for jid in diagram.outer:
        if jid not in junction_legs:
            raise WiringError(
                f"Outer junction {diagram.junction_name(jid)!r} is not attached "
                "to any box port"
            )
        outer_legs.append(junction_legs[jid][0])

    # 3. quotient, one species per class represented by its smallest id
    smallest = _class_minimum(uf, total.ns())
    reps = sorted(set(smallest.values()))
    rep_id = {rep: k for k, rep in enumerate(reps, start=1)}
    image = {s: rep_id[m] for s, m in smallest.items()}

    result = PetriNet(attributes)
    s_columns = total.schema.columns("S")
    result.add_species(
        len(reps), **{c: [total.subpart(r, c) for r in reps] for c in s_columns}
    )
    t_columns = total.schema.columns("T")
    result.add_transitions(total.nt(), **{c: total.subparts(c) for c in t_columns})
    result.add_inputs(
        total.ni(), total.subparts("it"), [image[s] for s in total.subparts("is")]
    )
    result.add_outputs(
        total.no(), total.subparts("ot"), [image[s] for s in total.subparts("os")]
    )

    LOGGER.debug(
        "oapply: %d box(es), %d species merged into %d, %d outer leg(s)",
        len(bound),
        total.ns(),
        result.ns(),
        len(outer_legs),
    )
    return OpenPetriNet(result, [tuple(image[s] for s in leg) for leg in outer_legs])


def _class_minimum(uf: UnionFind, n: int) -> Dict[int, int]:
    """Map every species id to the smallest id of its class."""
    smallest: Dict[int, int] = {}
    for s in range(1, n + 1):
        root = uf[s]
        if root not in smallest or s < smallest[root]:
            smallest[root] = s
    return {s: smallest[uf[s]] for s in range(1, n + 1)}


def compose(a: OpenPetriNet, b: OpenPetriNet) -> OpenPetriNet:
    """
    Sequential composition: glue the last leg of ``a`` to the first leg of
    ``b``. The result exposes ``a``'s other legs followed by ``b``'s.

    :raises WiringError: If either net has no legs.
    :raises ArityMismatchError: If the glued legs differ in length.
    """
    if a.n_legs == 0 or b.n_legs == 0:
        raise WiringError("Sequential composition needs at least one leg on each side")
    wd = WiringDiagram()
    left = [wd.add_junction() for _ in range(a.n_legs - 1)]
    middle = wd.add_junction()
    right = [wd.add_junction() for _ in range(b.n_legs - 1)]
    wd.add_box("a", left + [middle])
    wd.add_box("b", [middle] + right)
    wd.set_outer(left + right)
    return oapply(wd, [a, b])


def oplus(*nets: OpenPetriNet) -> OpenPetriNet:
    """
    Disjoint union of open nets with every leg kept: the result exposes the
    legs of the first net, then those of the second, and so on.
    """
    wd = WiringDiagram()
    outer: List[int] = []
    for k, o in enumerate(nets, start=1):
        js = [wd.add_junction() for _ in range(o.n_legs)]
        wd.add_box(k, js)
        outer.extend(js)
    wd.set_outer(outer)
    return oapply(wd, list(nets))


def otimes(*nets: OpenPetriNet) -> OpenPetriNet:
    """
    Monoidal product of two-legged open nets.

    The apexes are laid side by side; the left legs are concatenated into
    one left leg and the right legs into one right leg, so the product is
    again two-legged and composes with :func:`compose`. ``otimes()`` is the
    empty net with two empty legs.

    :param nets: Open nets with exactly two legs each.
    :returns: Two-legged open net.
    :rtype: OpenPetriNet
    :raises ArityMismatchError: If an input does not have two legs (use
        :func:`oplus` to keep every leg).

    .. code-block:: python

        # E -> I in parallel with a passive I, then merge the two I's
        sei = compose(compose(exposure, otimes(illness, identity(LABELLED, sname="I"))),
                      mmerge(LABELLED, sname="I"))
    """
    odd = [k for k, o in enumerate(nets, start=1) if o.n_legs != 2]
    if odd:
        raise ArityMismatchError(
            f"otimes needs two-legged open nets; argument(s) {odd} are not"
        )
    union = oplus(*nets)
    left = tuple(s for leg in union.legs[0::2] for s in leg)
    right = tuple(s for leg in union.legs[1::2] for s in leg)
    return OpenPetriNet(union.apex, [left, right])


def _species_block(
    attributes: Iterable[str], n: int, species: Dict[str, Any]
) -> Tuple[PetriNet, Tuple[int, ...]]:
    net = PetriNet(attributes)
    ids = tuple(net.add_species(int(n), **species))
    return net, ids


def identity(attributes: Iterable[str] = PETRI, n: int = 1, **species: Any) -> OpenPetriNet:
    """
    Identity on ``n`` species: no transitions, both legs are ``(1, ..., n)``.

    ``species`` holds the species columns (e.g. ``sname="I"``), so the
    identity can carry the same attribute set as the nets it is composed
    with.
    """
    net, leg = _species_block(attributes, n, species)
    return OpenPetriNet(net, [leg, leg])


def mcopy(attributes: Iterable[str] = PETRI, n: int = 1, **species: Any) -> OpenPetriNet:
    """Copy: left leg ``(1..n)``, right leg ``(1..n, 1..n)``."""
    net, leg = _species_block(attributes, n, species)
    return OpenPetriNet(net, [leg, leg + leg])


def mmerge(attributes: Iterable[str] = PETRI, n: int = 1, **species: Any) -> OpenPetriNet:
    """
    Merge: left leg ``(1..n, 1..n)``, right leg ``(1..n)``.

    Composing ``a`` with ``mmerge`` identifies the two halves of ``a``'s
    right leg species by species.
    """
    net, leg = _species_block(attributes, n, species)
    return OpenPetriNet(net, [leg + leg, leg])
