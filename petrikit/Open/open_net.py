# Open/open_net.py
"""
Open Petri nets: a net (the *apex*) together with an ordered list of
*legs*, each leg a finite sequence of the apex's species ids. Legs are
the interface along which open nets are glued (see
:mod:`petrikit.Open.compose`).
"""

from __future__ import annotations

from typing import Any, Iterable, List, Sequence, Tuple

from ..Net.petri import PetriNet
from ..exceptions import UnknownNameError

Leg = Tuple[int, ...]


class OpenPetriNet:
    """
    A Petri net with exposed legs.

    The open net keeps a private copy of ``apex``; later changes to the
    net passed in do not affect it. Legs are immutable.

    :param apex: Underlying net (copied).
    :type apex: PetriNet
    :param legs: Species-id sequences, one per leg.
    :type legs: Iterable[Sequence[int]]
    :raises IndexError: If a leg references a species the apex lacks.
    """

    def __init__(self, apex: PetriNet, legs: Iterable[Sequence[int]]) -> None:
        legs = tuple(tuple(int(s) for s in leg) for leg in legs)
        n = apex.ns()
        for k, leg in enumerate(legs, start=1):
            bad = [s for s in leg if not 1 <= s <= n]
            if bad:
                raise IndexError(f"Leg {k} references nonexistent species {bad}")
        self._apex = apex.copy()
        self._legs: Tuple[Leg, ...] = legs

    @property
    def apex(self) -> PetriNet:
        """A copy of the apex net."""
        return self._apex.copy()

    @property
    def legs(self) -> Tuple[Leg, ...]:
        return self._legs

    @property
    def feet(self) -> Tuple[int, ...]:
        """Length of each leg."""
        return tuple(len(leg) for leg in self._legs)

    @property
    def n_legs(self) -> int:
        return len(self._legs)

    @property
    def attributes(self):
        return self._apex.attributes

    def leg_names(self) -> List[Tuple[Any, ...]]:
        """Legs as tuples of species identifiers (names for labelled nets)."""
        return [tuple(self._apex.sname(s) for s in leg) for leg in self._legs]

    @classmethod
    def from_net(cls, net: PetriNet, *legs: Any) -> "OpenPetriNet":
        """
        Expose ``legs`` of ``net``; with no legs, every species becomes its
        own singleton leg in id order.

        Each leg is a single species or a tuple/list of species. Labelled
        nets reference species by name, other nets by id.

        :raises UnknownNameError: If a named species does not exist.
        """
        if not legs:
            return cls(net, [(s,) for s in net.parts("S")])
        return cls(net, [_resolve_leg(net, leg) for leg in legs])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OpenPetriNet):
            return NotImplemented
        return self._legs == other._legs and self._apex == other._apex

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"OpenPetriNet({self._apex!r}, feet={list(self.feet)})"


def _resolve_leg(net: PetriNet, leg: Any) -> Leg:
    if net.has_labels:
        # a whole tuple may itself be a (nested) species name
        try:
            return (net.species_index(leg),)
        except UnknownNameError:
            if not isinstance(leg, (tuple, list)):
                raise
        return tuple(net.species_index(s) for s in leg)
    if isinstance(leg, (tuple, list, range)):
        return tuple(int(s) for s in leg)
    return (int(leg),)


def Open(*args: Any) -> OpenPetriNet:
    """
    Build an :class:`OpenPetriNet`.

    * ``Open(net)`` – every species is its own leg, in id order.
    * ``Open(net, leg1, leg2, ...)`` – explicit legs.
    * ``Open(left, net, right)`` – the two-legged cospan form.

    .. code-block:: python

        sir = labelled_petri_net(["S", "I", "R"], ...)
        o = Open(["S"], sir, ["R"])
        o.leg_names()   # [("S",), ("R",)]
    """
    if args and isinstance(args[0], PetriNet):
        return OpenPetriNet.from_net(args[0], *args[1:])
    if len(args) == 3 and isinstance(args[1], PetriNet):
        left, net, right = args
        return OpenPetriNet.from_net(net, left, right)
    raise TypeError(
        "Open expects (net, *legs) or (left_leg, net, right_leg), "
        f"got {[type(a).__name__ for a in args]}"
    )
