# Net/petri.py
"""
Generic attributed Petri net.

A :class:`PetriNet` is an :class:`~petrikit.Net.acset.ACSet` over the
schema

.. code-block:: text

    T <-it- I -is-> S        T <-ot- O -os-> S

plus a *capability set* selecting optional attribute groups:

=============  ==============================  ============================
group          species column                  transition column
=============  ==============================  ============================
``labels``     ``sname``                       ``tname``
``reaction``   ``concentration``               ``rate`` (a :class:`Rate`)
``properties`` ``sprop``                       ``tprop``
=============  ==============================  ============================

The usual variants (labelled nets, reaction nets, property nets and their
combinations) are just capability sets, exported as module constants.
"""

from __future__ import annotations

import numbers
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Hashable, Iterable, List, Mapping, Optional, Union

from .acset import ACSet, Schema
from .rates import Rate, as_rate
from ..exceptions import UnknownNameError

ATTRIBUTE_GROUPS: Mapping[str, Mapping[str, str]] = MappingProxyType(
    {
        "labels": {"sname": "S", "tname": "T"},
        "reaction": {"concentration": "S", "rate": "T"},
        "properties": {"sprop": "S", "tprop": "T"},
    }
)

PETRI: FrozenSet[str] = frozenset()
LABELLED: FrozenSet[str] = frozenset({"labels"})
REACTION: FrozenSet[str] = frozenset({"reaction"})
LABELLED_REACTION: FrozenSet[str] = frozenset({"labels", "reaction"})
PROPERTY: FrozenSet[str] = frozenset({"properties"})
PROPERTY_LABELLED: FrozenSet[str] = frozenset({"properties", "labels"})
PROPERTY_REACTION: FrozenSet[str] = frozenset({"properties", "reaction"})
PROPERTY_LABELLED_REACTION: FrozenSet[str] = frozenset(
    {"properties", "labels", "reaction"}
)


@lru_cache(maxsize=None)
def petri_schema(attributes: FrozenSet[str]) -> Schema:
    """
    Build (and memoise) the schema for a capability set.

    :param attributes: Attribute groups, subset of :data:`ATTRIBUTE_GROUPS`.
    :type attributes: FrozenSet[str]
    :returns: Petri-net schema carrying the requested columns.
    :rtype: Schema
    :raises ValueError: If an unknown attribute group is requested.
    """
    unknown = set(attributes) - set(ATTRIBUTE_GROUPS)
    if unknown:
        raise ValueError(f"Unknown attribute group(s): {sorted(unknown)}")
    attrs: Dict[str, str] = {}
    for group in sorted(attributes):
        attrs.update(ATTRIBUTE_GROUPS[group])
    coercions = {"rate": as_rate} if "rate" in attrs else {}
    return Schema(
        obs=("T", "S", "I", "O"),
        homs={"it": ("I", "T"), "is": ("I", "S"), "ot": ("O", "T"), "os": ("O", "S")},
        attrs=attrs,
        coercions=coercions,
    )


class PetriNet(ACSet):
    """
    Petri net with an explicit set of optional attribute columns.

    Species and transitions are numbered ``1..ns()`` and ``1..nt()``.
    Accessors for names fall back to the bare index when the net carries
    no ``labels`` group, so code keyed on "the species identifier" works
    for every variant.

    :param attributes: Capability set (e.g. :data:`LABELLED_REACTION`).
    :type attributes: Iterable[str]

    .. code-block:: python

        sir = PetriNet(LABELLED)
        s, i, r = sir.add_species(3, sname=["S", "I", "R"])
        inf = sir.add_transition(tname="inf")
        sir.add_inputs(2, inf, [s, i])
        sir.add_outputs(2, inf, i)
    """

    def __init__(self, attributes: Iterable[str] = PETRI) -> None:
        self.attributes: FrozenSet[str] = frozenset(attributes)
        super().__init__(petri_schema(self.attributes))
        self._name_maps: Dict[str, Mapping[Hashable, int]] = {}

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------
    @property
    def has_labels(self) -> bool:
        return "labels" in self.attributes

    @property
    def has_reaction(self) -> bool:
        return "reaction" in self.attributes

    @property
    def has_properties(self) -> bool:
        return "properties" in self.attributes

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------
    def ns(self) -> int:
        """Number of species."""
        return self.nparts("S")

    def nt(self) -> int:
        """Number of transitions."""
        return self.nparts("T")

    def ni(self) -> int:
        """Number of input arcs."""
        return self.nparts("I")

    def no(self) -> int:
        """Number of output arcs."""
        return self.nparts("O")

    # ------------------------------------------------------------------
    # Appending
    # ------------------------------------------------------------------
    def add_parts(self, ob: str, n: int, **values: Any) -> range:
        for column in ("sname", "tname"):
            value = values.get(column)
            if isinstance(value, tuple) and int(n) > 1 and len(value) == int(n):
                raise ValueError(
                    f"Ambiguous {column}={value!r} for {n} parts: pass a list of "
                    "names, or a list repeating the tuple name"
                )
        created = super().add_parts(ob, n, **values)
        if ob in ("S", "T"):
            self._name_maps.clear()
        return created

    def set_subpart(self, part: int, name: str, value: Any) -> None:
        super().set_subpart(part, name, value)
        if name in ("sname", "tname"):
            self._name_maps.clear()

    def add_species(self, n: Optional[int] = None, **attrs: Any) -> Union[int, range]:
        """
        Add one species (``n is None``) or ``n`` species.

        :param n: Number of species to add, or ``None`` for a single one.
        :param attrs: Species columns (``sname``, ``concentration``, ``sprop``).
            A list gives one value per species, any other value is shared by
            all of them. Tuples are valid names, so a tuple ``sname`` whose
            length equals ``n > 1`` is rejected as ambiguous.
        :returns: The new id, or the range of new ids.
        :raises ValueError: On a list of the wrong length or an ambiguous
            tuple name.
        """
        if n is None:
            return self.add_part("S", **attrs)
        return self.add_parts("S", n, **attrs)

    def add_transition(self, **attrs: Any) -> int:
        """Add one transition; ``attrs`` are ``tname``, ``rate``, ``tprop``."""
        return self.add_part("T", **attrs)

    def add_transitions(self, n: int, **attrs: Any) -> range:
        """Add ``n`` transitions and return their id range."""
        return self.add_parts("T", n, **attrs)

    def add_input(self, t: int, s: int) -> int:
        """Add an input arc ``s -> t`` and return its id."""
        return self.add_part("I", it=t, **{"is": s})

    def add_inputs(self, n: int, t: Any, s: Any) -> range:
        """Add ``n`` input arcs; ``t``/``s`` are scalars or length-``n`` lists."""
        return self.add_parts("I", n, it=t, **{"is": s})

    def add_output(self, t: int, s: int) -> int:
        """Add an output arc ``t -> s`` and return its id."""
        return self.add_part("O", ot=t, os=s)

    def add_outputs(self, n: int, t: Any, s: Any) -> range:
        """Add ``n`` output arcs; ``t``/``s`` are scalars or length-``n`` lists."""
        return self.add_parts("O", n, ot=t, os=s)

    # ------------------------------------------------------------------
    # Arcs
    # ------------------------------------------------------------------
    def input_transition(self, i: int) -> int:
        return self.subpart(i, "it")

    def input_species(self, i: int) -> int:
        return self.subpart(i, "is")

    def output_transition(self, o: int) -> int:
        return self.subpart(o, "ot")

    def output_species(self, o: int) -> int:
        return self.subpart(o, "os")

    def inputs(self, t: int) -> List[int]:
        """Species consumed by transition ``t`` (one entry per input arc)."""
        column = self._columns["is"]
        return [column[i - 1] for i in self.incident(t, "it")]

    def outputs(self, t: int) -> List[int]:
        """Species produced by transition ``t`` (one entry per output arc)."""
        column = self._columns["os"]
        return [column[o - 1] for o in self.incident(t, "ot")]

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------
    def sname(self, s: int) -> Hashable:
        """Name of species ``s``, or ``s`` itself for unlabelled nets."""
        if self.has_labels:
            return self.subpart(s, "sname")
        if not 1 <= int(s) <= self.ns():
            raise IndexError(f"S {s!r} does not exist")
        return int(s)

    def tname(self, t: int) -> Hashable:
        """Name of transition ``t``, or ``t`` itself for unlabelled nets."""
        if self.has_labels:
            return self.subpart(t, "tname")
        if not 1 <= int(t) <= self.nt():
            raise IndexError(f"T {t!r} does not exist")
        return int(t)

    def snames(self) -> List[Hashable]:
        if self.has_labels:
            return self.subparts("sname")
        return list(self.parts("S"))

    def tnames(self) -> List[Hashable]:
        if self.has_labels:
            return self.subparts("tname")
        return list(self.parts("T"))

    def set_sname(self, s: int, name: Hashable) -> None:
        self.set_subpart(s, "sname", name)

    def set_tname(self, t: int, name: Hashable) -> None:
        self.set_subpart(t, "tname", name)

    def _name_map(self, column: str) -> Mapping[Hashable, int]:
        cached = self._name_maps.get(column)
        if cached is None:
            index: Dict[Hashable, int] = {}
            for k, name in enumerate(self._columns[column], start=1):
                # duplicated names resolve to their first occurrence
                index.setdefault(name, k)
            cached = MappingProxyType(index)
            self._name_maps[column] = cached
        return cached

    def _resolve(self, name: Hashable, column: str, ob: str) -> int:
        if self.has_labels:
            try:
                return self._name_map(column)[name]
            except (KeyError, TypeError):
                raise UnknownNameError(f"No {ob} named {name!r}") from None
        if isinstance(name, numbers.Integral) and 1 <= int(name) <= self.nparts(ob):
            return int(name)
        raise UnknownNameError(f"No {ob} with identifier {name!r}")

    def species_index(self, name: Hashable) -> int:
        """
        Id of the first species called ``name``.

        For unlabelled nets the identifier is the index itself.

        :raises UnknownNameError: If no species matches.
        """
        return self._resolve(name, "sname", "S")

    def transition_index(self, name: Hashable) -> int:
        """
        Id of the first transition called ``name``.

        :raises UnknownNameError: If no transition matches.
        """
        return self._resolve(name, "tname", "T")

    # ------------------------------------------------------------------
    # Reaction attributes
    # ------------------------------------------------------------------
    def concentration(self, s: int) -> Any:
        return self.subpart(s, "concentration")

    def rate(self, t: int) -> Optional[Rate]:
        return self.subpart(t, "rate")

    def set_concentration(self, s: int, value: Any) -> None:
        self.set_subpart(s, "concentration", value)

    def set_rate(self, t: int, value: Any) -> None:
        self.set_subpart(t, "rate", value)

    def concentrations(self) -> Dict[Hashable, Any]:
        """Concentrations keyed by species identifier."""
        return dict(zip(self.snames(), self.subparts("concentration")))

    def rates(self) -> Dict[Hashable, Optional[Rate]]:
        """Rates keyed by transition identifier."""
        return dict(zip(self.tnames(), self.subparts("rate")))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    def sprop(self, s: int) -> Any:
        return self.subpart(s, "sprop")

    def tprop(self, t: int) -> Any:
        return self.subpart(t, "tprop")

    def set_sprop(self, s: int, value: Any) -> None:
        self.set_subpart(s, "sprop", value)

    def set_tprop(self, t: int, value: Any) -> None:
        self.set_subpart(t, "tprop", value)

    def sprops(self) -> List[Any]:
        return self.subparts("sprop")

    def tprops(self) -> List[Any]:
        return self.subparts("tprop")

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------
    def copy(self) -> "PetriNet":
        dup = super().copy()
        dup._name_maps = {}
        return dup  # type: ignore[return-value]

    @classmethod
    def from_matrices(cls, tm: Any) -> "PetriNet":
        """Plain net whose arc multiplicities equal ``tm``'s entries."""
        from .matrices import matrices_to_net

        return matrices_to_net(tm)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PetriNet):
            return NotImplemented
        return (
            self.attributes == other.attributes
            and self._nparts == other._nparts
            and self._columns == other._columns
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        groups = ",".join(sorted(self.attributes)) or "plain"
        return (
            f"PetriNet[{groups}](ns={self.ns()}, nt={self.nt()}, "
            f"ni={self.ni()}, no={self.no()})"
        )
