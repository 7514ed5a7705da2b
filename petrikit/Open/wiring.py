# Open/wiring.py
"""
Undirected wiring diagrams.

A diagram has *junctions*, *boxes* with numbered *ports* and a list of
*outer ports*. Every port (inner or outer) is attached to at most one
junction. Boxes and ports are numbered from 1 in insertion order; box
names need not be unique.
"""

from __future__ import annotations

from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, Union

from ..exceptions import UnknownPortError


class WiringDiagram:
    """
    Mutable undirected wiring diagram.

    .. code-block:: python

        wd = WiringDiagram()
        for j in ("s", "i", "r"):
            wd.add_junction(j)
        wd.add_box("infection", ["s", "i"])
        wd.add_box("recovery", ["i", "r"])
        wd.set_outer(["s", "i", "r"])
    """

    def __init__(self) -> None:
        self._junctions: List[Hashable] = []
        self._junction_ids: Dict[Hashable, int] = {}
        self._boxes: List[Tuple[Hashable, List[Optional[int]]]] = []
        self._outer: List[int] = []

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def add_junction(self, name: Optional[Hashable] = None) -> int:
        """
        Add a junction and return its id.

        :param name: Junction name; defaults to the new id.
        :raises ValueError: If a junction with the same name exists.
        """
        jid = len(self._junctions) + 1
        name = jid if name is None else name
        if name in self._junction_ids:
            raise ValueError(f"Junction {name!r} already exists")
        self._junctions.append(name)
        self._junction_ids[name] = jid
        return jid

    def add_box(
        self, name: Hashable, junctions: Union[int, Sequence[Optional[Hashable]]]
    ) -> int:
        """
        Add a box and return its id.

        :param name: Box name, used to look up the bound net in :func:`oapply`.
        :param junctions: Either the number of (initially unwired) ports or
            the junction of each port, in port order (``None`` leaves a port
            unwired).
        :raises UnknownPortError: If a junction does not exist.
        """
        if isinstance(junctions, int):
            ports: List[Optional[int]] = [None] * junctions
        else:
            ports = [None if j is None else self._junction(j) for j in junctions]
        self._boxes.append((name, ports))
        return len(self._boxes)

    def add_wire(self, junction: Hashable, box: int, port: int) -> None:
        """
        Attach port ``port`` of box ``box`` to ``junction``.

        :raises UnknownPortError: If the junction, box or port does not exist.
        """
        jid = self._junction(junction)
        ports = self._ports(box)
        if not 1 <= port <= len(ports):
            raise UnknownPortError(f"Box {box} has no port {port}")
        ports[port - 1] = jid

    def set_outer(self, junctions: Iterable[Hashable]) -> None:
        """Declare the outer ports, one per listed junction."""
        self._outer = [self._junction(j) for j in junctions]

    @classmethod
    def relation(
        cls,
        outer: Sequence[Hashable],
        *boxes: Tuple[Hashable, Sequence[Hashable]],
        **named: Sequence[Hashable],
    ) -> "WiringDiagram":
        """
        Literal form: junctions are created on first mention.

        Boxes are ``(name, junctions)`` pairs, or keyword arguments for
        boxes with distinct names (positional boxes come first).

        .. code-block:: python

            sir = WiringDiagram.relation(
                ("s", "i", "r"),
                ("infection", ("s", "i")),
                ("recovery", ("i", "r")),
            )
        """
        wd = cls()
        all_boxes = list(boxes) + list(named.items())
        for j in list(outer) + [j for _, js in all_boxes for j in js]:
            if j not in wd._junction_ids:
                wd.add_junction(j)
        for name, js in all_boxes:
            wd.add_box(name, list(js))
        wd.set_outer(outer)
        return wd

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def _junction(self, name: Hashable) -> int:
        try:
            return self._junction_ids[name]
        except (KeyError, TypeError):
            raise UnknownPortError(f"No junction named {name!r}") from None

    def _ports(self, box: int) -> List[Optional[int]]:
        if not isinstance(box, int) or not 1 <= box <= len(self._boxes):
            raise UnknownPortError(f"No box with id {box!r}")
        return self._boxes[box - 1][1]

    @property
    def junctions(self) -> Tuple[Hashable, ...]:
        return tuple(self._junctions)

    @property
    def boxes(self) -> Tuple[Tuple[Hashable, Tuple[Optional[int], ...]], ...]:
        """``(name, junction id per port)`` for every box."""
        return tuple((name, tuple(ports)) for name, ports in self._boxes)

    @property
    def outer(self) -> Tuple[int, ...]:
        """Junction id of every outer port."""
        return tuple(self._outer)

    def nboxes(self) -> int:
        return len(self._boxes)

    def njunctions(self) -> int:
        return len(self._junctions)

    def box_name(self, box: int) -> Hashable:
        self._ports(box)
        return self._boxes[box - 1][0]

    def junction_name(self, junction: int) -> Hashable:
        return self._junctions[junction - 1]

    def port_junction(self, box: int, port: int) -> Optional[int]:
        """Junction of a box port, or ``None`` if unwired."""
        ports = self._ports(box)
        if not 1 <= port <= len(ports):
            raise UnknownPortError(f"Box {box} has no port {port}")
        return ports[port - 1]

    def __repr__(self) -> str:
        return (
            f"WiringDiagram(junctions={self.njunctions()}, boxes={self.nboxes()}, "
            f"outer={len(self._outer)})"
        )


def identity_diagram(n_ports: int, name: Hashable = "box") -> WiringDiagram:
    """One box whose ``n_ports`` ports are wired straight to the outer ports."""
    wd = WiringDiagram()
    js = [wd.add_junction() for _ in range(n_ports)]
    wd.add_box(name, js)
    wd.set_outer(js)
    return wd
