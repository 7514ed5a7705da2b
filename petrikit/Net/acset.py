# Net/acset.py
"""
Append-only relational table store ("attributed C-set").

An :class:`ACSet` holds one table per *object* of a :class:`Schema`. Rows
("parts") are identified by dense 1-based integers assigned at insertion.
Two kinds of columns exist:

* **homs** (foreign keys) point from a part of one object to a part of
  another object. Every hom is indexed, so :meth:`ACSet.incident` answers
  "which parts point at id ``k``" in amortised O(1).
* **attrs** carry arbitrary values. A column may declare a coercion
  function applied on every write.

Parts are never deleted and identifiers are never reused.
"""

from __future__ import annotations

import copy
from collections import defaultdict
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    DefaultDict,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
)

import numpy as np

from ..exceptions import MissingAttributeError


@dataclass(frozen=True)
class Schema:
    """
    Description of the tables held by an :class:`ACSet`.

    :param obs: Object (table) names, in declaration order.
    :type obs: Tuple[str, ...]
    :param homs: Foreign keys ``name -> (domain object, codomain object)``.
    :type homs: Mapping[str, Tuple[str, str]]
    :param attrs: Attribute columns ``name -> domain object``.
    :type attrs: Mapping[str, str]
    :param coercions: Optional per-attribute coercion ``name -> callable``.
    :type coercions: Mapping[str, Callable[[Any], Any]]
    """

    obs: Tuple[str, ...]
    homs: Mapping[str, Tuple[str, str]] = field(default_factory=dict)
    attrs: Mapping[str, str] = field(default_factory=dict)
    coercions: Mapping[str, Callable[[Any], Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name, (dom, codom) in self.homs.items():
            if dom not in self.obs or codom not in self.obs:
                raise ValueError(f"Hom {name!r} references an unknown object")
        for name, dom in self.attrs.items():
            if dom not in self.obs:
                raise ValueError(f"Attr {name!r} references an unknown object")
            if name in self.homs:
                raise ValueError(f"Column {name!r} declared twice")

    def columns(self, ob: str) -> List[str]:
        """Return every hom and attr whose domain is ``ob``."""
        homs = [h for h, (dom, _) in self.homs.items() if dom == ob]
        attrs = [a for a, dom in self.attrs.items() if dom == ob]
        return homs + attrs

    def domain(self, name: str) -> str:
        """
        Domain object of a column.

        :raises MissingAttributeError: If the schema has no such column.
        """
        if name in self.homs:
            return self.homs[name][0]
        if name in self.attrs:
            return self.attrs[name]
        raise MissingAttributeError(f"Schema has no column {name!r}")


class ACSet:
    """
    Generic append-only relational store over a :class:`Schema`.

    :param schema: Tables and columns carried by this instance.
    :type schema: Schema
    """

    def __init__(self, schema: Schema) -> None:
        self.schema = schema
        self._nparts: Dict[str, int] = {ob: 0 for ob in schema.obs}
        # column name -> list of values; position k holds part k + 1
        self._columns: Dict[str, List[Any]] = {
            name: [] for name in list(schema.homs) + list(schema.attrs)
        }
        # hom -> target id -> part ids pointing at it (in insertion order)
        self._index: Dict[str, DefaultDict[int, List[int]]] = {
            h: defaultdict(list) for h in schema.homs
        }

    # ------------------------------------------------------------------
    # Counting
    # ------------------------------------------------------------------
    def nparts(self, ob: str) -> int:
        """Number of parts of object ``ob``."""
        try:
            return self._nparts[ob]
        except KeyError:
            raise MissingAttributeError(f"Schema has no object {ob!r}") from None

    def parts(self, ob: str) -> range:
        """Identifiers of all parts of ``ob`` (``1..n``)."""
        return range(1, self.nparts(ob) + 1)

    def has_subpart(self, name: str) -> bool:
        """Whether this instance carries the column ``name``."""
        return name in self._columns

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------
    def add_part(self, ob: str, **values: Any) -> int:
        """
        Append one part to ``ob``.

        :param ob: Object name.
        :type ob: str
        :param values: Column values for the new part.
        :returns: Identifier of the new part.
        :rtype: int
        """
        return self.add_parts(ob, 1, **{k: [v] for k, v in values.items()})[0]

    def add_parts(self, ob: str, n: int, **values: Any) -> range:
        """
        Append ``n`` parts to ``ob``.

        Each keyword is a column of ``ob``; its value is either a scalar
        broadcast to every new part or a list, range or numpy array of
        length ``n``; anything else (including tuples) is a scalar. Every
        column without a supplied value is filled with ``None``.

        Validation (column names, sequence lengths, foreign-key targets)
        happens before any table is touched.

        :param ob: Object name.
        :type ob: str
        :param n: Number of parts to add (``>= 0``).
        :type n: int
        :returns: Contiguous range of new identifiers.
        :rtype: range
        :raises MissingAttributeError: If a keyword is not a column of ``ob``.
        :raises IndexError: If a foreign key points to a nonexistent part.
        :raises ValueError: If ``n`` is negative or a sequence has the wrong length.
        """
        n = int(n)
        if n < 0:
            raise ValueError(f"Cannot add a negative number of parts ({n})")
        start = self.nparts(ob) + 1
        own = self.schema.columns(ob)

        rows: Dict[str, List[Any]] = {}
        for name, value in values.items():
            if name not in own:
                raise MissingAttributeError(
                    f"{type(self).__name__} has no column {name!r} on {ob!r}"
                )
            rows[name] = self._broadcast(name, value, n)

        for name in own:
            column = rows.setdefault(name, [None] * n)
            if name in self.schema.homs:
                codom = self.schema.homs[name][1]
                limit = self._nparts[codom]
                for target in column:
                    if target is None or not 1 <= int(target) <= limit:
                        raise IndexError(
                            f"{name}={target!r} does not reference an existing {codom!r}"
                        )
            elif name in self.schema.coercions:
                coerce = self.schema.coercions[name]
                rows[name] = [v if v is None else coerce(v) for v in column]

        for name in own:
            col = rows[name]
            if name in self.schema.homs:
                col = [int(v) for v in col]
                idx = self._index[name]
                for offset, target in enumerate(col):
                    idx[target].append(start + offset)
            self._columns[name].extend(col)
        self._nparts[ob] += n
        return range(start, start + n)

    @staticmethod
    def _broadcast(name: str, value: Any, n: int) -> List[Any]:
        if not isinstance(value, (list, range, np.ndarray)):
            return [value] * n
        seq = value.tolist() if isinstance(value, np.ndarray) else list(value)
        if len(seq) != n:
            raise ValueError(
                f"Column {name!r} received {len(seq)} values for {n} parts"
            )
        return seq

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    def _column(self, name: str) -> List[Any]:
        try:
            return self._columns[name]
        except KeyError:
            raise MissingAttributeError(
                f"{type(self).__name__} carries no {name!r} column"
            ) from None

    def subpart(self, part: int, name: str) -> Any:
        """
        Value of column ``name`` for ``part``.

        :raises MissingAttributeError: If the column is not carried.
        :raises IndexError: If ``part`` does not exist.
        """
        column = self._column(name)
        dom = self.schema.domain(name)
        if not 1 <= int(part) <= self._nparts[dom]:
            raise IndexError(f"{dom} {part!r} does not exist")
        return column[int(part) - 1]

    def subparts(self, name: str) -> List[Any]:
        """All values of column ``name``, in part order (a copy)."""
        return list(self._column(name))

    def set_subpart(self, part: int, name: str, value: Any) -> None:
        """
        Overwrite the attribute ``name`` of ``part``.

        Foreign keys are immutable once written.

        :raises MissingAttributeError: If the column is not carried.
        :raises ValueError: If ``name`` is a foreign key.
        """
        column = self._column(name)
        if name in self.schema.homs:
            raise ValueError(f"Foreign key {name!r} cannot be reassigned")
        dom = self.schema.domain(name)
        if not 1 <= int(part) <= self._nparts[dom]:
            raise IndexError(f"{dom} {part!r} does not exist")
        coerce = self.schema.coercions.get(name)
        if coerce is not None and value is not None:
            value = coerce(value)
        column[int(part) - 1] = value

    def incident(self, value: int, hom: str) -> List[int]:
        """
        Parts whose foreign key ``hom`` equals ``value``.

        :param value: Target identifier.
        :param hom: Foreign-key column.
        :returns: Part ids in insertion order (a copy).
        :rtype: List[int]
        """
        if hom not in self._index:
            raise MissingAttributeError(f"{hom!r} is not an indexed foreign key")
        return list(self._index[hom].get(int(value), ()))

    # ------------------------------------------------------------------
    # Copying
    # ------------------------------------------------------------------
    def copy(self) -> "ACSet":
        """Independent copy (attribute values are shallow-copied)."""
        dup = copy.copy(self)
        dup._nparts = dict(self._nparts)
        dup._columns = {k: list(v) for k, v in self._columns.items()}
        dup._index = {
            h: defaultdict(list, {k: list(v) for k, v in idx.items()})
            for h, idx in self._index.items()
        }
        return dup

    def copy_parts(
        self, other: "ACSet", obs: Optional[Iterable[str]] = None
    ) -> Dict[str, range]:
        """
        Append every part of ``other`` to this instance.

        Foreign keys are translated into the new id space and attribute
        columns carried by both instances are copied. Columns only this
        instance carries are left as ``None``.

        :param other: Source instance; must share object and hom names.
        :param obs: Objects to copy (default: all of this schema's objects).
        :returns: Mapping ``object -> range of new ids``.
        :rtype: Dict[str, range]
        """
        obs = list(obs) if obs is not None else list(self.schema.obs)
        offsets = {ob: self.nparts(ob) for ob in obs}
        created: Dict[str, range] = {}
        for ob in obs:
            values: Dict[str, Any] = {}
            for name in self.schema.columns(ob):
                if not other.has_subpart(name):
                    continue
                col = other.subparts(name)
                if name in self.schema.homs:
                    shift = offsets[self.schema.homs[name][1]]
                    col = [v + shift for v in col]
                values[name] = col
            created[ob] = self.add_parts(ob, other.nparts(ob), **values)
        return created

    def __repr__(self) -> str:
        counts = ", ".join(f"{ob}={n}" for ob, n in self._nparts.items())
        return f"{type(self).__name__}({counts})"
