from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd

from ..Net.petri import LABELLED, LABELLED_REACTION, PetriNet
from ..Net.rates import Constant
from ..exceptions import MissingAttributeError, UnknownNameError


# Tokens that denote the empty side of a transition
_EMPTY_SIDE_TOKENS = {"", "0", "Ø", "ø", "∅"}


def net_to_tables(net: PetriNet) -> Dict[str, pd.DataFrame]:
    """
    Export the four relational tables of ``net`` as DataFrames.

    Keys are ``"S"``, ``"T"``, ``"I"`` and ``"O"``; every frame is indexed
    by the 1-based part id. ``S``/``T`` hold the attribute columns the net
    carries; ``I`` has columns ``it``/``is`` and ``O`` has ``ot``/``os``.

    :param net: Net to export.
    :type net: PetriNet
    :returns: Mapping ``object -> DataFrame``.
    :rtype: Dict[str, pandas.DataFrame]
    """
    tables: Dict[str, pd.DataFrame] = {}
    for ob in ("S", "T", "I", "O"):
        columns = net.schema.columns(ob)
        index = pd.Index(list(net.parts(ob)), name="id")
        data = {c: net.subparts(c) for c in columns}
        tables[ob] = pd.DataFrame(data, index=index, columns=columns)
    return tables


def _parse_side(side: Any) -> List[str]:
    """
    Parse ``"2I + S"`` into ``["I", "I", "S"]``.

    Coefficients may be written ``2I``, ``2 I`` or ``2*I``; the empty side
    is written as ``""``, ``"0"`` or ``"∅"``.
    """
    side = "" if side is None or (isinstance(side, float) and pd.isna(side)) else str(side)
    side = side.strip()
    if side in _EMPTY_SIDE_TOKENS:
        return []

    out: List[str] = []
    for term in (t.strip() for t in side.split("+")):
        if not term:
            continue
        term = term.replace("*", " ")
        i = 0
        while i < len(term) and term[i].isdigit():
            i += 1
        coeff = int(term[:i]) if i > 0 else 1
        name = term[i:].strip()
        if not name:
            raise ValueError(f"Missing species name in term {term!r}")
        out.extend([name] * coeff)
    return out


def _format_side(names: Sequence[Any]) -> str:
    if not names:
        return "∅"
    counts: Dict[Any, int] = {}
    for n in names:
        counts[n] = counts.get(n, 0) + 1
    return " + ".join(f"{n}" if c == 1 else f"{c}{n}" for n, c in counts.items())


def net_from_transition_table(
    df: pd.DataFrame,
    species: Optional[Union[Sequence[str], Mapping[str, Any]]] = None,
) -> PetriNet:
    """
    Build a labelled net from a pandas table of transitions.

    Expected columns:

    * ``name`` – transition name
    * ``inputs`` – string, e.g. ``"S + I"``
    * ``outputs`` – string, e.g. ``"2I"``
    * ``rate`` – optional rate value

    Without a ``rate`` column the result is a labelled Petri net; species
    are taken from ``species`` (a sequence of names) or, when it is
    ``None``, in order of first appearance. With a ``rate`` column the
    result is a labelled reaction net and ``species`` must map every name
    to its concentration.

    :param df: Transition table.
    :type df: pandas.DataFrame
    :param species: Species names, or ``name -> concentration``.
    :returns: Constructed net.
    :rtype: PetriNet
    :raises ValueError: If required columns are missing.
    :raises MissingAttributeError: If rates are given without concentrations.
    :raises UnknownNameError: If a side names a species not in ``species``.

    .. code-block:: python

        df = pd.DataFrame(
            {"name": ["inf", "rec"], "inputs": ["S + I", "I"], "outputs": ["2I", "R"]}
        )
        sir = net_from_transition_table(df)
    """
    for column in ("name", "inputs", "outputs"):
        if column not in df.columns:
            raise ValueError(f"DataFrame must contain a {column!r} column.")
    with_rates = "rate" in df.columns

    rows = [
        (row["name"], _parse_side(row["inputs"]), _parse_side(row["outputs"]))
        for _, row in df.iterrows()
    ]

    if with_rates and not isinstance(species, Mapping):
        raise MissingAttributeError(
            "A 'rate' column needs species concentrations (name -> value)."
        )
    if species is None:
        names: List[str] = []
        for _, ins, outs in rows:
            for n in ins + outs:
                if n not in names:
                    names.append(n)
    else:
        names = list(species)

    net = PetriNet(LABELLED_REACTION if with_rates else LABELLED)
    if with_rates:
        net.add_species(len(names), sname=names, concentration=[species[n] for n in names])
    else:
        net.add_species(len(names), sname=names)

    rates = list(df["rate"]) if with_rates else [None] * len(rows)
    for (tname, ins, outs), rate in zip(rows, rates):
        if with_rates and isinstance(rate, float) and pd.isna(rate):
            rate = None  # blank cell: resolved from the parameter vector
        try:
            ins_ids = [net.species_index(n) for n in ins]
            outs_ids = [net.species_index(n) for n in outs]
        except UnknownNameError as exc:
            raise UnknownNameError(f"Transition {tname!r}: {exc}") from exc
        t = net.add_transition(tname=tname, rate=rate) if with_rates else net.add_transition(tname=tname)
        net.add_inputs(len(ins_ids), t, ins_ids)
        net.add_outputs(len(outs_ids), t, outs_ids)
    return net


def net_to_transition_table(net: PetriNet) -> pd.DataFrame:
    """
    Inverse of :func:`net_from_transition_table` for labelled nets.

    Constant rates are written as plain numbers; other rate variants are
    stored as-is.

    :param net: Net to export (names fall back to indices).
    :returns: DataFrame with ``name``, ``inputs``, ``outputs`` and, for
        reaction nets, ``rate``.
    :rtype: pandas.DataFrame
    """
    records: List[Dict[str, Any]] = []
    for t in net.parts("T"):
        rec: Dict[str, Any] = {
            "name": net.tname(t),
            "inputs": _format_side([net.sname(s) for s in net.inputs(t)]),
            "outputs": _format_side([net.sname(s) for s in net.outputs(t)]),
        }
        if net.has_reaction:
            rate = net.rate(t)
            rec["rate"] = rate.value if isinstance(rate, Constant) else rate
        records.append(rec)
    columns = ["name", "inputs", "outputs"] + (["rate"] if net.has_reaction else [])
    return pd.DataFrame.from_records(records, columns=columns)
