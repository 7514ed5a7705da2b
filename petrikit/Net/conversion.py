# Net/conversion.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Set, Tuple

import networkx as nx
from networkx.algorithms.isomorphism import categorical_edge_match, categorical_node_match

from .petri import PetriNet

_SPECIES_ATTRS = ("concentration", "sprop")
_TRANSITION_ATTRS = ("rate", "tprop")


# ======================================================================
# Petri net  <->  Bipartite
# ======================================================================


def to_networkx(
    net: PetriNet,
    *,
    species_prefix: str = "S:",
    transition_prefix: str = "T:",
    bipartite_values: Tuple[int, int] = (0, 1),
    include_attrs: bool = True,
) -> nx.DiGraph:
    """
    Export a Petri net to a **bipartite** NetworkX DiGraph with arcs
    ``species → transition → species``.

    Node ids are ``f"{species_prefix}{s}"`` and
    ``f"{transition_prefix}{t}"``. Every node carries ``kind``
    (``"species"``/``"transition"``), ``bipartite``, ``id`` and ``label``
    (the name, or the index for unlabelled nets). Edges carry ``role``
    (``"input"``/``"output"``) and ``stoich`` (the arc multiplicity).

    :param net: Net to export.
    :param species_prefix: Prefix of species node ids.
    :param transition_prefix: Prefix of transition node ids.
    :param bipartite_values: Bipartite markers ``(species, transition)``.
    :param include_attrs: If ``True``, copy ``concentration``/``sprop`` and
        ``rate``/``tprop`` onto the nodes when the net carries them.
    :returns: Bipartite DiGraph.

    **Examples**
    ----------
    >>> from petrikit.Net.variants import labelled_petri_net
    >>> net = labelled_petri_net(["S", "I"], ("inf", (("S", "I"), ("I", "I"))))
    >>> G = to_networkx(net)
    >>> G.edges["T:1", "S:2"]["stoich"]
    2
    """
    G = nx.DiGraph()
    species_val, transition_val = bipartite_values

    for s in net.parts("S"):
        attrs: Dict[str, Any] = {
            "kind": "species",
            "bipartite": species_val,
            "id": s,
            "label": net.sname(s),
        }
        if include_attrs:
            for column in _SPECIES_ATTRS:
                if net.has_subpart(column):
                    attrs[column] = net.subpart(s, column)
        G.add_node(f"{species_prefix}{s}", **attrs)

    for t in net.parts("T"):
        attrs = {
            "kind": "transition",
            "bipartite": transition_val,
            "id": t,
            "label": net.tname(t),
        }
        if include_attrs:
            for column in _TRANSITION_ATTRS:
                if net.has_subpart(column):
                    attrs[column] = net.subpart(t, column)
        G.add_node(f"{transition_prefix}{t}", **attrs)

    def bump(u: str, v: str, role: str) -> None:
        if G.has_edge(u, v):
            G.edges[u, v]["stoich"] += 1
        else:
            G.add_edge(u, v, role=role, stoich=1)

    for t in net.parts("T"):
        tnode = f"{transition_prefix}{t}"
        for s in net.inputs(t):
            bump(f"{species_prefix}{s}", tnode, "input")
        for s in net.outputs(t):
            bump(tnode, f"{species_prefix}{s}", "output")
    return G


def _ordered(G: nx.DiGraph, nodes: Iterable[Any]) -> List[Any]:
    nodes = list(nodes)
    if all("id" in G.nodes[n] for n in nodes):
        return sorted(nodes, key=lambda n: G.nodes[n]["id"])
    return nodes


def from_networkx(
    G: nx.DiGraph,
    *,
    labelled: bool = True,
    stoich_attr: str = "stoich",
) -> PetriNet:
    """
    Rebuild a :class:`PetriNet` from a bipartite graph produced by
    :func:`to_networkx` (or any DiGraph following the same conventions).

    Nodes are split on their ``kind`` attribute and numbered by their ``id``
    attribute when every node has one, otherwise in graph order. The
    ``reaction`` and ``properties`` groups are restored when every node of
    both kinds carries the matching attributes.

    :param G: Bipartite species/transition graph.
    :param labelled: If ``True``, read node ``label`` attributes as names.
    :param stoich_attr: Edge attribute holding arc multiplicity (default 1).
    :returns: Reconstructed net.
    :raises ValueError: If a node has no recognised ``kind`` or an edge does
        not connect a species with a transition.
    """
    species: List[Any] = []
    transitions: List[Any] = []
    for n, d in G.nodes(data=True):
        kind = d.get("kind")
        if kind == "species":
            species.append(n)
        elif kind == "transition":
            transitions.append(n)
        else:
            raise ValueError(f"Node {n!r} has no 'kind' of species/transition")
    species = _ordered(G, species)
    transitions = _ordered(G, transitions)

    def carries(nodes: List[Any], column: str) -> bool:
        return all(column in G.nodes[n] for n in nodes)

    groups: Set[str] = set()
    if labelled:
        groups.add("labels")
    if carries(species, "concentration") and carries(transitions, "rate"):
        groups.add("reaction")
    if carries(species, "sprop") and carries(transitions, "tprop"):
        groups.add("properties")

    net = PetriNet(groups)
    s_cols = [c for c in ("sname",) + _SPECIES_ATTRS if net.has_subpart(c)]
    t_cols = [c for c in ("tname",) + _TRANSITION_ATTRS if net.has_subpart(c)]

    def node_values(n: Any, columns: List[str]) -> Dict[str, Any]:
        d = G.nodes[n]
        return {c: d.get("label") if c in ("sname", "tname") else d[c] for c in columns}

    s_id = {n: net.add_species(**node_values(n, s_cols)) for n in species}
    t_id = {n: net.add_transition(**node_values(n, t_cols)) for n in transitions}

    # iterate per transition so arcs come out grouped by transition
    for n in transitions:
        for u, _, d in G.in_edges(n, data=True):
            if u not in s_id:
                raise ValueError(f"Edge {u!r} -> {n!r} does not start at a species")
            net.add_inputs(int(d.get(stoich_attr, 1)), t_id[n], s_id[u])
        for _, v, d in G.out_edges(n, data=True):
            if v not in s_id:
                raise ValueError(f"Edge {n!r} -> {v!r} does not end at a species")
            net.add_outputs(int(d.get(stoich_attr, 1)), t_id[n], s_id[v])
    return net


# ======================================================================
# Structural comparison
# ======================================================================


def is_isomorphic(a: PetriNet, b: PetriNet, *, match_labels: bool = False) -> bool:
    """
    Whether two nets have the same incidence structure up to a relabelling
    of species and transitions.

    :param a: First net.
    :param b: Second net.
    :param match_labels: If ``True``, the relabelling must also preserve
        species/transition names.
    :returns: ``True`` if an isomorphism exists.
    :rtype: bool
    """
    if (a.ns(), a.nt(), a.ni(), a.no()) != (b.ns(), b.nt(), b.ni(), b.no()):
        return False
    attrs = ["kind", "label"] if match_labels else ["kind"]
    return nx.is_isomorphic(
        to_networkx(a, include_attrs=False),
        to_networkx(b, include_attrs=False),
        node_match=categorical_node_match(attrs, [None] * len(attrs)),
        edge_match=categorical_edge_match(["role", "stoich"], [None, 1]),
    )
