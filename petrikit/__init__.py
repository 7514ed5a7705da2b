"""
Public API for :mod:`petrikit`.

Re-exported names
-----------------
- :class:`~petrikit.Net.petri.PetriNet` and the capability sets
  (:data:`~petrikit.Net.petri.LABELLED`, :data:`~petrikit.Net.petri.REACTION`, ...)
- net constructors and casts from :mod:`petrikit.Net.variants`
- :func:`~petrikit.Net.matrices.transition_matrices`
- :func:`~petrikit.Open.open_net.Open`, :class:`~petrikit.Open.wiring.WiringDiagram`,
  :func:`~petrikit.Open.compose.oapply` and the composition operators
- typed nets and stratification from :mod:`petrikit.Open.typed`
- :func:`~petrikit.Dynamics.vectorfield.vectorfield` and
  :func:`~petrikit.Dynamics.vectorfield.vectorfield_plan`
"""

from __future__ import annotations
from typing import List

from .version import __version__
from .Net.petri import (
    LABELLED,
    LABELLED_REACTION,
    PETRI,
    PROPERTY,
    PROPERTY_LABELLED,
    PROPERTY_LABELLED_REACTION,
    PROPERTY_REACTION,
    REACTION,
    PetriNet,
)
from .Net.variants import (
    cast,
    flatten_labels,
    labelled_petri_net,
    labelled_reaction_net,
    petri_net,
    reaction_net,
    to_labelled_petri_net,
    to_labelled_reaction_net,
    to_petri_net,
    to_property_net,
    to_reaction_net,
)
from .Net.matrices import TransitionMatrices, matrices_to_net, transition_matrices
from .Open.open_net import Open, OpenPetriNet
from .Open.wiring import WiringDiagram
from .Open.compose import compose, identity, mcopy, mmerge, oapply, oplus, otimes
from .Open.typed import (
    TypedPetriNet,
    add_params,
    add_reflexives,
    oapply_typed,
    typed_product,
)
from .Dynamics.vectorfield import ode_rhs, vectorfield, vectorfield_plan

__all__: List[str] = [
    "__version__",
    "PETRI",
    "LABELLED",
    "REACTION",
    "LABELLED_REACTION",
    "PROPERTY",
    "PROPERTY_LABELLED",
    "PROPERTY_REACTION",
    "PROPERTY_LABELLED_REACTION",
    "PetriNet",
    "petri_net",
    "labelled_petri_net",
    "reaction_net",
    "labelled_reaction_net",
    "cast",
    "to_petri_net",
    "to_labelled_petri_net",
    "to_reaction_net",
    "to_labelled_reaction_net",
    "to_property_net",
    "flatten_labels",
    "TransitionMatrices",
    "transition_matrices",
    "matrices_to_net",
    "Open",
    "OpenPetriNet",
    "WiringDiagram",
    "oapply",
    "compose",
    "otimes",
    "oplus",
    "identity",
    "mcopy",
    "mmerge",
    "TypedPetriNet",
    "oapply_typed",
    "add_params",
    "add_reflexives",
    "typed_product",
    "vectorfield",
    "vectorfield_plan",
    "ode_rhs",
]
