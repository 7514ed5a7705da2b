# Net/matrices.py
"""
Transition (incidence) matrices of a Petri net.

Both matrices have shape ``(nt, ns)``: row ``t - 1`` / column ``s - 1``
counts the input (resp. output) arcs between transition ``t`` and
species ``s``. They are derived on demand and never cached on the net.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .petri import PetriNet


@dataclass(frozen=True)
class TransitionMatrices:
    """
    Input and output incidence matrices of a Petri net.

    :param input: ``input[t-1, s-1]`` = number of input arcs ``s -> t``.
    :type input: numpy.ndarray
    :param output: ``output[t-1, s-1]`` = number of output arcs ``t -> s``.
    :type output: numpy.ndarray
    """

    input: np.ndarray
    output: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", np.asarray(self.input))
        object.__setattr__(self, "output", np.asarray(self.output))
        for mat in (self.input, self.output):
            if not np.issubdtype(mat.dtype, np.integer):
                raise ValueError(f"Transition matrices must be integer, got {mat.dtype}")
        if self.input.shape != self.output.shape or self.input.ndim != 2:
            raise ValueError(
                f"Input/output matrices must share a 2-D shape, got "
                f"{self.input.shape} and {self.output.shape}"
            )
        if (self.input < 0).any() or (self.output < 0).any():
            raise ValueError("Transition matrices must be non-negative")

    @property
    def shape(self):
        """``(n_transitions, n_species)``."""
        return self.input.shape

    @property
    def stoichiometry(self) -> np.ndarray:
        """Net change per firing, ``output - input`` (transitions x species)."""
        return self.output - self.input

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransitionMatrices):
            return NotImplemented
        return np.array_equal(self.input, other.input) and np.array_equal(
            self.output, other.output
        )

    __hash__ = None  # type: ignore[assignment]


def transition_matrices(net: PetriNet, *, dtype=np.int64) -> TransitionMatrices:
    """
    Build the input/output matrices of ``net`` in O(|I| + |O|).

    :param net: Any Petri-net variant.
    :type net: PetriNet
    :param dtype: Integer dtype of the result.
    :returns: Fresh matrices of shape ``(nt, ns)``.
    :rtype: TransitionMatrices

    .. code-block:: python

        net = petri_net(3, ((1, 2), (2, 2)), (2, 3))
        tm = transition_matrices(net)
        tm.input    # [[1, 1, 0], [0, 1, 0]]
        tm.output   # [[0, 2, 0], [0, 0, 1]]
    """
    shape = (net.nt(), net.ns())
    inp = np.zeros(shape, dtype=dtype)
    out = np.zeros(shape, dtype=dtype)
    # np.add.at accumulates repeated (t, s) pairs
    if net.ni():
        np.add.at(
            inp,
            (np.asarray(net.subparts("it")) - 1, np.asarray(net.subparts("is")) - 1),
            1,
        )
    if net.no():
        np.add.at(
            out,
            (np.asarray(net.subparts("ot")) - 1, np.asarray(net.subparts("os")) - 1),
            1,
        )
    return TransitionMatrices(inp, out)


def matrices_to_net(tm: TransitionMatrices) -> PetriNet:
    """
    Rebuild a plain :class:`PetriNet` from its transition matrices.

    The result has ``tm.shape[1]`` species, ``tm.shape[0]`` transitions and
    ``tm.input[t, s]`` (resp. ``tm.output[t, s]``) parallel arcs between
    transition ``t + 1`` and species ``s + 1``, so
    ``transition_matrices(matrices_to_net(tm)) == tm``.

    :param tm: Transition matrices.
    :type tm: TransitionMatrices
    :returns: New plain Petri net.
    :rtype: PetriNet
    """
    m, n = tm.shape
    net = PetriNet()
    net.add_species(n)
    net.add_transitions(m)
    for t in range(m):
        for s in range(n):
            net.add_inputs(int(tm.input[t, s]), t + 1, s + 1)
            net.add_outputs(int(tm.output[t, s]), t + 1, s + 1)
    return net
