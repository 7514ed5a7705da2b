from __future__ import annotations


class PetriError(RuntimeError):
    """Base class for all petrikit-specific errors."""


class UnknownNameError(PetriError, KeyError):
    """Raised when a species or transition name cannot be resolved to an id."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return RuntimeError.__str__(self)


class MissingAttributeError(PetriError):
    """Raised when a required attribute column is absent or not fully supplied."""


class SchemaMismatchError(PetriError):
    """Raised when nets with different attribute sets are combined."""


class WiringError(PetriError):
    """Raised for malformed wiring diagrams or inconsistent gluing."""


class ArityMismatchError(WiringError):
    """Raised when port bindings and legs disagree in number or length."""


class UnknownPortError(WiringError):
    """Raised when a wire references a nonexistent junction, box or port."""


class UnboundBoxError(WiringError):
    """Raised when a box of a wiring diagram has no open net bound to it."""


class RateEvaluationError(PetriError):
    """Raised when a transition rate cannot be classified or evaluated."""
