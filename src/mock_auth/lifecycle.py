"""Per-request lifecycle: BUILT -> SYNTHESIZED -> ATTACHED -> DISPATCHED -> ASSERTED."""

from __future__ import annotations

from enum import Enum

from mock_auth.exceptions import ConfigurationError, StateError


class Phase(Enum):
    """Lifecycle phase of a pending request."""

    BUILT = "built"
    SYNTHESIZED = "synthesized"
    ATTACHED = "attached"
    DISPATCHED = "dispatched"
    ASSERTED = "asserted"


_TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.BUILT: frozenset({Phase.SYNTHESIZED, Phase.ATTACHED, Phase.DISPATCHED}),
    Phase.SYNTHESIZED: frozenset({Phase.ATTACHED}),
    # A later handle replaces the current attachment.
    Phase.ATTACHED: frozenset({Phase.SYNTHESIZED, Phase.ATTACHED, Phase.DISPATCHED}),
    Phase.DISPATCHED: frozenset({Phase.ASSERTED}),
    Phase.ASSERTED: frozenset({Phase.ASSERTED}),
}

_SENT = frozenset({Phase.DISPATCHED, Phase.ASSERTED})
_MUTATING = frozenset({Phase.SYNTHESIZED, Phase.ATTACHED, Phase.DISPATCHED})


class Lifecycle:
    """Tracks and enforces the phase of a single pending request."""

    def __init__(self) -> None:
        self._phase = Phase.BUILT

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def dispatched(self) -> bool:
        return self._phase in _SENT

    def advance(self, target: Phase) -> None:
        """
        Move to target, or raise.

        Raises:
            ConfigurationError: synthesizing, attaching or dispatching a request
                that was already dispatched
            StateError: any other transition not allowed from the current phase
        """
        if target in _TRANSITIONS[self._phase]:
            self._phase = target
            return

        if self._phase in _SENT and target in _MUTATING:
            raise ConfigurationError(
                f"Cannot move to {target.value}: request was already dispatched",
                "ALREADY_DISPATCHED",
                {"phase": self._phase.value, "target": target.value},
            )
        raise StateError(
            f"Cannot move from {self._phase.value} to {target.value}",
            "INVALID_TRANSITION",
            {"phase": self._phase.value, "target": target.value},
        )

    def __repr__(self) -> str:
        return f"Lifecycle(phase={self._phase.value!r})"
