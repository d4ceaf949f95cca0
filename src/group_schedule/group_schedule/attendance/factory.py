from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import WritePhase
from .gates.base import WriteGate
from .gates.outcome_gate import OutcomeGate
from .gates.rsvp_gate import RsvpGate


@dataclass
class WriteGateFactory:
    """Factory Pattern: choose the gate that guards a write phase."""

    def for_phase(self, phase: WritePhase) -> WriteGate:
        if phase == WritePhase.RSVP:
            return RsvpGate()
        return OutcomeGate()
