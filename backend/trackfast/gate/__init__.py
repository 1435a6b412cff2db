"""Edge Gate — earliest validation point for inbound tracking calls."""

from trackfast.gate.edge_gate import EdgeGate, GateOutcome
from trackfast.gate.middleware import EdgeGateMiddleware

__all__ = ["EdgeGate", "EdgeGateMiddleware", "GateOutcome"]
