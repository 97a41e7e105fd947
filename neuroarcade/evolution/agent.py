"""
Agents: one network plus the bookkeeping the evolution loop reads.

The engine only ever reads `fitness` and `active`; `state` belongs to
the game (positions, scores, board features) and is opaque here.
"""
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..networks import NeuralNetwork


@dataclass(eq=False)
class Agent:
    """A simulated participant owning exactly one network."""
    network: NeuralNetwork
    fitness: float = 0.0
    active: bool = True
    state: Dict[str, Any] = field(default_factory=dict)
    last_action: Optional[Dict[str, Any]] = None
    generation: int = 1
    id: str = ''

    def __post_init__(self):
        if not self.id:
            self.id = str(uuid.uuid4())[:8]

    def think(self, inputs) -> List[float]:
        """Run the agent's network on an input vector."""
        return self.network.predict(inputs)

    def deactivate(self) -> None:
        """Mark the agent as finished for this generation."""
        self.active = False
