"""
Types exchanged between the host scheduler and the scoring plugin.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import numpy as np

MAX_NODE_SCORE = 100


@dataclass
class Pod:
    name: str
    namespace: str = "default"
    labels: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_manifest(cls, manifest: dict) -> "Pod":
        """Build from a Kubernetes pod object as sent by the scheduler."""
        metadata = (manifest or {}).get("metadata") or {}
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", "default"),
            labels=dict(metadata.get("labels") or {}),
        )


@dataclass
class NodeScore:
    name: str
    score: float


class PreScoreResult(str, Enum):
    SCORED = "scored"
    NO_NODES_AVAILABLE = "no_nodes_available"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class Decision:
    """Outcome of one Normalize-Score phase."""
    node_name: str
    index: int
    explored: bool
    raw_score: float
    reward: float


@dataclass
class CycleContext:
    """
    State for one pod's scheduling attempt.

    Created by the host before Pre-Score and discarded after Normalize-Score.
    A context is never shared between pods.
    """
    pod: Optional[Pod] = None
    node_map: Dict[str, int] = field(default_factory=dict)
    state: Optional[np.ndarray] = None
    prediction: Optional[np.ndarray] = None
    degraded: bool = False
    decision: Optional[Decision] = None

    @property
    def node_names(self) -> List[str]:
        """Candidate nodes in row order."""
        return sorted(self.node_map, key=self.node_map.get)
