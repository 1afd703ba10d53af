"""
Value functions used by the scheduling agent.

The agent holds two instances of the same value function, an online one that
is fitted every learning step and a target one that only changes when the
online weights are cloned into it.
"""

from typing import Dict, List, Optional, Protocol, runtime_checkable

import numpy as np
import torch
import torch.nn.functional as F

from drl_scheduler.models.network import NodeQNetwork
from drl_scheduler.utils.exceptions import FitError, PredictionError
from drl_scheduler.utils.logging_config import get_logger

logger = get_logger("ValueFunction")


@runtime_checkable
class ValueFunction(Protocol):
    """Opaque predict/fit/clone capability."""

    name: str
    version: int

    def predict(self, state: np.ndarray) -> np.ndarray:
        """Return one value per row of ``state``."""
        ...

    def fit_batch(self, states: np.ndarray, targets: np.ndarray) -> float:
        """Fit one batch of rows to their target values and return the loss."""
        ...

    def clone_to(self, other: "ValueFunction") -> None:
        """Copy this function's weights into ``other``."""
        ...


class TorchValueFunction:
    """Value function backed by a NodeQNetwork."""

    def __init__(self,
                 name: str,
                 feature_dim: int = 8,
                 hidden_dims: Optional[List[int]] = None,
                 learning_rate: float = 0.0005,
                 max_grad_norm: float = 1.0,
                 device: str = "cpu"):
        self.name = name
        self.feature_dim = feature_dim
        self.max_grad_norm = max_grad_norm
        self.device = torch.device(device)
        self.network = NodeQNetwork(feature_dim, hidden_dims).to(self.device)
        self.optimizer = torch.optim.Adam(self.network.parameters(), lr=learning_rate)
        # Bumped on every fit; copied along with the weights on clone
        self.version = 0

    def _to_tensor(self, array: np.ndarray, error_cls) -> torch.Tensor:
        array = np.asarray(array, dtype=np.float32)
        if array.ndim != 2 or array.shape[1] != self.feature_dim:
            raise error_cls(
                f"{self.name} expects states shaped (nodes, {self.feature_dim}), got {array.shape}",
                context={"value_function": self.name}
            )
        if not np.all(np.isfinite(array)):
            raise error_cls("state contains non-finite values", context={"value_function": self.name})
        return torch.from_numpy(array).to(self.device)

    def predict(self, state: np.ndarray) -> np.ndarray:
        """
        Predict node values.

        Raises:
            PredictionError: On shape mismatch or model failure
        """
        x = self._to_tensor(state, PredictionError)
        try:
            self.network.eval()
            with torch.no_grad():
                values = self.network(x)
        except RuntimeError as e:
            raise PredictionError(f"{self.name} prediction failed: {e}") from e
        return values.cpu().numpy().astype(np.float64)

    def fit_batch(self, states: np.ndarray, targets: np.ndarray) -> float:
        """
        One optimizer step towards ``targets``.

        Raises:
            FitError: On shape mismatch, non-finite loss or model failure
        """
        x = self._to_tensor(states, FitError)
        y = np.asarray(targets, dtype=np.float32).reshape(-1)
        if y.shape[0] != x.shape[0]:
            raise FitError(
                f"{x.shape[0]} states but {y.shape[0]} targets",
                context={"value_function": self.name}
            )
        y_tensor = torch.from_numpy(y).to(self.device)

        try:
            self.network.train()
            predicted = self.network(x)
            loss = F.mse_loss(predicted, y_tensor)
            if not torch.isfinite(loss):
                raise FitError(f"{self.name} produced non-finite loss", context={"loss": loss.item()})

            self.optimizer.zero_grad()
            loss.backward()
            torch.nn.utils.clip_grad_norm_(self.network.parameters(), max_norm=self.max_grad_norm)
            self.optimizer.step()
        except RuntimeError as e:
            raise FitError(f"{self.name} fit failed: {e}") from e

        self.version += 1
        return loss.item()

    def clone_to(self, other: "TorchValueFunction") -> None:
        if not isinstance(other, TorchValueFunction):
            raise TypeError(f"cannot clone weights into {type(other).__name__}")
        other.network.load_state_dict(self.network.state_dict())
        other.version = self.version
        logger.debug(f"Cloned {self.name} weights into {other.name}", version=self.version)

    def weights(self) -> Dict[str, torch.Tensor]:
        """Detached copy of the network weights."""
        return {k: v.detach().clone() for k, v in self.network.state_dict().items()}

    def state_dict(self) -> dict:
        return {
            'network': self.network.state_dict(),
            'optimizer': self.optimizer.state_dict(),
            'version': self.version,
        }

    def load_state_dict(self, state: dict) -> None:
        self.network.load_state_dict(state['network'])
        self.optimizer.load_state_dict(state['optimizer'])
        self.version = state.get('version', 0)
