import torch
import torch.nn as nn


class NodeQNetwork(nn.Module):
    """
    Q-network that scores candidate nodes one row at a time.

    Each row of the input is one node's raw resource features; the output is
    that node's value, so the same network handles any number of candidates.

    Features:
    - Signed log scaling of raw byte/core counts
    - Layer normalization for training stability
    - Residual connections between equal-width hidden layers
    """

    def __init__(self, feature_dim: int = 8, hidden_dims=None, dropout: float = 0.1, use_layer_norm: bool = True):
        super().__init__()

        if hidden_dims is None:
            hidden_dims = [64, 32]

        self.feature_dim = feature_dim
        self.hidden_dims = list(hidden_dims)
        self.use_layer_norm = use_layer_norm

        self.feature_layers = nn.ModuleList()
        prev_dim = feature_dim
        for hidden_dim in self.hidden_dims:
            self.feature_layers.append(nn.Sequential(
                nn.Linear(prev_dim, hidden_dim),
                nn.LayerNorm(hidden_dim) if use_layer_norm else nn.Identity(),
                nn.ReLU(),
                nn.Dropout(dropout),
            ))
            prev_dim = hidden_dim

        self.value_head = nn.Linear(prev_dim, 1)

        self.apply(self._init_weights)

    def _init_weights(self, module):
        """He initialization for ReLU activations."""
        if isinstance(module, nn.Linear):
            torch.nn.init.kaiming_uniform_(module.weight, mode='fan_in', nonlinearity='relu')
            torch.nn.init.constant_(module.bias, 0)
        elif isinstance(module, nn.LayerNorm):
            torch.nn.init.constant_(module.bias, 0)
            torch.nn.init.constant_(module.weight, 1.0)

    @staticmethod
    def scale_features(x: torch.Tensor) -> torch.Tensor:
        # Raw features span cores to terabytes
        return torch.sign(x) * torch.log1p(torch.abs(x))

    def forward(self, x):
        """
        Args:
            x: Node feature tensor [nodes, feature_dim]

        Returns:
            Node values [nodes]
        """
        if x.dim() == 1:
            x = x.unsqueeze(0)

        current = self.scale_features(x)
        for layer in self.feature_layers:
            out = layer(current)
            if out.shape == current.shape:
                out = out + current
            current = out

        return self.value_head(current).squeeze(-1)
