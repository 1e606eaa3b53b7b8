"""Protocol interfaces for the portfolio engine."""
from .chain import ChainClient
from .price_oracle import PriceOracle
from .project_adapter import ProjectAdapter

__all__ = ["ChainClient", "PriceOracle", "ProjectAdapter"]
