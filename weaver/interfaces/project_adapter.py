"""Project adapter: per-protocol balance discovery for one wallet."""
from typing import Protocol

from ..models import AnyToken


class ProjectAdapter(Protocol):
    """Abstract interface for fetching a wallet's positions in one project."""

    @property
    def project_name(self) -> str: ...

    async def get(self, wallet_address: str) -> list[AnyToken]: ...
