"""Route project balance requests to the registered adapter."""
from __future__ import annotations

import asyncio
import logging

from ..interfaces.chain import ChainClient
from ..interfaces.project_adapter import ProjectAdapter
from ..models import AnyToken
from ..projects import PROJECTS, BaseProjectAdapter
from ..valuation.engine import ValuationEngine

logger = logging.getLogger(__name__)


class ProjectDispatcher:
    """Static (chain, project name) → adapter lookup."""

    def __init__(
        self,
        engine: ValuationEngine,
        clients: dict[str, ChainClient],
        projects: dict[str, dict[str, type[BaseProjectAdapter]]] | None = None,
    ) -> None:
        self._engine = engine
        self._clients = clients
        self._projects = PROJECTS if projects is None else projects

    def get_projects(self, chain: str) -> list[str]:
        return sorted(self._projects.get(chain, {}))

    def _adapter(self, chain: str, project: str) -> ProjectAdapter | None:
        adapter_cls = self._projects.get(chain, {}).get(project)
        if adapter_cls is None:
            logger.warning("Unknown project '%s' on %s", project, chain.upper())
            return None
        client = self._clients.get(chain)
        if client is None:
            logger.warning("Chain '%s' is not configured, skipping '%s'", chain, project)
            return None
        return adapter_cls(self._engine, client)

    async def get_project_balance(self, chain: str, wallet: str, project: str) -> list[AnyToken]:
        """Balances of one project; unknown projects and handler crashes yield []."""
        adapter = self._adapter(chain, project)
        if adapter is None:
            return []
        try:
            return await adapter.get(wallet)
        except Exception as e:
            logger.error("Error fetching %s balances on %s: %s", project, chain.upper(), e)
            return []

    async def get_all_project_balances(self, chain: str, wallet: str) -> list[AnyToken]:
        projects = self.get_projects(chain)
        results = await asyncio.gather(
            *(self.get_project_balance(chain, wallet, project) for project in projects)
        )
        return [token for balance in results for token in balance]
