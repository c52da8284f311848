"""BaseService — foundation for formgraph services.

Every service receives a :class:`Workspace` at construction time and owns
its transaction boundaries via ``self._workspace.transaction()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from formgraph.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from formgraph.domain.errors import GraphError
    from formgraph.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class GraphService(BaseService):
            def store(self, data) -> ServiceResult:
                with self._workspace.transaction() as repo:
                    ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    @staticmethod
    def _graph_error(op: str, exc: GraphError) -> ServiceResult:
        """Convert a graph error into a failed ServiceResult."""
        logger.info("%s rejected input: %s", op, exc)
        return ServiceResult(ok=False, op=op, error=ServiceError.from_graph_error(exc))
