"""Workflow resolving project labels through the label cache."""
import logging
from contextlib import closing
from typing import Optional

from ..domains.backend import Backend
from ..domains.errors import LabelRequired, ProjectNotFound
from ..domains.label_cache import LabelCache
from ..domains.models import RequestContext

logger = logging.getLogger(__name__)


def resolve_project_id(
    backend: Backend,
    cache: LabelCache,
    label: Optional[str],
    team_id: Optional[str],
    ctx: RequestContext,
) -> Optional[str]:
    """
    Return the identifier for a project label, consulting the cache first.

    The cache lock only guards the lookup and the fill; the backend listing
    on a miss runs unlocked.

    Args:
        backend: Inventory backend
        cache: Label cache owned by the calling client
        label: Project label, or None for an unscoped lookup
        team_id: Team scope for the project listing
        ctx: Request context for the listing call

    Returns:
        Project identifier, or None when label is None

    Raises:
        LabelRequired: If label is an empty string
        ProjectNotFound: If no project carries the label
    """
    if label is None:
        return None

    if not label:
        raise LabelRequired("A project label is required to perform this query")

    cached = cache.get(label)
    if cached is not None:
        logger.debug(f"Project '{label}' served from cache")
        return cached

    logger.debug(f"Project '{label}' not cached, listing projects")
    with closing(backend.list_projects(ctx, label=label, team_id=team_id)) as projects:
        for project in projects:
            if project.label == label:
                project_id = cache.set(label, project.id)
                logger.info(f"Resolved project '{label}' to {project_id}")
                return project_id

    raise ProjectNotFound(f"Project '{label}' not found")
