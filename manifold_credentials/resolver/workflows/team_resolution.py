"""Workflow resolving the configured team label to a team identifier."""
import logging
from contextlib import closing
from typing import Optional

from ..domains.backend import Backend
from ..domains.errors import TeamNotFound
from ..domains.models import RequestContext

logger = logging.getLogger(__name__)


def resolve_team_id(backend: Backend, team: Optional[str], ctx: RequestContext) -> Optional[str]:
    """
    Resolve a team label to its identifier.

    The team listing carries no server-side filter, so it is scanned until the
    first exact label match.

    Args:
        backend: Inventory backend
        team: Team label, or None to disable team scoping
        ctx: Request context for the listing call

    Returns:
        Team identifier, or None when no team is configured

    Raises:
        TeamNotFound: If no team carries the label
    """
    if team is None:
        logger.debug("No team configured, team scoping disabled")
        return None

    with closing(backend.list_teams(ctx)) as teams:
        for candidate in teams:
            if candidate.label == team:
                logger.info(f"Resolved team '{team}' to {candidate.id}")
                return candidate.id

    raise TeamNotFound(f"Team '{team}' not found")
