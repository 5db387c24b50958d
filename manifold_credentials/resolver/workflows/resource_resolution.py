"""Workflow matching requested resources to backend resources by label."""
import logging
from collections import Counter
from contextlib import closing
from typing import List, Optional, Sequence

from ..domains.backend import Backend
from ..domains.errors import MultipleResourcesFound, ResourceInvalid, ResourceNotFound
from ..domains.models import BackendResource, RequestContext, RequestedResource

logger = logging.getLogger(__name__)


def validate_requested(requested: Sequence[RequestedResource]) -> None:
    """
    Reject requested resources that cannot be matched.

    Raises:
        ResourceInvalid: If any entry has an empty label or repeats a label
    """
    seen = set()
    for resource in requested:
        if resource is None or not resource.is_valid():
            raise ResourceInvalid(f"Requested resource is invalid: {resource!r}")
        if resource.label in seen:
            raise ResourceInvalid(f"Resource '{resource.label}' is requested more than once")
        seen.add(resource.label)


def is_requested(resource: BackendResource, requested: Sequence[RequestedResource]) -> bool:
    """An empty request list selects every resource."""
    if not requested:
        return True
    return any(r.label == resource.label for r in requested)


def check_cardinality(
    matched: Sequence[BackendResource],
    requested: Sequence[RequestedResource],
) -> None:
    """
    Every requested label must be matched by exactly one backend resource.

    Raises:
        ResourceNotFound: If a requested label has no backend counterpart
        MultipleResourcesFound: If a requested label is matched more than once
    """
    if not requested:
        return

    counts = Counter(resource.label for resource in matched)

    missing = [r.label for r in requested if counts[r.label] == 0]
    if missing:
        raise ResourceNotFound(f"Resources not found: {', '.join(sorted(set(missing)))}")

    duplicated = sorted(label for label, count in counts.items() if count > 1)
    if duplicated:
        raise MultipleResourcesFound(
            f"Multiple resources labelled {', '.join(duplicated)}; provide a specific project"
        )

    if len(matched) != len(requested):
        raise ResourceNotFound(f"Matched {len(matched)} resource(s) for {len(requested)} request(s)")


def resolve_resources(
    backend: Backend,
    project_id: Optional[str],
    team_id: Optional[str],
    requested: Sequence[RequestedResource],
    ctx: RequestContext,
) -> List[BackendResource]:
    """
    Fetch the backend resources named by the requested list.

    Args:
        backend: Inventory backend
        project_id: Resolved project scope, or None
        team_id: Resolved team scope, or None
        requested: Requested resources; empty fetches everything in scope
        ctx: Request context for the listing call

    Returns:
        Matched resources in backend listing order
    """
    matched = []
    with closing(backend.list_resources(ctx, project_id=project_id, team_id=team_id)) as listing:
        for resource in listing:
            if is_requested(resource, requested):
                matched.append(resource)

    check_cardinality(matched, requested)

    logger.debug(f"Matched {len(matched)} resource(s) for {len(requested)} request(s)")
    return matched
