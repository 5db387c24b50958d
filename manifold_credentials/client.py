"""Manifold credentials client: resolves requested resources to credential values."""
import logging
from contextlib import closing
from typing import List, Optional, Sequence

from .resolver.domains.backend import Backend
from .resolver.domains.config_loader import CredentialsConfig
from .resolver.domains.errors import LabelRequired, ResourceNotFound
from .resolver.domains.label_cache import LabelCache
from .resolver.domains.models import (
    BackendResource,
    CredentialValue,
    RequestContext,
    RequestedResource,
    ResolvedMap,
    background,
)
from .resolver.workflows import project_resolution
from .resolver.workflows.credential_merge import merge_credentials
from .resolver.workflows.resource_resolution import resolve_resources, validate_requested
from .resolver.workflows.team_resolution import resolve_team_id

logger = logging.getLogger(__name__)


class CredentialsClient:
    """
    Wrapper around a backend inventory client.

    The team label is resolved once here; a failure aborts construction.
    Project identifiers are cached per client for its whole lifetime.

    Args:
        backend: Inventory backend
        team: Team label to scope every listing to, or None
        ctx: Request context used for the team lookup
        project: Project label used when an operation is given none
        resources: Requested resources used when an operation is given none
    """

    def __init__(
        self,
        backend: Backend,
        team: Optional[str] = None,
        ctx: Optional[RequestContext] = None,
        project: Optional[str] = None,
        resources: Optional[Sequence[RequestedResource]] = None,
    ):
        self._backend = backend
        self._team = team
        self._project = project
        self._resources = list(resources or [])
        self._project_ids = LabelCache()
        self._team_id = resolve_team_id(backend, team, ctx or background())

    @classmethod
    def from_config(
        cls,
        backend: Backend,
        config: CredentialsConfig,
        ctx: Optional[RequestContext] = None,
    ) -> "CredentialsClient":
        """Build a client scoped to the configured team, project and resources."""
        return cls(
            backend,
            team=config.team,
            ctx=ctx,
            project=config.project,
            resources=config.resources,
        )

    @property
    def team(self) -> Optional[str]:
        return self._team

    @property
    def team_id(self) -> Optional[str]:
        return self._team_id

    @property
    def project(self) -> Optional[str]:
        return self._project

    @property
    def resources(self) -> List[RequestedResource]:
        return list(self._resources)

    def _project_or_default(self, project: Optional[str]) -> Optional[str]:
        return self._project if project is None else project

    def _resources_or_default(
        self, resources: Optional[Sequence[RequestedResource]]
    ) -> Sequence[RequestedResource]:
        return self._resources if resources is None else resources

    def resolve_project_id(self, label: Optional[str], ctx: Optional[RequestContext] = None) -> Optional[str]:
        """
        Return the identifier for a project label.

        Uses the client's cache so a label is only looked up once.

        Args:
            label: Project label, or None for no project scoping
            ctx: Request context for the backend call

        Returns:
            Project identifier, or None when label is None
        """
        return project_resolution.resolve_project_id(
            self._backend, self._project_ids, label, self._team_id, ctx or background()
        )

    def get_resources(
        self,
        project: Optional[str] = None,
        resources: Optional[Sequence[RequestedResource]] = None,
        ctx: Optional[RequestContext] = None,
    ) -> List[BackendResource]:
        """
        Fetch backend resources according to their labels.

        If an empty list of resources is given, every resource in scope is
        returned. If one of the requested resources is not available this
        raises.

        Args:
            project: Project label to scope to; None uses the client's project
            resources: Requested resources; None uses the client's resources
            ctx: Request context for the backend calls

        Returns:
            Matched backend resources in listing order

        Raises:
            ResourceInvalid: If a requested resource has no label or is repeated
            ProjectNotFound: If the project label does not resolve
            ResourceNotFound: If a requested label is not in the backend
            MultipleResourcesFound: If a requested label matches several resources
        """
        ctx = ctx or background()
        resources = self._resources_or_default(resources)
        validate_requested(resources)

        project_id = self.resolve_project_id(self._project_or_default(project), ctx)
        return resolve_resources(self._backend, project_id, self._team_id, resources, ctx)

    def get_resource(
        self,
        project: Optional[str] = None,
        resource: Optional[RequestedResource] = None,
        ctx: Optional[RequestContext] = None,
    ) -> BackendResource:
        """
        Fetch the single backend resource for a requested resource.

        Raises:
            LabelRequired: If no resource is given
            MultipleResourcesFound: If the label is not unique in scope
        """
        if resource is None:
            raise LabelRequired("A resource is required to perform this query")

        return self.get_resources(project, [resource], ctx)[0]

    def get_resources_credential_values(
        self,
        project: Optional[str] = None,
        resources: Optional[Sequence[RequestedResource]] = None,
        ctx: Optional[RequestContext] = None,
    ) -> ResolvedMap:
        """
        Resolve credential values for a list of requested resources.

        Backend credentials are mapped to their resource by label. Undeclared
        credentials are dropped; declared credentials missing from the backend
        are filled from their default, or the whole call fails.

        Args:
            project: Project label to scope to; None uses the client's project
            resources: Requested resources; None uses the client's resources
            ctx: Request context for the backend calls

        Returns:
            Mapping of resource label to resolved credential values

        Raises:
            ResourceInvalid: If a requested resource has no label or is repeated
            CredentialDefaultNotSet: If a missing credential has no default
        """
        ctx = ctx or background()
        resources = self._resources_or_default(resources)
        validate_requested(resources)

        matched = self.get_resources(project, resources, ctx)
        resource_ids = [r.id for r in matched]

        with closing(self._backend.list_credentials(ctx, resource_ids)) as credentials:
            resolved = merge_credentials(matched, credentials, resources)

        logger.debug(f"Resolved credentials for {len(resolved)} resource(s)")
        return resolved

    def get_resource_credential_values(
        self,
        project: Optional[str] = None,
        resource: Optional[RequestedResource] = None,
        ctx: Optional[RequestContext] = None,
    ) -> List[CredentialValue]:
        """
        Resolve the credential values of a single requested resource.

        Raises:
            LabelRequired: If no resource is given
            ResourceNotFound: If nothing resolved for the resource's label
        """
        if resource is None:
            raise LabelRequired("A resource is required to perform this query")

        resolved = self.get_resources_credential_values(project, [resource], ctx)
        try:
            return resolved[resource.label]
        except KeyError:
            raise ResourceNotFound(f"Resource '{resource.label}' not found")
