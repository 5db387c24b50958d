"""Workflow merging backend credentials with the caller's declared specs."""
import logging
from typing import Dict, Iterable, Sequence

from ..domains.errors import CredentialDefaultNotSet, CredentialNotSpecified, MultipleResourcesFound
from ..domains.models import (
    BackendCredential,
    BackendResource,
    CredentialValue,
    RequestedResource,
    ResolvedMap,
)

logger = logging.getLogger(__name__)


def labels_by_id(resources: Sequence[BackendResource]) -> Dict[str, str]:
    """
    Map resource identifiers to labels.

    Raises:
        MultipleResourcesFound: If two distinct resources share a label
    """
    labels: Dict[str, str] = {}
    owners: Dict[str, str] = {}
    for resource in resources:
        owner = owners.setdefault(resource.label, resource.id)
        if owner != resource.id:
            raise MultipleResourcesFound(
                f"Resources {owner} and {resource.id} are both labelled '{resource.label}'; "
                f"provide a specific project"
            )
        labels[resource.id] = resource.label
    return labels


def credential_value(
    label: str,
    key: str,
    value: str,
    requested: Sequence[RequestedResource],
) -> CredentialValue:
    """
    Build the resolved value for one backend credential.

    A requested resource that declares no credentials receives every backend
    credential as-is.

    Raises:
        CredentialNotSpecified: If the key was not declared for the label
    """
    for resource in requested:
        if resource.label != label:
            continue

        if not resource.credentials:
            return CredentialValue(key=key, value=value)

        spec = resource.credential_spec(key)
        if spec is not None:
            return CredentialValue(key=key, value=value, name=spec.name, default=spec.default)

    raise CredentialNotSpecified(f"Credential '{key}' of resource '{label}' was not requested")


def fill_defaults(resolved: ResolvedMap, requested: Sequence[RequestedResource]) -> None:
    """
    Add declared credentials the backend did not supply, using their defaults.

    Raises:
        CredentialDefaultNotSet: If a missing credential declares no default
    """
    for resource in requested:
        if not resource.credentials:
            continue

        values = resolved.setdefault(resource.label, [])
        present = {v.key for v in values}
        for spec in resource.credentials:
            if spec.key in present:
                continue

            if spec.default == "":
                raise CredentialDefaultNotSet(
                    f"Credential '{spec.key}' of resource '{resource.label}' does not exist "
                    f"and has no default"
                )

            logger.debug(f"Using default for '{spec.key}' of resource '{resource.label}'")
            values.append(CredentialValue(
                key=spec.key,
                value=spec.default,
                name=spec.name,
                default=spec.default,
            ))
            present.add(spec.key)


def merge_credentials(
    resources: Sequence[BackendResource],
    credentials: Iterable[BackendCredential],
    requested: Sequence[RequestedResource],
) -> ResolvedMap:
    """
    Resolve credential values per resource label.

    Backend credentials that were not declared are dropped. Declared
    credentials the backend lacks are filled from their defaults. Errors
    raised while iterating ``credentials`` propagate and discard the partial
    result.

    Args:
        resources: Resolved backend resources
        credentials: Backend credential sets for those resources
        requested: Caller's requested resources

    Returns:
        Mapping of resource label to its resolved credential values

    Raises:
        MultipleResourcesFound: If two resources share a label
        CredentialDefaultNotSet: If a declared credential cannot be resolved
    """
    labels = labels_by_id(resources)
    resolved: ResolvedMap = {label: [] for label in labels.values()}

    for credential in credentials:
        label = labels.get(credential.resource_id)
        if label is None:
            logger.debug(f"Skipping credentials of unresolved resource {credential.resource_id}")
            continue

        for key, value in credential.values.items():
            try:
                resolved[label].append(credential_value(label, key, value, requested))
            except CredentialNotSpecified:
                logger.debug(f"Dropping undeclared credential '{key}' of resource '{label}'")

    fill_defaults(resolved, requested)
    return resolved
