"""Error taxonomy for credential resolution."""


class CredentialsError(Exception):
    """Base class for every resolution error."""
    pass


class LabelRequired(CredentialsError):
    """A label is required to perform this query."""
    pass


class ResourceInvalid(CredentialsError):
    """A requested resource failed local validation."""
    pass


class MultipleResourcesFound(CredentialsError):
    """More than one backend resource carries the requested label.

    Labels are only unique within a project; provide a specific project.
    """
    pass


class TeamNotFound(CredentialsError):
    """No team with the configured label exists."""
    pass


class ProjectNotFound(CredentialsError):
    """No project with the given label exists."""
    pass


class ResourceNotFound(CredentialsError):
    """A resource with the requested label was not found."""
    pass


class CredentialNotFound(CredentialsError):
    """A credential with the given key is not in a resolved list."""
    pass


class CredentialNotSpecified(CredentialsError):
    """The backend returned a credential the caller did not declare."""
    pass


class CredentialDefaultNotSet(CredentialsError):
    """A declared credential is missing from the backend and has no default."""
    pass


class OperationCancelled(CredentialsError):
    """The request context was cancelled or its deadline passed."""
    pass


class ConfigError(CredentialsError):
    """Configuration error exception."""
    pass
