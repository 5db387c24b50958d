"""Domain models for credential resolution."""
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import CredentialNotFound, OperationCancelled, ResourceInvalid


@dataclass
class CredentialSpec:
    """A credential key the caller expects from a resource."""
    key: str
    name: str = ""  # alias used when the value is written out
    default: str = ""


@dataclass
class RequestedResource:
    """Caller-declared resource label plus the credentials expected from it."""
    label: str
    credentials: List[CredentialSpec] = field(default_factory=list)

    def is_valid(self) -> bool:
        return bool(self.label)

    def credential_spec(self, key: str) -> Optional[CredentialSpec]:
        for spec in self.credentials:
            if spec.key == key:
                return spec
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RequestedResource":
        """
        Build a requested resource from its mapping form.

        Args:
            data: Mapping with ``label`` and optional ``credentials`` list

        Returns:
            RequestedResource instance

        Raises:
            ResourceInvalid: If the mapping is malformed
        """
        if not isinstance(data, dict):
            raise ResourceInvalid(f"Resource entry must be a mapping, got: {data!r}")

        credentials = []
        for entry in data.get("credentials") or []:
            if not isinstance(entry, dict) or not entry.get("key"):
                raise ResourceInvalid(f"Credential entry requires a 'key': {entry!r}")
            credentials.append(CredentialSpec(
                key=str(entry["key"]),
                name=str(entry.get("name") or ""),
                default=str(entry.get("default") or ""),
            ))

        return cls(label=str(data.get("label") or ""), credentials=credentials)


@dataclass
class Team:
    id: str
    label: str


@dataclass
class Project:
    id: str
    label: str
    team_id: Optional[str] = None


@dataclass
class BackendResource:
    """A resource as returned by the backend inventory."""
    id: str
    label: str
    project_id: Optional[str] = None
    team_id: Optional[str] = None


@dataclass
class BackendCredential:
    """Raw credential set the backend holds for one resource."""
    resource_id: str
    values: Dict[str, str] = field(default_factory=dict)


@dataclass
class CredentialValue:
    """A resolved credential, sourced from the backend or a declared default."""
    key: str
    value: str
    name: str = ""
    default: str = ""

    @property
    def secret_key(self) -> str:
        """Key the value is written under: the alias when set, else the key."""
        return self.name or self.key


ResolvedMap = Dict[str, List[CredentialValue]]


def find_credential(values: List[CredentialValue], key: str) -> CredentialValue:
    """
    Find a resolved credential by key.

    Raises:
        CredentialNotFound: If no value carries the key
    """
    for value in values:
        if value.key == key:
            return value
    raise CredentialNotFound(f"Credential '{key}' not found")


class RequestContext:
    """
    Cancellation-aware execution context passed to every backend call.

    Args:
        timeout: Seconds from now after which the context expires, or None
    """

    def __init__(self, timeout: Optional[float] = None):
        self._cancelled = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, None when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        """Raise OperationCancelled if the context is no longer live."""
        if not self.cancelled:
            return
        if self._cancelled.is_set():
            raise OperationCancelled("Request context was cancelled")
        raise OperationCancelled("Request context deadline exceeded")


def background() -> RequestContext:
    """Context that is never cancelled and has no deadline."""
    return RequestContext()
