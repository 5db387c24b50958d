"""Tests for merging backend credentials with declared specs."""
import pytest

from manifold_credentials.resolver.domains.errors import (
    CredentialDefaultNotSet,
    CredentialNotSpecified,
    MultipleResourcesFound,
)
from manifold_credentials.resolver.domains.models import (
    BackendCredential,
    BackendResource,
    CredentialSpec,
    CredentialValue,
    RequestedResource,
)
from manifold_credentials.resolver.workflows.credential_merge import (
    credential_value,
    labels_by_id,
    merge_credentials,
)

DB = BackendResource(id="res-1", label="db")
CACHE = BackendResource(id="res-2", label="cache")


def db_request(default="changeme"):
    return RequestedResource(label="db", credentials=[CredentialSpec(key="PASSWORD", default=default)])


class TestCredentialValue:
    """Test suite for credential_value."""

    def test_copies_name_and_default_from_spec(self):
        requested = [RequestedResource(
            label="db",
            credentials=[CredentialSpec(key="PASSWORD", name="DB_PASSWORD", default="changeme")],
        )]

        value = credential_value("db", "PASSWORD", "s3cret", requested)

        assert value == CredentialValue(key="PASSWORD", value="s3cret", name="DB_PASSWORD", default="changeme")

    def test_undeclared_label(self):
        with pytest.raises(CredentialNotSpecified):
            credential_value("cache", "URL", "redis://", [db_request()])

    def test_undeclared_key(self):
        with pytest.raises(CredentialNotSpecified):
            credential_value("db", "UNLISTED", "x", [db_request()])

    def test_resource_without_declared_credentials_takes_everything(self):
        value = credential_value("db", "ANY", "x", [RequestedResource(label="db")])
        assert value == CredentialValue(key="ANY", value="x")


class TestMergeCredentials:
    """Test suite for merge_credentials."""

    def test_default_fill(self):
        credentials = [BackendCredential(resource_id="res-1", values={})]

        resolved = merge_credentials([DB], credentials, [db_request()])

        assert len(resolved["db"]) == 1
        assert resolved["db"][0].key == "PASSWORD"
        assert resolved["db"][0].value == "changeme"

    def test_backend_value_beats_default(self):
        credentials = [BackendCredential(resource_id="res-1", values={"PASSWORD": "s3cret"})]

        resolved = merge_credentials([DB], credentials, [db_request()])

        assert [(v.key, v.value) for v in resolved["db"]] == [("PASSWORD", "s3cret")]

    def test_missing_default(self):
        credentials = [BackendCredential(resource_id="res-1", values={"OTHER": "x"})]

        with pytest.raises(CredentialDefaultNotSet):
            merge_credentials([DB], credentials, [db_request(default="")])

    def test_missing_default_without_backend_credentials(self):
        with pytest.raises(CredentialDefaultNotSet):
            merge_credentials([DB], [], [db_request(default="")])

    def test_unlisted_credential_is_dropped(self):
        credentials = [BackendCredential(resource_id="res-1", values={"PASSWORD": "p", "UNLISTED": "x"})]

        resolved = merge_credentials([DB], credentials, [db_request()])

        assert "UNLISTED" not in {v.key for v in resolved["db"]}

    def test_every_resolved_resource_has_an_entry(self):
        resolved = merge_credentials([DB, CACHE], [], [RequestedResource(label="db"), RequestedResource(label="cache")])
        assert resolved == {"db": [], "cache": []}

    def test_fetch_all_drops_undeclared_credentials(self):
        credentials = [BackendCredential(resource_id="res-2", values={"URL": "redis://"})]
        assert merge_credentials([CACHE], credentials, []) == {"cache": []}

    def test_credentials_of_unknown_resources_are_ignored(self):
        credentials = [BackendCredential(resource_id="res-99", values={"PASSWORD": "x"})]

        resolved = merge_credentials([DB], credentials, [db_request()])

        assert [v.value for v in resolved["db"]] == ["changeme"]

    def test_same_label_collision(self):
        other_db = BackendResource(id="res-9", label="db")

        with pytest.raises(MultipleResourcesFound):
            merge_credentials([DB, other_db], [], [])

    def test_merge_is_idempotent(self):
        requested = [
            RequestedResource(label="db", credentials=[
                CredentialSpec(key="USERNAME", name="DB_USER"),
                CredentialSpec(key="PASSWORD", default="changeme"),
            ]),
            RequestedResource(label="cache"),
        ]
        credentials = [
            BackendCredential(resource_id="res-1", values={"USERNAME": "admin", "UNLISTED": "x"}),
            BackendCredential(resource_id="res-2", values={"URL": "redis://", "PORT": "6379"}),
        ]

        first = merge_credentials([DB, CACHE], credentials, requested)
        second = merge_credentials([DB, CACHE], credentials, requested)

        assert first == second
        assert [v.key for v in first["db"]] == ["USERNAME", "PASSWORD"]
        assert [v.key for v in first["cache"]] == ["URL", "PORT"]

    def test_iteration_error_propagates(self):
        def failing():
            yield BackendCredential(resource_id="res-1", values={"PASSWORD": "p"})
            raise RuntimeError("page fetch failed")

        with pytest.raises(RuntimeError):
            merge_credentials([DB], failing(), [db_request()])


class TestLabelsById:
    """Test suite for labels_by_id."""

    def test_maps_ids(self):
        assert labels_by_id([DB, CACHE]) == {"res-1": "db", "res-2": "cache"}

    def test_same_resource_listed_twice_is_not_a_collision(self):
        assert labels_by_id([DB, DB]) == {"res-1": "db"}
