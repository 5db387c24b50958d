"""Shared fixtures: an in-memory, call-counting backend."""
from collections import Counter

import pytest

from manifold_credentials.resolver.domains.backend import ListIterator
from manifold_credentials.resolver.domains.models import (
    BackendCredential,
    BackendResource,
    CredentialSpec,
    Project,
    RequestedResource,
    Team,
)


class StubBackend:
    """Backend double recording every listing call and every iterator close."""

    def __init__(self, teams=None, projects=None, resources=None, credentials=None):
        self.teams = list(teams or [])
        self.projects = list(projects or [])
        self.resources = list(resources or [])
        self.credentials = list(credentials or [])
        self.calls = Counter()
        self.call_args = []
        self.iterators = []
        self.fail_on = {}

    def _listing(self, name, ctx, items):
        self.calls[name] += 1
        error = self.fail_on.get(name)
        if error is not None:
            items = self._failing(items, error)
        iterator = ListIterator(items, ctx=ctx)
        self.iterators.append(iterator)
        return iterator

    @staticmethod
    def _failing(items, error):
        yield from items[:1]
        raise error

    @property
    def total_calls(self):
        return sum(self.calls.values())

    def list_teams(self, ctx):
        return self._listing("teams", ctx, self.teams)

    def list_projects(self, ctx, label=None, team_id=None):
        self.call_args.append(("projects", label, team_id))
        items = [p for p in self.projects if team_id is None or p.team_id == team_id]
        return self._listing("projects", ctx, items)

    def list_resources(self, ctx, project_id=None, team_id=None):
        self.call_args.append(("resources", project_id, team_id))
        items = [
            r for r in self.resources
            if (project_id is None or r.project_id == project_id)
            and (team_id is None or r.team_id == team_id)
        ]
        return self._listing("resources", ctx, items)

    def list_credentials(self, ctx, resource_ids):
        self.call_args.append(("credentials", list(resource_ids)))
        items = [c for c in self.credentials if c.resource_id in resource_ids]
        return self._listing("credentials", ctx, items)


@pytest.fixture
def backend():
    """Inventory with two projects, a team, and a few resources."""
    return StubBackend(
        teams=[Team(id="team-1", label="platform"), Team(id="team-2", label="data")],
        projects=[
            Project(id="proj-1", label="web", team_id="team-1"),
            Project(id="proj-2", label="batch", team_id="team-1"),
        ],
        resources=[
            BackendResource(id="res-1", label="db", project_id="proj-1", team_id="team-1"),
            BackendResource(id="res-2", label="cache", project_id="proj-1", team_id="team-1"),
            BackendResource(id="res-3", label="cache", project_id="proj-2", team_id="team-1"),
            BackendResource(id="res-4", label="queue", project_id="proj-2", team_id="team-1"),
        ],
        credentials=[
            BackendCredential(resource_id="res-1", values={"USERNAME": "admin", "UNLISTED": "x"}),
            BackendCredential(resource_id="res-2", values={"URL": "redis://web"}),
            BackendCredential(resource_id="res-3", values={"URL": "redis://batch"}),
            BackendCredential(resource_id="res-4", values={"TOKEN": "t0k3n"}),
        ],
    )


@pytest.fixture
def db_resource():
    return RequestedResource(
        label="db",
        credentials=[
            CredentialSpec(key="USERNAME", name="DB_USER"),
            CredentialSpec(key="PASSWORD", default="changeme"),
        ],
    )
