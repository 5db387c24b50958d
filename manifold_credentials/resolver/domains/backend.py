"""Backend inventory contract consumed by the resolver."""
from typing import Callable, Generic, Iterable, Iterator, List, Optional, Protocol, TypeVar

from .models import BackendCredential, BackendResource, Project, RequestContext, Team

T = TypeVar("T")


class ListIterator(Generic[T]):
    """
    Closeable forward iterator over a backend listing.

    Per-item errors surface from ``next()``. The iterator must be closed on
    every exit path; callers wrap it in ``contextlib.closing``.

    Args:
        items: Underlying iterable (a generator walking pages, a list, ...)
        ctx: Context checked before every item is produced
        on_close: Callback releasing connection/pagination state
    """

    def __init__(
        self,
        items: Iterable[T],
        ctx: Optional[RequestContext] = None,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self._items: Iterator[T] = iter(items)
        self._ctx = ctx
        self._on_close = on_close
        self.closed = False

    def __iter__(self) -> "ListIterator[T]":
        return self

    def __next__(self) -> T:
        if self.closed:
            raise StopIteration
        if self._ctx is not None:
            self._ctx.check()
        return next(self._items)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        close_items = getattr(self._items, "close", None)
        if close_items is not None:
            close_items()
        if self._on_close is not None:
            self._on_close()


class Backend(Protocol):
    """Inventory service supplying teams, projects, resources and credentials."""

    def list_teams(self, ctx: RequestContext) -> ListIterator[Team]:
        ...

    def list_projects(
        self,
        ctx: RequestContext,
        label: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> ListIterator[Project]:
        ...

    def list_resources(
        self,
        ctx: RequestContext,
        project_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> ListIterator[BackendResource]:
        ...

    def list_credentials(
        self,
        ctx: RequestContext,
        resource_ids: List[str],
    ) -> ListIterator[BackendCredential]:
        ...
