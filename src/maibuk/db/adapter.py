# ABOUTME: The uniform storage adapter contract shared by the native and embedded backends.
# ABOUTME: Repositories depend only on this protocol, never on a concrete backend.

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

Params = Sequence[Any]
Row = dict[str, Any]


@runtime_checkable
class DatabaseAdapter(Protocol):
    """Async execute/select/close/export contract over an embedded SQL engine."""

    async def execute(self, sql: str, params: Params | None = None) -> int:
        """Run a statement and return the number of rows it affected."""
        ...

    async def select(self, sql: str, params: Params | None = None) -> list[Row]:
        """Run a query and return its rows as column-keyed dicts."""
        ...

    async def close(self) -> None: ...

    async def export_data(self) -> bytes:
        """Return a portable dump of every table's contents."""
        ...
