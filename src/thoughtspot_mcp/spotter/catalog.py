"""Discovery and memoization of queryable data sources."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, TypeVar

from thoughtspot_mcp.api.client import ThoughtSpotClient
from thoughtspot_mcp.api.models import DataSource
from thoughtspot_mcp.config import ThoughtSpotSettings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

WORKSHEET_TYPE = "WORKSHEET"


class _Once(Generic[T]):
    """Compute an async value once and keep it.

    There is no lock: two callers racing on the first access may both
    run the factory, and the last result wins. Failures are not stored,
    so the next call retries.
    """

    def __init__(self, factory: Callable[[], Awaitable[T]]):
        self._factory = factory
        self._value: T | None = None
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    async def get(self) -> T:
        if self._ready:
            return self._value  # type: ignore[return-value]
        value = await self._factory()
        self._value = value
        self._ready = True
        return value


@dataclass(frozen=True)
class CatalogSnapshot:
    """Data sources in discovery order, plus an index by id."""

    sources: tuple[DataSource, ...] = ()
    by_id: dict[str, DataSource] = field(default_factory=dict)

    @classmethod
    def from_sources(cls, sources: list[DataSource]) -> CatalogSnapshot:
        return cls(sources=tuple(sources), by_id={s.id: s for s in sources})

    @property
    def ids(self) -> list[str]:
        return [s.id for s in self.sources]


def _parse_worksheets(records: list[dict[str, Any]]) -> list[DataSource]:
    sources: list[DataSource] = []
    for record in records:
        header = record.get("metadata_header") or {}
        if header.get("type") != WORKSHEET_TYPE:
            continue
        source_id = header.get("id")
        if not source_id:
            continue
        sources.append(
            DataSource(
                id=source_id,
                name=header.get("name", ""),
                description=header.get("description") or "",
            )
        )
    return sources


class DataSourceCatalog:
    """Lazily discovered worksheets for the current credentials.

    The first ``get()`` searches the instance for logical tables (most
    recently accessed first) and keeps the worksheets. Later calls return
    the stored snapshot. The catalog lives as long as its owner and is
    never refreshed.
    """

    def __init__(self, client: ThoughtSpotClient, settings: ThoughtSpotSettings | None = None):
        self._client = client
        self._settings = settings or get_settings()
        self._snapshot: _Once[CatalogSnapshot] = _Once(self._discover)

    @property
    def loaded(self) -> bool:
        return self._snapshot.ready

    async def get(self) -> CatalogSnapshot:
        return await self._snapshot.get()

    async def _discover(self) -> CatalogSnapshot:
        records = await self._client.search_metadata(
            {
                "metadata": [{"type": "LOGICAL_TABLE"}],
                "record_size": self._settings.ts_datasource_page_size,
                "sort_options": {"field_name": "LAST_ACCESSED", "order": "DESC"},
            }
        )
        sources = _parse_worksheets(records)
        logger.info("Discovered %d data sources (%d metadata records)", len(sources), len(records))
        return CatalogSnapshot.from_sources(sources)
