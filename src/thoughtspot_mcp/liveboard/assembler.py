"""Create a ThoughtSpot liveboard from fetched answers."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from thoughtspot_mcp.api.client import ThoughtSpotClient
from thoughtspot_mcp.api.models import Answer, AnswerSession, Question
from thoughtspot_mcp.config import ThoughtSpotSettings, get_settings
from thoughtspot_mcp.exceptions import LiveboardImportError, NoDataFoundError
from thoughtspot_mcp.liveboard.definition import (
    LayoutTile,
    LiveboardLayout,
    LiveboardSpec,
    Visualization,
    visualization_id,
)
from thoughtspot_mcp.spotter.answers import AnswerFetcher

logger = logging.getLogger(__name__)

IMPORT_POLICY = "ALL_OR_NONE"


def _imported_guid(resp: list[dict[str, Any]]) -> str:
    """Pull the new liveboard guid out of a TML import response."""
    if not resp:
        raise LiveboardImportError("empty import response")
    response = resp[0].get("response") or {}
    status = response.get("status") or {}
    if status.get("status_code") == "ERROR":
        raise LiveboardImportError(
            status.get("error_message", "unknown error"), json.dumps(resp)
        )
    guid = (response.get("header") or {}).get("id_guid")
    if not guid:
        raise LiveboardImportError("import response has no liveboard id", json.dumps(resp))
    return guid


class LiveboardAssembler:
    """Builds a LiveboardSpec from answers and imports it.

    Answers without a template are skipped, so one failed TML export
    never blocks the rest of the liveboard.
    """

    def __init__(
        self,
        client: ThoughtSpotClient,
        fetcher: AnswerFetcher | None = None,
        settings: ThoughtSpotSettings | None = None,
    ):
        self._client = client
        self._settings = settings or get_settings()
        self._fetcher = fetcher or AnswerFetcher(client, self._settings)

    def build_spec(self, name: str, answers: list[Answer]) -> LiveboardSpec:
        with_template = [a for a in answers if a.template is not None]
        size = self._settings.ts_liveboard_tile_size
        visualizations = [
            Visualization(
                id=visualization_id(idx),
                question=answer.question.text,
                answer_template=answer.template,
            )
            for idx, answer in enumerate(with_template)
        ]
        tiles = [LayoutTile(visualization_id=v.id, size=size) for v in visualizations]
        return LiveboardSpec(name=name, visualizations=visualizations, layout=LiveboardLayout(tiles=tiles))

    def liveboard_url(self, liveboard_id: str) -> str:
        return f"{self._client.instance_url}/#/pinboard/{liveboard_id}"

    async def assemble(self, name: str, answers: list[Answer]) -> str:
        """Import a liveboard built from ``answers`` and return its URL."""
        spec = self.build_spec(name, answers)
        if not spec.visualizations:
            raise NoDataFoundError("None of the answers could be added to a liveboard")

        skipped = len(answers) - spec.visualization_count
        if skipped:
            logger.info("Skipping %d answers without TML for liveboard %r", skipped, name)

        resp = await self._client.import_metadata_tml(
            metadata_tmls=[spec.to_json()],
            import_policy=IMPORT_POLICY,
        )
        guid = _imported_guid(resp)
        logger.info("Created liveboard %r (%s) with %d visualizations", name, guid, spec.visualization_count)
        return self.liveboard_url(guid)

    async def create_from_sessions(
        self,
        name: str,
        answers: list[tuple[Question, AnswerSession]],
    ) -> str:
        """Re-export TML for existing answer sessions, then assemble."""
        templates = await asyncio.gather(
            *(self._fetcher.export_template(q, s) for q, s in answers)
        )
        fetched = [
            Answer(question=q, session=s, template=tml)
            for (q, s), tml in zip(answers, templates)
        ]
        return await self.assemble(name, fetched)
