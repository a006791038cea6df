"""Turn a free-text query into concrete analytic sub-questions."""

from __future__ import annotations

import logging

from thoughtspot_mcp.api.client import ThoughtSpotClient
from thoughtspot_mcp.api.models import Question
from thoughtspot_mcp.config import ThoughtSpotSettings, get_settings
from thoughtspot_mcp.exceptions import ThoughtSpotAPIError

logger = logging.getLogger(__name__)


class QuestionDecomposer:
    """Wraps Spotter's query decomposition.

    Each returned sub-question keeps the worksheet id the backend paired
    it with, so one call over several data sources can yield questions
    for different sources.
    """

    def __init__(self, client: ThoughtSpotClient, settings: ThoughtSpotSettings | None = None):
        self._client = client
        self._settings = settings or get_settings()

    async def decompose(
        self,
        query: str,
        datasource_ids: list[str],
        additional_context: str = "",
    ) -> list[Question]:
        """Return ranked sub-questions for ``query``.

        An empty list is a valid result. Backend failures are raised as
        ThoughtSpotAPIError; falling back to the raw query is up to the
        caller.
        """
        body = {
            "nlsRequest": {"query": query},
            "content": [additional_context or ""],
            "worksheetIds": list(datasource_ids),
            "maxDecomposedQueries": self._settings.ts_max_decomposed_queries,
        }
        try:
            resp = await self._client.get_decomposed_query(body)
        except ThoughtSpotAPIError as e:
            logger.error(
                "Decomposition failed for %r over %s: %s", query, datasource_ids, e
            )
            raise

        decomposed = (resp.get("decomposedQueryResponse") or {}).get("decomposedQueries") or []
        questions: list[Question] = []
        for item in decomposed:
            text = item.get("query")
            worksheet_id = item.get("worksheetId")
            if not text or not worksheet_id:
                logger.warning("Skipping incomplete decomposed query: %s", item)
                continue
            questions.append(Question(text=text, datasource_id=worksheet_id))

        logger.debug("Decomposed %r into %d questions", query, len(questions))
        return questions
