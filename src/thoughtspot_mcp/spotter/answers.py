"""Fetch one Spotter answer: session, CSV data and (optionally) TML."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from thoughtspot_mcp.api.client import ThoughtSpotClient
from thoughtspot_mcp.api.models import Answer, AnswerSession, Question
from thoughtspot_mcp.config import ThoughtSpotSettings, get_settings
from thoughtspot_mcp.exceptions import ThoughtSpotAPIError

logger = logging.getLogger(__name__)


def truncate_lines(text: str, limit: int) -> str:
    """Keep at most ``limit`` lines of ``text`` (header included)."""
    return "\n".join(text.split("\n")[:limit])


def parse_answer_session(payload: dict[str, Any]) -> AnswerSession:
    try:
        return AnswerSession(
            session_identifier=payload["session_identifier"],
            generation_number=payload["generation_number"],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ThoughtSpotAPIError(0, "Answer response is missing its session handle", str(payload)) from e


class AnswerFetcher:
    """Retrieves answers with failures contained to the answer itself.

    Only a failure to obtain the answer session marks the Answer as
    errored. Data and template exports run concurrently and fail
    independently: a failed export leaves just that field empty.
    """

    def __init__(self, client: ThoughtSpotClient, settings: ThoughtSpotSettings | None = None):
        self._client = client
        self._settings = settings or get_settings()

    async def fetch(self, question: Question, want_template: bool = False) -> Answer:
        try:
            payload = await self._client.create_answer(question.text, question.datasource_id)
            session = parse_answer_session(payload)
        except Exception as e:
            logger.error(
                "Failed to get answer for %r on datasource %s: %s",
                question.text,
                question.datasource_id,
                e,
            )
            return Answer.failed(question, e)

        if want_template:
            data, template = await asyncio.gather(
                self.export_data(question, session),
                self.export_template(question, session),
            )
        else:
            data, template = await self.export_data(question, session), None

        return Answer(question=question, session=session, data=data, template=template)

    async def export_data(self, question: Question, session: AnswerSession) -> str | None:
        """CSV data for an answer session, truncated; None on failure."""
        try:
            csv_text = await self._client.export_answer_report(
                session.session_identifier,
                session.generation_number,
                file_format="CSV",
            )
        except Exception as e:
            logger.warning("Failed to export data for %r: %s", question.text, e)
            return None
        return truncate_lines(csv_text, self._settings.ts_data_row_limit)

    async def export_template(self, question: Question, session: AnswerSession) -> dict[str, Any] | None:
        """Answer TML for an answer session; None on failure."""
        try:
            return await self._client.export_unsaved_answer_tml(
                session.session_identifier,
                session.generation_number,
            )
        except Exception as e:
            logger.warning("Failed to export TML for %r: %s", question.text, e)
            return None
