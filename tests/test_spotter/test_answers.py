"""Tests for thoughtspot_mcp.spotter.answers: AnswerFetcher."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from thoughtspot_mcp.api.client import ThoughtSpotClient
from thoughtspot_mcp.api.models import AnswerSession, Question
from thoughtspot_mcp.exceptions import ThoughtSpotAPIError
from thoughtspot_mcp.spotter.answers import AnswerFetcher, parse_answer_session, truncate_lines


@pytest.fixture
def question() -> Question:
    return Question(text="Revenue by region", datasource_id="ws-sales")


@pytest.fixture
def fetcher(mock_client, settings) -> AnswerFetcher:
    return AnswerFetcher(mock_client, settings)


class TestTruncateLines:
    def test_keeps_first_lines(self):
        text = "\n".join(f"row{i}" for i in range(250))
        assert truncate_lines(text, 100).split("\n") == [f"row{i}" for i in range(100)]

    def test_short_text_unchanged(self):
        assert truncate_lines("a,b\n1,2", 100) == "a,b\n1,2"


class TestParseSession:
    def test_parses_handle(self):
        session = parse_answer_session({"session_identifier": "s", "generation_number": 3})
        assert session == AnswerSession(session_identifier="s", generation_number=3)

    def test_missing_handle_raises(self):
        with pytest.raises(ThoughtSpotAPIError, match="session handle"):
            parse_answer_session({"message": "no answer"})


class TestFetch:
    def test_data_only(self, fetcher, mock_client, question):
        answer = asyncio.run(fetcher.fetch(question))
        assert answer.ok
        assert answer.data == "region,revenue\nwest,100"
        assert answer.template is None
        assert answer.session_identifier == "sess-1"
        mock_client.export_unsaved_answer_tml.assert_not_awaited()
        mock_client.create_answer.assert_awaited_once_with("Revenue by region", "ws-sales")

    def test_with_template(self, fetcher, mock_client, question):
        answer = asyncio.run(fetcher.fetch(question, want_template=True))
        assert answer.template == {"answer": {"name": "Revenue by region", "tables": []}}
        mock_client.export_unsaved_answer_tml.assert_awaited_once_with("sess-1", 1)

    def test_data_capped_at_100_lines(self, fetcher, mock_client, question):
        mock_client.export_answer_report.return_value = "\n".join(
            ["region,revenue"] + [f"r{i},{i}" for i in range(500)]
        )
        answer = asyncio.run(fetcher.fetch(question))
        lines = answer.data.split("\n")
        assert len(lines) == 100
        assert lines[0] == "region,revenue"

    def test_row_limit_from_settings(self, mock_client, settings, question):
        limited = settings.model_copy(update={"ts_data_row_limit": 2})
        mock_client.export_answer_report.return_value = "h\n1\n2\n3"
        answer = asyncio.run(AnswerFetcher(mock_client, limited).fetch(question))
        assert answer.data == "h\n1"

    def test_session_failure_marks_answer(self, fetcher, mock_client, question):
        mock_client.create_answer.side_effect = ThoughtSpotAPIError(500, "spotter down")
        answer = asyncio.run(fetcher.fetch(question, want_template=True))
        assert not answer.ok
        assert isinstance(answer.error, ThoughtSpotAPIError)
        assert answer.data is None
        assert answer.template is None
        mock_client.export_answer_report.assert_not_awaited()

    def test_malformed_session_marks_answer(self, fetcher, mock_client, question):
        mock_client.create_answer.return_value = {}
        answer = asyncio.run(fetcher.fetch(question))
        assert not answer.ok

    def test_data_export_failure_keeps_template(self, fetcher, mock_client, question):
        mock_client.export_answer_report.side_effect = ThoughtSpotAPIError(500, "csv failed")
        answer = asyncio.run(fetcher.fetch(question, want_template=True))
        assert answer.ok
        assert answer.data is None
        assert answer.template is not None

    def test_template_export_failure_keeps_data(self, fetcher, mock_client, question):
        mock_client.export_unsaved_answer_tml.side_effect = ThoughtSpotAPIError(0, "bad tml")
        answer = asyncio.run(fetcher.fetch(question, want_template=True))
        assert answer.ok
        assert answer.data == "region,revenue\nwest,100"
        assert answer.template is None

    def test_failures_isolated_per_question(self, fetcher, mock_client):
        questions = [Question(text=f"q{i}", datasource_id="ws-sales") for i in range(5)]
        ok = {"session_identifier": "s", "generation_number": 1}

        async def create(query, ds):
            if query in ("q1", "q3"):
                raise ThoughtSpotAPIError(500, "failed")
            return ok

        mock_client.create_answer.side_effect = create

        async def fetch_all():
            return await asyncio.gather(*(fetcher.fetch(q) for q in questions))

        answers = asyncio.run(fetch_all())
        assert len(answers) == 5
        assert [a.ok for a in answers] == [True, False, True, False, True]
        assert [a.question.text for a in answers] == ["q0", "q1", "q2", "q3", "q4"]


class TestUnexpectedExportErrors:
    def test_data_export_crash_keeps_template(self, fetcher, mock_client, question):
        mock_client.export_answer_report.side_effect = RuntimeError("connection reset mid-body")
        answer = asyncio.run(fetcher.fetch(question, want_template=True))
        assert answer.ok
        assert answer.data is None
        assert answer.template == {"answer": {"name": "Revenue by region", "tables": []}}

    def test_template_export_crash_keeps_data(self, fetcher, mock_client, question):
        mock_client.export_unsaved_answer_tml.side_effect = ValueError("bad yaml")
        answer = asyncio.run(fetcher.fetch(question, want_template=True))
        assert answer.ok
        assert answer.data == "region,revenue\nwest,100"
        assert answer.template is None

    def test_session_crash_marks_answer(self, fetcher, mock_client, question):
        mock_client.create_answer.side_effect = RuntimeError("boom")
        answer = asyncio.run(fetcher.fetch(question))
        assert not answer.ok
        assert isinstance(answer.error, RuntimeError)

    def test_rate_limited_export_with_http_date(self, settings, question):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/rest/2.0/ai/answer/create":
                return httpx.Response(200, json={"session_identifier": "s", "generation_number": 1})
            if request.url.path == "/api/rest/2.0/report/answer":
                return httpx.Response(429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})
            return httpx.Response(
                200,
                json={"data": {"UnsavedAnswer_getTML": {"object": [{"edoc": "answer:\n  name: Revenue\n"}]}}},
            )

        async def run():
            async with ThoughtSpotClient(settings=settings, transport=httpx.MockTransport(handler)) as client:
                return await AnswerFetcher(client, settings).fetch(question, want_template=True)

        with patch("thoughtspot_mcp.api.client.asyncio.sleep", new=AsyncMock()):
            answer = asyncio.run(run())

        assert answer.ok
        assert answer.data is None
        assert answer.template == {"answer": {"name": "Revenue"}}
