"""Tests for thoughtspot_mcp.spotter.decomposer."""

from __future__ import annotations

import asyncio

import pytest

from thoughtspot_mcp.api.models import Question
from thoughtspot_mcp.exceptions import ThoughtSpotAPIError
from thoughtspot_mcp.spotter.decomposer import QuestionDecomposer


def _decomposed(*pairs):
    return {
        "decomposedQueryResponse": {
            "decomposedQueries": [{"query": q, "worksheetId": ws} for q, ws in pairs]
        }
    }


class TestDecompose:
    def test_maps_questions_in_order(self, mock_client, settings):
        mock_client.get_decomposed_query.return_value = _decomposed(
            ("Revenue by region", "ws-sales"),
            ("Campaign spend by month", "ws-marketing"),
        )
        questions = asyncio.run(
            QuestionDecomposer(mock_client, settings).decompose("why is revenue down", ["ws-sales", "ws-marketing"])
        )
        assert questions == [
            Question(text="Revenue by region", datasource_id="ws-sales"),
            Question(text="Campaign spend by month", datasource_id="ws-marketing"),
        ]

    def test_request_body(self, mock_client, settings):
        asyncio.run(
            QuestionDecomposer(mock_client, settings).decompose("q", ["ws-1"], "prior answers")
        )
        body = mock_client.get_decomposed_query.call_args.args[0]
        assert body == {
            "nlsRequest": {"query": "q"},
            "content": ["prior answers"],
            "worksheetIds": ["ws-1"],
            "maxDecomposedQueries": 5,
        }

    def test_empty_context_sent_as_empty_string(self, mock_client, settings):
        asyncio.run(QuestionDecomposer(mock_client, settings).decompose("q", ["ws-1"]))
        body = mock_client.get_decomposed_query.call_args.args[0]
        assert body["content"] == [""]

    def test_no_questions_is_valid(self, mock_client, settings):
        mock_client.get_decomposed_query.return_value = {"decomposedQueryResponse": {}}
        assert asyncio.run(QuestionDecomposer(mock_client, settings).decompose("q", ["ws-1"])) == []

    def test_skips_incomplete_entries(self, mock_client, settings):
        mock_client.get_decomposed_query.return_value = {
            "decomposedQueryResponse": {
                "decomposedQueries": [
                    {"query": "Revenue", "worksheetId": "ws-1"},
                    {"query": "No source"},
                    {"worksheetId": "ws-1"},
                ]
            }
        }
        questions = asyncio.run(QuestionDecomposer(mock_client, settings).decompose("q", ["ws-1"]))
        assert [q.text for q in questions] == ["Revenue"]

    def test_backend_failure_propagates(self, mock_client, settings):
        mock_client.get_decomposed_query.side_effect = ThoughtSpotAPIError(500, "down")
        with pytest.raises(ThoughtSpotAPIError):
            asyncio.run(QuestionDecomposer(mock_client, settings).decompose("q", ["ws-1"]))
