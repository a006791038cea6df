"""Tests for the MCP tool catalog and argument models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from thoughtspot_mcp.mcp.tools import (
    TOOL_DEFINITIONS,
    CreateLiveboardArgs,
    GetAnswerArgs,
    GetRelevantDataArgs,
    GetRelevantQuestionsArgs,
    ToolName,
    get_tool_definitions,
)


class TestCatalog:
    def test_tool_names_in_order(self):
        assert [t.name for t in get_tool_definitions()] == [
            "ping",
            "getRelevantQuestions",
            "getRelevantData",
            "getAnswer",
            "createLiveboard",
        ]

    def test_every_tool_defined(self):
        assert set(TOOL_DEFINITIONS) == set(ToolName)

    def test_schemas_use_camel_case(self):
        schema = TOOL_DEFINITIONS[ToolName.GET_ANSWER].input_schema()
        assert set(schema["properties"]) == {"question", "datasourceId"}
        assert set(schema["required"]) == {"question", "datasourceId"}

    def test_optional_arguments_not_required(self):
        schema = TOOL_DEFINITIONS[ToolName.GET_RELEVANT_QUESTIONS].input_schema()
        assert schema["required"] == ["query"]

    def test_descriptions_present(self):
        assert all(t.description for t in get_tool_definitions())


class TestArguments:
    def test_relevant_questions_defaults(self):
        args = GetRelevantQuestionsArgs.model_validate({"query": "revenue"})
        assert args.datasource_ids is None
        assert args.additional_context == ""

    def test_relevant_data_aliases(self):
        args = GetRelevantDataArgs.model_validate(
            {"query": "q", "datasourceIds": ["ws-1"], "createLiveboard": True}
        )
        assert args.datasource_ids == ["ws-1"]
        assert args.create_liveboard is True

    def test_relevant_data_additional_context(self):
        args = GetRelevantDataArgs.model_validate({"query": "q", "additionalContext": "EMEA only"})
        assert args.additional_context == "EMEA only"
        schema = TOOL_DEFINITIONS[ToolName.GET_RELEVANT_DATA].input_schema()
        assert "additionalContext" in schema["properties"]
        assert schema["required"] == ["query"]

    def test_get_answer_requires_datasource(self):
        with pytest.raises(ValidationError):
            GetAnswerArgs.model_validate({"question": "q"})

    def test_empty_query_rejected(self):
        with pytest.raises(ValidationError):
            GetRelevantDataArgs.model_validate({"query": ""})

    def test_create_liveboard_needs_answers(self):
        with pytest.raises(ValidationError):
            CreateLiveboardArgs.model_validate({"name": "Board", "answers": []})

    def test_create_liveboard_references(self):
        args = CreateLiveboardArgs.model_validate(
            {
                "name": "Board",
                "answers": [
                    {"question": "q", "sessionIdentifier": "s", "generationNumber": 2},
                ],
            }
        )
        ref = args.answers[0]
        assert (ref.session_identifier, ref.generation_number, ref.datasource_id) == ("s", 2, "")
