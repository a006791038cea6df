"""Tool catalog for the ThoughtSpot MCP server.

Defines 5 tools:
- ping: Check connectivity and authentication
- getRelevantQuestions: Decompose a query into analytic sub-questions
- getRelevantData: Answer a query end to end (two refinement rounds)
- getAnswer: Answer a single question against one data source
- createLiveboard: Build a liveboard from previously fetched answers

Argument shapes are Pydantic models; their JSON schemas double as the
MCP input schemas.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from mcp import types
from pydantic import BaseModel, ConfigDict, Field


class ToolName(str, Enum):
    PING = "ping"
    GET_RELEVANT_QUESTIONS = "getRelevantQuestions"
    GET_RELEVANT_DATA = "getRelevantData"
    GET_ANSWER = "getAnswer"
    CREATE_LIVEBOARD = "createLiveboard"


class _ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PingArgs(_ToolArgs):
    pass


class GetRelevantQuestionsArgs(_ToolArgs):
    query: str = Field(
        min_length=1,
        description=(
            "The query to get relevant data for, this could be a high level task "
            "or question the user is asking or hoping to get answered."
        ),
    )
    datasource_ids: list[str] | None = Field(
        default=None,
        alias="datasourceIds",
        description=(
            "Ids of the datasources to scope the questions to. Use the datasource "
            "resources to find them. Defaults to every available datasource."
        ),
    )
    additional_context: str = Field(
        default="",
        alias="additionalContext",
        description=(
            "Extra context for the decomposition, e.g. data already retrieved or "
            "details about the user's goal."
        ),
    )


class GetRelevantDataArgs(_ToolArgs):
    query: str = Field(
        min_length=1,
        description="High level task or question to collect data for.",
    )
    datasource_ids: list[str] | None = Field(
        default=None,
        alias="datasourceIds",
        description="Ids of the datasources to use. Defaults to every available datasource.",
    )
    additional_context: str = Field(
        default="",
        alias="additionalContext",
        description="Extra context for the questions asked, e.g. details about the user's goal.",
    )
    create_liveboard: bool = Field(
        default=False,
        alias="createLiveboard",
        description="Also create a liveboard from the retrieved answers.",
    )


class GetAnswerArgs(_ToolArgs):
    question: str = Field(
        min_length=1,
        description="The question to get the answer for, usually one returned by getRelevantQuestions.",
    )
    datasource_id: str = Field(
        min_length=1,
        alias="datasourceId",
        description="The datasource to answer the question with.",
    )


class AnswerReference(_ToolArgs):
    question: str = Field(min_length=1, description="The question the answer was fetched for.")
    session_identifier: str = Field(
        min_length=1,
        alias="sessionIdentifier",
        description="Session identifier returned by getAnswer.",
    )
    generation_number: int = Field(
        alias="generationNumber",
        description="Generation number returned by getAnswer.",
    )
    datasource_id: str = Field(
        default="",
        alias="datasourceId",
        description="Datasource the answer came from, if known.",
    )


class CreateLiveboardArgs(_ToolArgs):
    name: str = Field(min_length=1, description="The name of the liveboard to create.")
    answers: list[AnswerReference] = Field(
        min_length=1,
        description="Answers (from getAnswer) to put on the liveboard, in display order.",
    )


@dataclass(frozen=True)
class ToolDefinition:
    name: ToolName
    description: str
    args_model: type[_ToolArgs]

    def input_schema(self) -> dict[str, Any]:
        return self.args_model.model_json_schema(by_alias=True)

    def to_mcp_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name.value,
            description=self.description,
            inputSchema=self.input_schema(),
        )


TOOL_DEFINITIONS: dict[ToolName, ToolDefinition] = {
    ToolName.PING: ToolDefinition(
        ToolName.PING,
        "Simple ping tool to test connectivity and Auth.",
        PingArgs,
    ),
    ToolName.GET_RELEVANT_QUESTIONS: ToolDefinition(
        ToolName.GET_RELEVANT_QUESTIONS,
        (
            "Get relevant data questions from ThoughtSpot database for a query. "
            "Returns analytic questions, each paired with the datasource to ask it "
            "against. Use getAnswer to answer them."
        ),
        GetRelevantQuestionsArgs,
    ),
    ToolName.GET_RELEVANT_DATA: ToolDefinition(
        ToolName.GET_RELEVANT_DATA,
        (
            "Get relevant data from ThoughtSpot for a high level query. Asks a set of "
            "analytic questions, then follow-up questions based on the first answers, "
            "and returns the answers as CSV. Optionally builds a liveboard."
        ),
        GetRelevantDataArgs,
    ),
    ToolName.GET_ANSWER: ToolDefinition(
        ToolName.GET_ANSWER,
        (
            "Get the answer to a question from ThoughtSpot as CSV data, along with the "
            "session details needed to add it to a liveboard."
        ),
        GetAnswerArgs,
    ),
    ToolName.CREATE_LIVEBOARD: ToolDefinition(
        ToolName.CREATE_LIVEBOARD,
        (
            "Create a liveboard in ThoughtSpot from answers returned by getAnswer. "
            "Returns the URL of the new liveboard."
        ),
        CreateLiveboardArgs,
    ),
}


def get_tool_definitions() -> list[types.Tool]:
    """Return the MCP tool descriptors in ToolName order."""
    return [TOOL_DEFINITIONS[name].to_mcp_tool() for name in ToolName]
