"""Data model shared by the Spotter pipeline and the MCP layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DataSource(BaseModel):
    """A queryable worksheet discovered on the instance."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""


class Question(BaseModel):
    """One concrete analytic question scoped to a single data source."""

    model_config = ConfigDict(frozen=True)

    text: str
    datasource_id: str


class AnswerSession(BaseModel):
    """Backend handle for re-deriving the data or TML of one answer."""

    model_config = ConfigDict(frozen=True)

    session_identifier: str
    generation_number: int


class Answer(BaseModel):
    """Result of fetching one question.

    ``data`` holds CSV text (already truncated). ``template`` holds the
    parsed answer TML and is only populated when it was requested. When
    ``error`` is set the session could not be obtained and both payload
    fields are empty.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    question: Question
    session: AnswerSession | None = None
    data: str | None = None
    template: dict[str, Any] | None = None
    error: Exception | None = None

    @model_validator(mode="after")
    def check_error_excludes_payload(self) -> Answer:
        if self.error is not None and (self.data is not None or self.template is not None):
            raise ValueError("an errored answer cannot carry data or template")
        if self.error is None and self.session is None:
            raise ValueError("a successful answer needs an answer session")
        return self

    @classmethod
    def failed(cls, question: Question, error: Exception) -> Answer:
        return cls(question=question, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def session_identifier(self) -> str | None:
        return self.session.session_identifier if self.session else None

    @property
    def generation_number(self) -> int | None:
        return self.session.generation_number if self.session else None


class SessionInfo(BaseModel):
    """Details about the authenticated user, used for span attributes."""

    user_guid: str = ""
    user_name: str = ""
    current_org_id: str = ""
    privileges: list[str] = Field(default_factory=list)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> SessionInfo:
        org = payload.get("current_org") or {}
        return cls(
            user_guid=payload.get("id", ""),
            user_name=payload.get("name", ""),
            current_org_id=str(org.get("id", "")) if org else "",
            privileges=list(payload.get("privileges") or []),
        )
