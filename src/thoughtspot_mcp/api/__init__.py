"""ThoughtSpot API client and shared data model."""

from thoughtspot_mcp.api.client import ThoughtSpotClient
from thoughtspot_mcp.api.models import Answer, AnswerSession, DataSource, Question, SessionInfo

__all__ = ["ThoughtSpotClient", "Answer", "AnswerSession", "DataSource", "Question", "SessionInfo"]
