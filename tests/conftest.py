"""Shared test fixtures for thoughtspot-mcp tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from thoughtspot_mcp.api.models import Answer, AnswerSession, DataSource, Question
from thoughtspot_mcp.config import ThoughtSpotSettings, reset_settings


@pytest.fixture(autouse=True)
def _reset_settings():
    """Reset settings singleton between tests."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> ThoughtSpotSettings:
    return ThoughtSpotSettings(
        ts_instance_url="https://acme.thoughtspot.cloud",
        ts_access_token="token-123",
        _env_file=None,
    )


@pytest.fixture
def mock_client() -> MagicMock:
    """ThoughtSpotClient stand-in with every endpoint as an AsyncMock."""
    client = MagicMock()
    client.instance_url = "https://acme.thoughtspot.cloud"
    client.search_metadata = AsyncMock(return_value=[])
    client.get_decomposed_query = AsyncMock(return_value={})
    client.create_answer = AsyncMock(
        return_value={"session_identifier": "sess-1", "generation_number": 1}
    )
    client.export_answer_report = AsyncMock(return_value="region,revenue\nwest,100")
    client.export_unsaved_answer_tml = AsyncMock(
        return_value={"answer": {"name": "Revenue by region", "tables": []}}
    )
    client.import_metadata_tml = AsyncMock(
        return_value=[{"response": {"status": {"status_code": "OK"}, "header": {"id_guid": "lb-1"}}}]
    )
    client.get_session_info = AsyncMock(
        return_value={"id": "user-1", "name": "ana", "current_org": {"id": 0}}
    )
    return client


@pytest.fixture
def sample_metadata() -> list[dict]:
    """metadata/search response mixing worksheets and other logical tables."""
    return [
        {
            "metadata_header": {
                "id": "ws-sales",
                "name": "Sales",
                "description": "Orders, revenue and regions",
                "type": "WORKSHEET",
            }
        },
        {
            "metadata_header": {
                "id": "tbl-raw",
                "name": "RAW_ORDERS",
                "type": "ONE_TO_ONE_LOGICAL",
            }
        },
        {
            "metadata_header": {
                "id": "ws-marketing",
                "name": "Marketing",
                "description": None,
                "type": "WORKSHEET",
            }
        },
    ]


@pytest.fixture
def sample_sources() -> list[DataSource]:
    return [
        DataSource(id="ws-sales", name="Sales", description="Orders, revenue and regions"),
        DataSource(id="ws-marketing", name="Marketing"),
    ]


def _make_answer(
    text: str,
    datasource_id: str = "ws-sales",
    data: str | None = "a,b\n1,2",
    template: dict | None = None,
    session_id: str = "sess-1",
) -> Answer:
    return Answer(
        question=Question(text=text, datasource_id=datasource_id),
        session=AnswerSession(session_identifier=session_id, generation_number=1),
        data=data,
        template=template,
    )


@pytest.fixture
def make_answer():
    """Factory for successful answers."""
    return _make_answer
