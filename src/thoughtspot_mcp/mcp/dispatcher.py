"""Protocol dispatcher: MCP operations mapped onto Spotter components.

The dispatcher knows nothing about transports. It exposes the four MCP
operations as coroutines; ``thoughtspot_mcp.mcp.server`` binds them to an
MCP server instance.

Protocol faults (unknown tool, malformed arguments, bad resource URI,
unknown data source) are raised. Everything that goes wrong inside a
tool is turned into an error ToolResponse instead.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator

from mcp import types
from opentelemetry.trace import Span
from pydantic import BaseModel, ValidationError

from thoughtspot_mcp.api.client import ThoughtSpotClient
from thoughtspot_mcp.api.models import Answer, AnswerSession, Question, SessionInfo
from thoughtspot_mcp.config import ThoughtSpotSettings, get_settings
from thoughtspot_mcp.exceptions import (
    AuthenticationError,
    InvalidArgumentError,
    NoDataFoundError,
    ResourceNotFoundError,
    ThoughtSpotMCPError,
    UnknownToolError,
)
from thoughtspot_mcp.liveboard.assembler import LiveboardAssembler
from thoughtspot_mcp.mcp.responses import (
    ToolResponse,
    error_response,
    structured_response,
    success_response,
)
from thoughtspot_mcp.mcp.tools import (
    TOOL_DEFINITIONS,
    CreateLiveboardArgs,
    GetAnswerArgs,
    GetRelevantDataArgs,
    GetRelevantQuestionsArgs,
    PingArgs,
    ToolName,
    get_tool_definitions,
)
from thoughtspot_mcp.metrics import TrackerRegistry, TrackEvent, Tracker
from thoughtspot_mcp.metrics.tracing import mark_span, operation_span
from thoughtspot_mcp.spotter.answers import AnswerFetcher
from thoughtspot_mcp.spotter.catalog import DataSourceCatalog
from thoughtspot_mcp.spotter.decomposer import QuestionDecomposer
from thoughtspot_mcp.spotter.pipeline import RefinementPipeline
from thoughtspot_mcp.spotter.progress import ProgressChannel

logger = logging.getLogger(__name__)

DATASOURCE_URI_PREFIX = "datasource:///"

# Catalog is sorted by last access; omitted datasourceIds scope to the most recent ones.
DEFAULT_DATASOURCE_SCOPE = 10

Handler = Callable[[Any, ProgressChannel], Awaitable[ToolResponse]]


def datasource_uri(source_id: str) -> str:
    return f"{DATASOURCE_URI_PREFIX}{source_id}"


def parse_datasource_uri(uri: str) -> str:
    """Return the data source id from a ``datasource:///{id}`` URI."""
    if not uri.startswith(DATASOURCE_URI_PREFIX):
        raise InvalidArgumentError(f"Invalid datasource uri: {uri}")
    source_id = uri[len(DATASOURCE_URI_PREFIX):].strip("/")
    if not source_id:
        raise InvalidArgumentError(f"Invalid datasource uri, missing id: {uri}")
    return source_id


def _answer_payload(answer: Answer) -> dict[str, Any]:
    return {
        "question": answer.question.text,
        "datasourceId": answer.question.datasource_id,
        "data": answer.data,
        "sessionIdentifier": answer.session_identifier,
        "generationNumber": answer.generation_number,
    }


class ProtocolDispatcher:
    """Routes list-tools, list-resources, read-resource and call-tool.

    Every operation runs inside a span named after it. ``call_tool`` also
    emits a usage event before dispatching. The only state kept between
    calls is the data source catalog.
    """

    def __init__(
        self,
        client: ThoughtSpotClient | None,
        settings: ThoughtSpotSettings | None = None,
        *,
        catalog: DataSourceCatalog | None = None,
        decomposer: QuestionDecomposer | None = None,
        fetcher: AnswerFetcher | None = None,
        pipeline: RefinementPipeline | None = None,
        assembler: LiveboardAssembler | None = None,
        trackers: list[Tracker] | None = None,
    ):
        self._client = client
        self._settings = settings or get_settings()
        self.session_info: SessionInfo | None = None
        self.trackers = TrackerRegistry(trackers)

        s = self._settings
        if client is not None:
            catalog = catalog or DataSourceCatalog(client, s)
            decomposer = decomposer or QuestionDecomposer(client, s)
            fetcher = fetcher or AnswerFetcher(client, s)
            assembler = assembler or LiveboardAssembler(client, fetcher, s)
        if pipeline is None and decomposer is not None and fetcher is not None:
            pipeline = RefinementPipeline(decomposer, fetcher)

        self._catalog = catalog
        self._decomposer = decomposer
        self._fetcher = fetcher
        self._pipeline = pipeline
        self._assembler = assembler

        self._handlers: dict[ToolName, Handler] = {
            ToolName.PING: self._ping,
            ToolName.GET_RELEVANT_QUESTIONS: self._get_relevant_questions,
            ToolName.GET_RELEVANT_DATA: self._get_relevant_data,
            ToolName.GET_ANSWER: self._get_answer,
            ToolName.CREATE_LIVEBOARD: self._create_liveboard,
        }
        missing = set(ToolName) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for tools: {sorted(t.value for t in missing)}")

    @property
    def authenticated(self) -> bool:
        return self._client is not None

    def add_tracker(self, tracker: Tracker) -> None:
        self.trackers.add(tracker)

    async def initialize(self) -> None:
        """Load session details for span attributes and announce startup."""
        if self._client is not None:
            self.session_info = SessionInfo.from_api(await self._client.get_session_info())
            logger.info("Connected to %s as %s", self._client.instance_url, self.session_info.user_name)
        else:
            logger.warning("ThoughtSpot credentials are not configured; only ping will work")
        self.trackers.track(TrackEvent.INIT, {"client_name": self._settings.ts_client_name})

    # -- Observability --

    def _common_attributes(self) -> dict[str, Any]:
        return {
            "instance_url": self._settings.ts_instance_url or None,
            "user_guid": self.session_info.user_guid if self.session_info else None,
        }

    @contextmanager
    def _observe(self, operation: str) -> Iterator[Span]:
        with operation_span(operation, self._common_attributes()) as span:
            yield span

    def _require(self, component: Any) -> Any:
        if component is None:
            raise AuthenticationError("Not authenticated")
        return component

    # -- Protocol operations --

    async def list_tools(self) -> list[types.Tool]:
        with self._observe("list-tools"):
            return get_tool_definitions()

    async def list_resources(self) -> list[types.Resource]:
        with self._observe("list-resources"):
            snapshot = await self._require(self._catalog).get()
            return [
                types.Resource(
                    uri=datasource_uri(s.id),
                    name=s.name,
                    description=s.description,
                    mimeType="text/plain",
                )
                for s in snapshot.sources
            ]

    async def read_resource(self, uri: str) -> str:
        with self._observe("read-resource"):
            source_id = parse_datasource_uri(uri)
            snapshot = await self._require(self._catalog).get()
            source = snapshot.by_id.get(source_id)
            if source is None:
                raise ResourceNotFoundError(uri)
            return (
                f"{source.name}\n\n"
                f"{source.description}\n\n"
                f"The id of the datasource is {source_id}.\n\n"
                "Use ThoughtSpot's getRelevantQuestions tool to get relevant questions "
                "for a query. And then use the getAnswer tool to get the answer for a question."
            )

    async def call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        progress: ProgressChannel | None = None,
    ) -> ToolResponse:
        with self._observe("call-tool") as span:
            span.set_attribute("tool_name", name)
            self.trackers.track(TrackEvent.CALL_TOOL, {"tool_name": name})

            tool = self._resolve_tool(name)
            args = self._parse_args(tool, arguments)

            try:
                response = await self._handlers[tool](args, progress or ProgressChannel())
            except ThoughtSpotMCPError as e:
                logger.warning("Tool %s failed: %s", name, e)
                response = error_response(str(e))
            except Exception as e:
                logger.exception("Tool %s failed unexpectedly", name)
                response = error_response(f"Unexpected error: {e}")

            mark_span(span, error=response.is_error, message=response.text)
            return response

    def _resolve_tool(self, name: str) -> ToolName:
        try:
            return ToolName(name)
        except ValueError:
            raise UnknownToolError(name, [t.value for t in ToolName]) from None

    def _parse_args(self, tool: ToolName, arguments: dict[str, Any] | None) -> BaseModel:
        try:
            return TOOL_DEFINITIONS[tool].args_model.model_validate(arguments or {})
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid arguments for {tool.value}: {e}") from e

    async def _resolve_datasource_ids(self, datasource_ids: list[str] | None) -> list[str]:
        if datasource_ids:
            return datasource_ids
        snapshot = await self._require(self._catalog).get()
        if not snapshot.sources:
            raise NoDataFoundError("No datasources are available to this user")
        return snapshot.ids[:DEFAULT_DATASOURCE_SCOPE]

    # -- Tool handlers --

    async def _ping(self, args: PingArgs, progress: ProgressChannel) -> ToolResponse:
        if not self.authenticated:
            return error_response("Not authenticated")
        return success_response("Pong")

    async def _get_relevant_questions(
        self, args: GetRelevantQuestionsArgs, progress: ProgressChannel
    ) -> ToolResponse:
        decomposer: QuestionDecomposer = self._require(self._decomposer)
        ids = await self._resolve_datasource_ids(args.datasource_ids)
        questions = await decomposer.decompose(args.query, ids, args.additional_context)

        if not questions:
            return success_response("No relevant questions found")

        return structured_response(
            {"questions": [{"question": q.text, "datasourceId": q.datasource_id} for q in questions]},
            texts=[f"Question: {q.text}\nDatasourceId: {q.datasource_id}" for q in questions],
        )

    async def _get_relevant_data(
        self, args: GetRelevantDataArgs, progress: ProgressChannel
    ) -> ToolResponse:
        pipeline: RefinementPipeline = self._require(self._pipeline)
        ids = await self._resolve_datasource_ids(args.datasource_ids)
        answers = await pipeline.run(
            args.query,
            ids,
            want_template=args.create_liveboard,
            progress=progress,
            additional_context=args.additional_context,
        )

        answered = [a for a in answers if a.ok]
        if not answered:
            raise NoDataFoundError(f"No relevant data found for: {args.query}")

        texts = [
            "\n\n".join(
                f"Question: {a.question.text}\nAnswer: {a.data if a.data is not None else 'No data available'}"
                for a in answered
            )
        ]
        liveboard_url: str | None = None
        if args.create_liveboard:
            assembler: LiveboardAssembler = self._require(self._assembler)
            try:
                liveboard_url = await assembler.assemble(args.query, answered)
                texts.append(f"Dashboard Url: {liveboard_url}")
            except Exception as e:
                logger.warning(
                    "Liveboard creation failed for %r: %s",
                    args.query,
                    e,
                    exc_info=not isinstance(e, ThoughtSpotMCPError),
                )
                texts.append(f"Liveboard could not be created: {e}")

        return structured_response(
            {"answers": [_answer_payload(a) for a in answered], "liveboardUrl": liveboard_url},
            texts=texts,
        )

    async def _get_answer(self, args: GetAnswerArgs, progress: ProgressChannel) -> ToolResponse:
        fetcher: AnswerFetcher = self._require(self._fetcher)
        answer = await fetcher.fetch(Question(text=args.question, datasource_id=args.datasource_id))
        if answer.error is not None:
            return error_response(str(answer.error))
        if answer.data is None:
            raise NoDataFoundError(f"No data could be exported for: {args.question}")

        return structured_response(
            _answer_payload(answer),
            texts=[
                answer.data,
                f"Question: {args.question}\n"
                f"Session Identifier: {answer.session_identifier}\n"
                f"Generation Number: {answer.generation_number}\n\n"
                "Use this information to create a liveboard with the createLiveboard tool, if the user asks.",
            ],
        )

    async def _create_liveboard(
        self, args: CreateLiveboardArgs, progress: ProgressChannel
    ) -> ToolResponse:
        assembler: LiveboardAssembler = self._require(self._assembler)
        refs = [
            (
                Question(text=ref.question, datasource_id=ref.datasource_id),
                AnswerSession(
                    session_identifier=ref.session_identifier,
                    generation_number=ref.generation_number,
                ),
            )
            for ref in args.answers
        ]
        url = await assembler.create_from_sessions(args.name, refs)
        return structured_response(
            {"liveboardUrl": url},
            texts=[
                f"Liveboard created successfully, you can view it at {url}\n\n"
                "Provide this url to the user as a link to view the liveboard in ThoughtSpot."
            ],
        )
