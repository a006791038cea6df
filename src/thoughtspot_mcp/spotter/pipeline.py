"""Two-round question answering over Spotter.

Round 1 answers the literal query. Round 2 decomposes the same query
again, this time with the round-1 answers as context, so Spotter can ask
follow-up questions (drill-downs, filters) instead of repeating itself.
The number of rounds is fixed.
"""

from __future__ import annotations

import asyncio
import logging

from thoughtspot_mcp.api.models import Answer, Question
from thoughtspot_mcp.spotter.answers import AnswerFetcher
from thoughtspot_mcp.spotter.decomposer import QuestionDecomposer
from thoughtspot_mcp.spotter.progress import ProgressChannel

logger = logging.getLogger(__name__)

ROUNDS = 2

NO_PRIOR_ANSWERS = "No questions have been answered yet for this query."

REFINEMENT_INSTRUCTIONS = (
    "Look at the csv data of the above queries to see if you need additional "
    "related queries to be answered. You can also ask questions going deeper "
    "into the data returned by applying filters.\n"
    "Do NOT resend the same query already asked before."
)


def build_refinement_context(answers: list[Answer]) -> str:
    """Summarize answered questions for the second decomposition.

    Errored answers are left out. With nothing answered the context
    still says so, so the second round never runs on an empty string.
    """
    answered = [a for a in answers if a.ok]
    if not answered:
        return f"{NO_PRIOR_ANSWERS}\n{REFINEMENT_INSTRUCTIONS}"

    summaries = "\n\n".join(
        f"Question: {a.question.text}\nCSV data:\n{a.data or ''}" for a in answered
    )
    return (
        "These questions have been answered already (with their csv data):\n"
        f"{summaries}\n\n{REFINEMENT_INSTRUCTIONS}"
    )


def format_question_list(title: str, questions: list[Question]) -> str:
    lines = "\n".join(f"- {q.text}" for q in questions)
    return f"#### {title}:\n{lines}" if lines else f"#### {title}: none"


class RefinementPipeline:
    """Decompose, fetch, refine, fetch again."""

    def __init__(self, decomposer: QuestionDecomposer, fetcher: AnswerFetcher):
        self._decomposer = decomposer
        self._fetcher = fetcher

    async def run(
        self,
        query: str,
        datasource_ids: list[str],
        want_template: bool = False,
        progress: ProgressChannel | None = None,
        additional_context: str = "",
    ) -> list[Answer]:
        """Return round-1 answers followed by round-2 answers.

        Answers that failed keep their place with ``error`` set; callers
        decide whether to show them. ``additional_context`` from the caller
        is given to both decompositions.
        """
        progress = progress or ProgressChannel()

        first = await self._decomposer.decompose(query, datasource_ids, additional_context)
        progress.emit(format_question_list("Retrieving answers to these relevant questions", first))
        first_answers = await self._fetch_round(first, want_template, progress)

        context = build_refinement_context(first_answers)
        if additional_context:
            context = f"{additional_context}\n\n{context}"
        second = await self._decomposer.decompose(query, datasource_ids, context)
        progress.emit(format_question_list("Need to get answers to some of these additional questions", second))
        second_answers = await self._fetch_round(second, want_template, progress)

        logger.info(
            "Pipeline for %r: %d + %d answers over %d rounds",
            query,
            len(first_answers),
            len(second_answers),
            ROUNDS,
        )
        return first_answers + second_answers

    async def _fetch_round(
        self,
        questions: list[Question],
        want_template: bool,
        progress: ProgressChannel,
    ) -> list[Answer]:
        results = await asyncio.gather(
            *(self._fetcher.fetch(q, want_template) for q in questions),
            return_exceptions=True,
        )
        answers: list[Answer] = []
        for question, result in zip(questions, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error("Unexpected failure fetching %r: %s", question.text, result, exc_info=result)
                continue
            answers.append(result)

        retrieved = sum(1 for a in answers if a.ok)
        progress.emit(f"Retrieved {retrieved} answers using ThoughtSpot Spotter")
        return answers
