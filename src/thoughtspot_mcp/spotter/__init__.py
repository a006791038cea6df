"""Spotter question answering: catalog, decomposition, answers, pipeline."""

from thoughtspot_mcp.spotter.answers import AnswerFetcher
from thoughtspot_mcp.spotter.catalog import CatalogSnapshot, DataSourceCatalog
from thoughtspot_mcp.spotter.decomposer import QuestionDecomposer
from thoughtspot_mcp.spotter.pipeline import RefinementPipeline
from thoughtspot_mcp.spotter.progress import ProgressChannel, ProgressUpdate

__all__ = [
    "AnswerFetcher",
    "CatalogSnapshot",
    "DataSourceCatalog",
    "QuestionDecomposer",
    "RefinementPipeline",
    "ProgressChannel",
    "ProgressUpdate",
]
