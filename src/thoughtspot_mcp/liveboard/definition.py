"""Liveboard specification assembled from answer TMLs.

These Pydantic models mirror the ``liveboard`` TML document that
ThoughtSpot's metadata import accepts. A spec is built, serialized,
imported and then thrown away.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field, model_validator


def visualization_id(index: int) -> str:
    return f"Viz_{index}"


class Visualization(BaseModel):
    """One answer placed on the liveboard."""

    id: str
    question: str
    answer_template: dict[str, Any]

    def to_tml(self) -> dict[str, Any]:
        # Exported TML wraps the answer body under "answer"; tolerate a bare body.
        body = self.answer_template.get("answer", self.answer_template)
        return {"id": self.id, "answer": {**body, "name": self.question}}


class LayoutTile(BaseModel):
    visualization_id: str
    size: str = "MEDIUM_SMALL"


class LiveboardLayout(BaseModel):
    tiles: list[LayoutTile] = Field(default_factory=list)


class LiveboardSpec(BaseModel):
    """A liveboard with one tile per visualization, in order."""

    name: str
    visualizations: list[Visualization] = Field(default_factory=list)
    layout: LiveboardLayout = Field(default_factory=LiveboardLayout)

    @model_validator(mode="after")
    def check_tiles_reference_visualizations(self) -> LiveboardSpec:
        viz_ids = {v.id for v in self.visualizations}
        missing = [t.visualization_id for t in self.layout.tiles if t.visualization_id not in viz_ids]
        if missing:
            raise ValueError(f"Layout tiles reference unknown visualizations: {missing}")
        return self

    @property
    def visualization_count(self) -> int:
        return len(self.visualizations)

    def to_tml(self) -> dict[str, Any]:
        return {
            "liveboard": {
                "name": self.name,
                "visualizations": [v.to_tml() for v in self.visualizations],
                "layout": {
                    "tiles": [
                        {"visualization_id": t.visualization_id, "size": t.size}
                        for t in self.layout.tiles
                    ],
                },
            }
        }

    def to_json(self) -> str:
        return json.dumps(self.to_tml())
