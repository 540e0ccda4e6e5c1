"""
Mind-map tree model and recovery of a tree from free-form model output.

Model output is not schema constrained, so `recover_mindmap` always returns a
tree: either the first JSON object found in the text or a fallback built from
the topic and the papers that were searched.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from .papers import PaperRecord

logger = logging.getLogger(__name__)

FALLBACK_TITLE_CHARS = 30
MAX_TREE_DEPTH = 32
KEY_THEMES = ("Current Research", "Methodologies", "Applications")
FUTURE_DIRECTIONS = ("Open Questions", "Emerging Trends")


class MindMapNode(BaseModel):
    name: str
    children: Optional[List[MindMapNode]] = None

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


MindMapNode.model_rebuild()


def _balanced_regions(text: str) -> List[str]:
    """Return each outermost `{...}` region whose braces balance, left to right.

    One pass with a stack of open positions. Braces inside JSON string
    literals are ignored, and an opening brace that never closes does not
    hide the balanced regions inside it.
    """
    open_positions: List[int] = []
    regions: List[Tuple[int, int]] = []
    in_string = False
    escaped = False
    for idx, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"' and open_positions:
            in_string = True
        elif char == "{":
            open_positions.append(idx)
        elif char == "}" and open_positions:
            start = open_positions.pop()
            # Regions nested inside this one were closed earlier.
            while regions and regions[-1][0] > start:
                regions.pop()
            regions.append((start, idx))
    return [text[start : end + 1] for start, end in regions]


def _nesting_depth(value: Any) -> int:
    depth = 0
    stack = [(value, 1)]
    while stack:
        item, level = stack.pop()
        if isinstance(item, dict):
            depth = max(depth, level)
            stack.extend((child, level + 1) for child in item.values())
        elif isinstance(item, list):
            depth = max(depth, level)
            stack.extend((child, level + 1) for child in item)
    return depth


def extract_json_object(text: str) -> Optional[dict]:
    """Return the first balanced region of `text` that decodes to a JSON object."""
    for region in _balanced_regions(text or ""):
        try:
            value = json.loads(region)
        except (json.JSONDecodeError, RecursionError):
            continue
        if isinstance(value, dict):
            return value
    return None


def fallback_mindmap(topic: str, papers: Sequence[PaperRecord]) -> MindMapNode:
    return MindMapNode(
        name=topic,
        children=[
            MindMapNode(
                name="Research Papers",
                children=[
                    MindMapNode(name=paper.title[:FALLBACK_TITLE_CHARS] + "...")
                    for paper in papers[:3]
                ],
            ),
            MindMapNode(name="Key Themes", children=[MindMapNode(name=theme) for theme in KEY_THEMES]),
            MindMapNode(
                name="Future Directions",
                children=[MindMapNode(name=item) for item in FUTURE_DIRECTIONS],
            ),
        ],
    )


def empty_mindmap(topic: str) -> MindMapNode:
    """Placeholder map for a search that returned no papers."""
    return MindMapNode(name=topic, children=[MindMapNode(name="No papers found", children=[])])


def recover_mindmap(generated_text: str, topic: str, fallback_seed: Sequence[PaperRecord]) -> MindMapNode:
    candidate = extract_json_object(generated_text)
    if candidate is None:
        logger.warning("No JSON object in mind map output; using fallback tree.")
        return fallback_mindmap(topic, fallback_seed)
    if _nesting_depth(candidate) > MAX_TREE_DEPTH:
        logger.warning("Mind map JSON nests deeper than %d levels; using fallback tree.", MAX_TREE_DEPTH)
        return fallback_mindmap(topic, fallback_seed)
    try:
        node = MindMapNode.model_validate(candidate)
    except (ValidationError, RecursionError) as exc:
        logger.warning("Mind map JSON is not a valid tree (%s); using fallback tree.", exc)
        return fallback_mindmap(topic, fallback_seed)
    logger.info("Mind map generated successfully")
    return node
