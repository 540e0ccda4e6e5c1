"""Domain models and the arXiv search client used by the research co-pilot."""

from .mindmap import MindMapNode, recover_mindmap  # noqa: F401
from .papers import ArxivFetcher, PaperRecord  # noqa: F401

__all__ = ["ArxivFetcher", "MindMapNode", "PaperRecord", "recover_mindmap"]
