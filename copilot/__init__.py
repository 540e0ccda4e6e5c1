"""
Research co-pilot package.

Groups the orchestrator, the session store and the model client.  Import
`ResearchCopilot` directly from here:

```python
from copilot import ResearchCopilot

copilot = ResearchCopilot()
result = copilot.start_research("graph neural networks")
```
"""

from .research_copilot import ResearchCopilot, ResearchResult  # noqa: F401
from .session_store import ChatSession, SessionStore  # noqa: F401

__all__ = ["ChatSession", "ResearchCopilot", "ResearchResult", "SessionStore"]
