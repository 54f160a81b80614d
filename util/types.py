# util/types.py
from typing import Any, Awaitable, Callable, Literal, TypedDict


# Flow: Narrow types for orchestrator progress events.
ProgressPhase = Literal["segment", "analyze", "report"]


class ProgressPayload(TypedDict):
    phase: ProgressPhase
    processed: int
    total: int
    ts: int


ProgressCallback = Callable[[ProgressPayload], Awaitable[None] | None]

# Raw metadata dict stored alongside each vector in the provision index.
ProvisionMetadata = dict[str, Any]
