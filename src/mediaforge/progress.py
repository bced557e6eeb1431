#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/progress.py
"""Progress callback system for pipeline execution.

Executors report what they are doing to embedders through a callback that
receives ``ProgressEvent`` objects: one ``started`` event, an ``item_done``
per applied operation (image) or streamed chunk batch (video), and a
``finished`` or ``error`` event at the end.

Examples
--------
    >>> from mediaforge.pipeline import ImagePipeline
    >>> from mediaforge.progress import ProgressEvent
    >>>
    >>> def on_progress(event: ProgressEvent) -> None:
    ...     print(event)
    >>>
    >>> ImagePipeline(progress_callback=on_progress).run(source, chain)
    [STARTED] Applying 2 operation(s) (0/2)
    [ITEM_DONE] c_fill (1/2)
    [ITEM_DONE] q_auto (2/2)
    [FINISHED] Image pipeline complete (2/2)

"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal

EventType = Literal["started", "item_done", "skipped", "finished", "error"]


@dataclass
class ProgressEvent:
    """Progress event emitted by a pipeline executor.

    Parameters
    ----------
    event_type : EventType
        One of:

        - "started": execution has begun; ``total`` is the chain length
        - "item_done": an operation was applied; ``metadata["operation"]``
          names its tag
        - "skipped": an unknown tag was ignored
        - "finished": execution completed
        - "error": execution failed; ``metadata["error"]`` holds the message

    message : str
        Human-readable description of the event
    current : int, default 0
        Operations handled so far
    total : int, default 0
        Operations in the chain. 0 if unknown.
    metadata : dict, default empty
        Additional event-specific information

    """

    event_type: EventType
    message: str
    current: int = 0
    total: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        progress = f"({self.current}/{self.total})" if self.total > 0 else ""
        return f"[{self.event_type.upper()}] {self.message} {progress}".strip()


ProgressCallback = Callable[[ProgressEvent], None]
"""A callable that accepts a ProgressEvent and returns None.

Exceptions raised by a callback are logged and never interrupt a pipeline.
"""

__all__ = ["EventType", "ProgressCallback", "ProgressEvent"]
