"""Call/stream lifecycle: signals, orchestrator, capture pipeline, media host."""

from .capture import CapturePipeline, FileRecordingSink
from .host import MediaHost
from .orchestrator import CallStreamOrchestrator, StreamState
from .signals import HttpSignalChannel, QueueChannel, SignalRoutes, StreamCommand, StreamSignal
from .streamer import Streamer

__all__ = [
    "CallStreamOrchestrator",
    "CapturePipeline",
    "FileRecordingSink",
    "HttpSignalChannel",
    "MediaHost",
    "QueueChannel",
    "SignalRoutes",
    "StreamCommand",
    "StreamSignal",
    "StreamState",
    "Streamer",
]
