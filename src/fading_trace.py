"""
src/fading_trace.py

Fading trace source and collector.

The controller emits (time_s, channel_type, fading_value) every time it
computes a new value. Sinks connect to the source; the collector keeps a
bounded history and aggregates it per channel type.
"""

import numpy as np
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from collections import deque
from constants import ChannelType, TRACE_HISTORY_LENGTH
import logging

logger = logging.getLogger(__name__)

# ============================================================================
# TRACE STRUCTURES
# ============================================================================

@dataclass
class FadingTraceRecord:
    """One emitted fading value."""
    time_s: float
    channel_type: ChannelType
    fading_value: float
    link_id: Optional[int] = None


TraceCallback = Callable[[float, ChannelType, float], None]


# ============================================================================
# TRACE SOURCE
# ============================================================================

class FadingTraceSource:
    """
    Synchronous fan-out of fading values to connected sinks.

    Sinks are called in connection order, on the caller's stack, before
    get_fading returns.
    """

    def __init__(self):
        self._sinks: List[TraceCallback] = []

    def connect(self, callback: TraceCallback) -> None:
        """Register a sink."""
        self._sinks.append(callback)

    def disconnect(self, callback: TraceCallback) -> None:
        """Remove a previously registered sink."""
        self._sinks.remove(callback)

    def __call__(self, time_s: float, channel_type: ChannelType,
                 fading_value: float) -> None:
        for sink in list(self._sinks):
            sink(time_s, channel_type, fading_value)

    def __len__(self) -> int:
        return len(self._sinks)


# ============================================================================
# TRACE COLLECTOR
# ============================================================================

class FadingTraceCollector:
    """
    Collects and aggregates fading trace records.

    Maintains:
    - Bounded history of all records
    - Latest value per channel type
    """

    def __init__(self, history_length: int = TRACE_HISTORY_LENGTH,
                 link_id: Optional[int] = None):
        """
        Initialize trace collector.

        Args:
            history_length: Max records to keep in history
            link_id: Optional link identifier stamped on every record
        """
        self.history_length = history_length
        self.link_id = link_id
        self.history: deque = deque(maxlen=history_length)
        self.latest: Dict[ChannelType, FadingTraceRecord] = {}
        self.total_records = 0

    def record(self, time_s: float, channel_type: ChannelType,
               fading_value: float) -> None:
        """
        Record one fading value. Signature matches the trace source.

        Args:
            time_s: Simulation time of the computation
            channel_type: Channel the value was computed for
            fading_value: Linear gain or dB, depending on controller mode
        """
        entry = FadingTraceRecord(
            time_s=time_s,
            channel_type=ChannelType(channel_type),
            fading_value=fading_value,
            link_id=self.link_id
        )
        self.history.append(entry)
        self.latest[entry.channel_type] = entry
        self.total_records += 1

    def attach(self, source: FadingTraceSource) -> None:
        """Connect this collector to a trace source."""
        source.connect(self.record)

    def get_history(self, channel_type: Optional[ChannelType] = None) -> List[FadingTraceRecord]:
        """Get recorded history, optionally for one channel type."""
        if channel_type is None:
            return list(self.history)
        return [r for r in self.history if r.channel_type == channel_type]

    def get_latest(self, channel_type: ChannelType) -> Optional[FadingTraceRecord]:
        """Get latest record for a channel type."""
        return self.latest.get(channel_type)

    def clear(self) -> None:
        """Drop all recorded history."""
        self.history.clear()
        self.latest.clear()
        self.total_records = 0

    def export_summary(self) -> dict:
        """
        Export trace summary for external consumption.

        Returns:
            Dictionary with per-channel statistics
        """
        if not self.history:
            return {}

        channels = {}
        for channel_type in sorted({r.channel_type for r in self.history}):
            values = np.array([r.fading_value for r in self.get_history(channel_type)])
            channels[channel_type.name] = {
                "count": int(values.size),
                "mean": float(np.mean(values)),
                "std": float(np.std(values)),
                "min": float(np.min(values)),
                "max": float(np.max(values)),
                "latest": float(self.latest[channel_type].fading_value),
            }

        return {
            "link_id": self.link_id,
            "total_records": self.total_records,
            "first_time_s": self.history[0].time_s,
            "last_time_s": self.history[-1].time_s,
            "channels": channels,
        }
