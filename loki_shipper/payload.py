"""Shapes drained log entries into a Loki push request.

Wire format (POSTed as JSON)::

    {"streams": [{"stream": {"job": "api"}, "values": [["<ns>", "<line>"], ...]}]}

One stream is produced per distinct label set. When level grouping is on,
each entry contributes a ``detected_level`` label, so entries of different
severities land in different streams.
"""

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from loki_shipper.errors import SerializationError
from loki_shipper.levels import level_to_string
from loki_shipper.models import LogEntry

LEVEL_LABEL = "detected_level"


@dataclass(frozen=True)
class Stream:
    labels: dict[str, str]
    values: list[tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "stream": dict(self.labels),
            "values": [[ts, line] for ts, line in self.values],
        }


@dataclass(frozen=True)
class PushRequest:
    streams: list[Stream] = field(default_factory=list)

    @property
    def entry_count(self) -> int:
        return sum(len(s.values) for s in self.streams)

    def to_dict(self) -> dict:
        return {"streams": [s.to_dict() for s in self.streams]}


def build_push_request(
    entries: Iterable[LogEntry],
    labels: Mapping[str, str],
    group_by_level: bool = True,
) -> PushRequest:
    """Group entries into streams, keeping drain order within each stream.

    Streams appear in the order their first entry was drained.
    """
    groups: dict[tuple, Stream] = {}
    for entry in entries:
        stream_labels = dict(labels)
        if group_by_level:
            stream_labels[LEVEL_LABEL] = level_to_string(entry.level)
        key = tuple(sorted(stream_labels.items()))
        stream = groups.get(key)
        if stream is None:
            stream = groups[key] = Stream(labels=stream_labels)
        stream.values.append((str(entry.timestamp), entry.message))

    return PushRequest(streams=list(groups.values()))


def encode_push_request(request: PushRequest) -> bytes:
    """Serialize a push request to UTF-8 JSON bytes."""
    try:
        return json.dumps(request.to_dict()).encode("utf-8")
    except (TypeError, ValueError, UnicodeEncodeError) as exc:
        raise SerializationError(f"marshal request failed: {exc}") from exc
