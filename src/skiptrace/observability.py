"""Structured pipeline events and optional StatsD metrics for skiptrace.

Every pipeline stage reports through :class:`Observability`: one JSON log
line per event (``extraction.completed``, ``dedupe.completed``,
``report.generated``, ...) and, when ``observability.statsd_host`` is set,
counters and stage timings over UDP.
"""

from __future__ import annotations

import json
import logging
import socket
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Mapping

from skiptrace.settings import Settings, get_settings

_LOGGER = logging.getLogger("skiptrace.observability")
_CLIENT_LOCK = threading.Lock()
_SHARED_CLIENT: "StatsdClient | None" = None


class Observability:
    """Event and metric emitter scoped to one pipeline component."""

    def __init__(
        self,
        *,
        settings: Settings,
        component: str | None = None,
        statsd: "StatsdClient | None" = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.component = component or "core"
        self.service = settings.observability.service_name
        self._logger = logger or _LOGGER
        self._structured = bool(settings.observability.structured_logging)
        self._statsd = statsd

    def emit_event(self, event: str, **fields: Any) -> Dict[str, Any]:
        """Log ``event`` with ``fields`` and return the payload that was logged."""

        payload: Dict[str, Any] = {
            "event": event,
            "service": self.service,
            "component": self.component,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        payload.update({str(key): _jsonable(value) for key, value in fields.items()})
        if self._structured:
            self._logger.info(json.dumps(payload, sort_keys=False))
        else:
            self._logger.info("%s %s", event, " ".join(f"{key}={value}" for key, value in fields.items()))
        return payload

    def increment(self, metric: str, *, value: float = 1.0, tags: Mapping[str, Any] | None = None) -> None:
        if self._statsd is not None:
            self._statsd.send(metric, value, "c", _clean_tags(tags))

    def record_timing(self, metric: str, value_ms: float, *, tags: Mapping[str, Any] | None = None) -> None:
        if self._statsd is not None:
            self._statsd.send(metric, value_ms, "ms", _clean_tags(tags))

    @contextmanager
    def stage(self, name: str, **fields: Any) -> Iterator[Dict[str, Any]]:
        """Time a pipeline stage.

        Yields a dict the caller may fill with result counts; on exit the stage
        duration is recorded as ``<component>.<name>.duration_ms`` and a
        ``<component>.<name>`` event carrying the counts is emitted. Failures
        still emit the event (with ``failed=True``) before propagating.
        """

        details: Dict[str, Any] = dict(fields)
        started = time.perf_counter()
        failed = False
        try:
            yield details
        except Exception:
            failed = True
            raise
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self.record_timing(f"{self.component}.{name}.duration_ms", elapsed_ms)
            if failed:
                details["failed"] = True
            self.emit_event(f"{self.component}.{name}", duration_ms=round(elapsed_ms, 3), **details)


def get_observability(*, component: str | None = None, settings: Settings | None = None) -> Observability:
    """Return an :class:`Observability` for ``component`` sharing the process StatsD client."""

    resolved = settings or get_settings()
    return Observability(settings=resolved, component=component, statsd=_shared_client(resolved))


def reset_observability_cache() -> None:
    """Forget the shared StatsD client (used in tests)."""

    global _SHARED_CLIENT
    with _CLIENT_LOCK:
        _SHARED_CLIENT = None


@dataclass(slots=True)
class StatsdClient:
    """Fire-and-forget StatsD sender (DogStatsD tag syntax)."""

    host: str
    port: int
    prefix: str = ""
    _socket: socket.socket = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def format(self, metric: str, value: float, kind: str, tags: Mapping[str, str] | None = None) -> str:
        name = f"{self.prefix}.{metric}" if self.prefix else metric
        number = f"{value:.6f}".rstrip("0").rstrip(".") or "0"
        line = f"{name}:{number}|{kind}"
        if tags:
            line += "|#" + ",".join(f"{key}:{tags[key]}" for key in sorted(tags))
        return line

    def send(self, metric: str, value: float, kind: str, tags: Mapping[str, str] | None = None) -> None:
        try:
            self._socket.sendto(self.format(metric, value, kind, tags).encode("utf-8"), (self.host, self.port))
        except OSError:  # pragma: no cover - UDP send failures are not actionable
            _LOGGER.debug("StatsD send failed for %s", metric, exc_info=True)


def _shared_client(settings: Settings) -> StatsdClient | None:
    global _SHARED_CLIENT
    with _CLIENT_LOCK:
        if _SHARED_CLIENT is None and settings.observability.statsd_host:
            _SHARED_CLIENT = StatsdClient(
                host=settings.observability.statsd_host,
                port=settings.observability.statsd_port,
                prefix=settings.observability.statsd_prefix,
            )
        return _SHARED_CLIENT


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return str(value)


def _clean_tags(tags: Mapping[str, Any] | None) -> Dict[str, str] | None:
    if not tags:
        return None
    cleaned = {str(key): str(value) for key, value in tags.items() if value is not None}
    return cleaned or None


__all__ = ["Observability", "StatsdClient", "get_observability", "reset_observability_cache"]
