"""Range queries against Prometheus and conversion to time series."""

from __future__ import annotations

import json
import logging
import math
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://prometheus:9090"
MIN_INT32 = -(2**31)
MAX_INT32 = 2**31 - 1


class PrometheusError(Exception):
    """Raised when a query fails or returns an unusable answer."""


def _parse_value(raw: Any) -> float | None:
    if not isinstance(raw, str):
        return None
    try:
        return float(raw)
    except ValueError:
        return None


@dataclass
class RangeResult:
    """The answer to a range query.

    ``results`` holds one entry per series, each a dict with a ``metric``
    label mapping and a ``values`` list of ``[timestamp, "value"]`` pairs.
    """

    status: str = ""
    result_type: str = ""
    results: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Mapping[str, Any] | str | bytes) -> RangeResult:
        """Build a result from the decoded (or raw) JSON answer."""
        if isinstance(data, (str, bytes, bytearray)):
            try:
                data = json.loads(data)
            except ValueError as exc:
                raise PrometheusError(f"invalid JSON answer: {exc}") from exc
        if not isinstance(data, Mapping):
            raise PrometheusError("answer is not a JSON object")
        body = data.get("data") or {}
        if not isinstance(body, Mapping):
            raise PrometheusError("'data' is not a JSON object")
        results = []
        for entry in body.get("result") or []:
            if not isinstance(entry, Mapping):
                raise PrometheusError("result entry is not a JSON object")
            results.append(
                {
                    "metric": dict(entry.get("metric") or {}),
                    "values": [list(point) for point in entry.get("values") or []],
                }
            )
        return cls(
            status=str(data.get("status", "")),
            result_type=str(body.get("resultType", "")),
            results=results,
        )

    def to_float64(
        self, minimum: float = -math.inf, maximum: float = math.inf
    ) -> list[list[float]]:
        """Return the first series as ``[timestamp, value]`` pairs.

        A value that does not parse or lies outside ``[minimum, maximum]``
        is replaced by the last good value (zero before the first one).
        """
        if not self.results:
            return []
        series: list[list[float]] = []
        last = 0.0
        for point in self.results[0]["values"]:
            timestamp, raw = point[0], point[1]
            value = _parse_value(raw)
            if value is None or value < minimum or value > maximum:
                value = last
            else:
                last = value
            series.append([float(timestamp), value])
        return series


def _unix(value: datetime | int | float) -> int:
    if isinstance(value, datetime):
        return math.floor(value.timestamp())
    return int(value)


def build_query_url(
    query: str, start: int, end: int, n: int, base_url: str = DEFAULT_BASE_URL
) -> str:
    """Return the range-query URL asking for about ``n`` points."""
    if n == 0:
        raise ValueError("number of points must not be zero")
    span = end - start
    step = abs(span) // abs(n)
    if (span < 0) != (n < 0):
        step = -step
    params = {
        "end": str(end),
        "query": query,
        "start": str(start),
        "step": str(step),
    }
    encoded = urllib.parse.urlencode(sorted(params.items()))
    return f"{base_url.rstrip('/')}/api/v1/query_range?{encoded}"


def query_prom(
    query: str, start: int, end: int, n: int, base_url: str = DEFAULT_BASE_URL
) -> RangeResult:
    """Run a range query and return its decoded answer."""
    url = build_query_url(query, start, end, n, base_url)
    request = urllib.request.Request(url, headers={"Accept": "application/json"})
    try:
        with urllib.request.urlopen(request) as response:
            payload = response.read()
    except urllib.error.HTTPError as exc:
        payload = exc.read()
    except (urllib.error.URLError, OSError) as exc:
        raise PrometheusError(f"query failed: {exc}") from exc
    return RangeResult.from_json(payload)


def load_time_series(
    identifier: str,
    start: datetime | int,
    end: datetime | int,
    module: str,
    metric: str,
    index: int,
    base_url: str = DEFAULT_BASE_URL,
) -> list[list[float]]:
    """Load a controller metric between two times as ``[timestamp, value]`` pairs."""
    start_s, end_s = _unix(start), _unix(end)
    query = f'g_{module}_{index}_{metric}{{id="{identifier}"}}'
    try:
        result = query_prom(query, start_s, end_s, 50, base_url)
    except PrometheusError as exc:
        log.error(
            "query_prom in load_time_series %s - id: %s from: %d to: %d "
            "module: %s metric: %s i: %d",
            exc, identifier, start_s, end_s, module, metric, index,
        )
        raise
    if result.status != "success":
        err = PrometheusError(f"cid parameter error: {result.status}")
        log.error(
            "query_prom in load_time_series %s - id: %s from: %d to: %d "
            "module: %s metric: %s i: %d",
            err, identifier, start_s, end_s, module, metric, index,
        )
        raise err
    return result.to_float64(float(MIN_INT32), float(MAX_INT32))