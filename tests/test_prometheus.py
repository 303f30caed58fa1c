import json
import threading
import urllib.parse
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from growbackend.prometheus import (
    PrometheusError,
    RangeResult,
    build_query_url,
    load_time_series,
    query_prom,
)


def _answer(values, status="success"):
    return {
        "status": status,
        "data": {
            "resultType": "matrix",
            "result": [{"metric": {"id": "ctrl-example"}, "values": values}],
        },
    }


@pytest.fixture
def server():
    state = {"payload": _answer([]), "status": 200, "paths": [], "accept": []}

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            state["paths"].append(self.path)
            state["accept"].append(self.headers.get("Accept"))
            body = json.dumps(state["payload"]).encode()
            self.send_response(state["status"])
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, *args):
            pass

    httpd = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    state["base_url"] = f"http://127.0.0.1:{httpd.server_address[1]}"
    yield state
    httpd.shutdown()
    httpd.server_close()


def test_from_json_reads_fields():
    result = RangeResult.from_json(_answer([[1.0, "20.5"]]))
    assert result.status == "success"
    assert result.result_type == "matrix"
    assert result.results[0]["metric"] == {"id": "ctrl-example"}
    assert result.results[0]["values"] == [[1.0, "20.5"]]


def test_from_json_accepts_raw_text():
    raw = json.dumps(_answer([[2.0, "3"]]))
    assert RangeResult.from_json(raw) == RangeResult.from_json(_answer([[2.0, "3"]]))


@pytest.mark.parametrize("data", ["[1, 2]", "not json", {"data": [1]}])
def test_from_json_rejects_bad_answers(data):
    with pytest.raises(PrometheusError):
        RangeResult.from_json(data)


def test_to_float64_replaces_bad_and_out_of_range_values():
    result = RangeResult.from_json(
        _answer([[1.0, "20.5"], [2.0, "bad"], [3.0, "1e12"], [4.0, "21"]])
    )
    assert result.to_float64(-100, 100) == [
        [1.0, 20.5],
        [2.0, 20.5],
        [3.0, 20.5],
        [4.0, 21.0],
    ]


def test_to_float64_first_bad_value_becomes_zero():
    result = RangeResult.from_json(_answer([[1.0, "bad"], [2.0, "7"]]))
    assert result.to_float64() == [[1.0, 0.0], [2.0, 7.0]]


def test_to_float64_without_series_is_empty():
    assert RangeResult(status="success").to_float64() == []


def test_to_float64_keeps_one_pair_per_point():
    values = [[float(t), str(t * 3)] for t in range(10)]
    series = RangeResult.from_json(_answer(values)).to_float64(0, 15)
    assert len(series) == len(values)
    assert [pair[0] for pair in series] == [float(t) for t in range(10)]
    assert all(0 <= pair[1] <= 15 for pair in series)


def test_build_query_url_layout():
    url = build_query_url('g_BOX_0_TEMP{id="x y"}', 1000, 1100, 50)
    assert url.startswith("http://prometheus:9090/api/v1/query_range?")
    query = urllib.parse.urlsplit(url).query
    names = [part.split("=")[0] for part in query.split("&")]
    assert names == ["end", "query", "start", "step"]
    parsed = urllib.parse.parse_qs(query)
    assert parsed["query"] == ['g_BOX_0_TEMP{id="x y"}']
    assert parsed["start"] == ["1000"]
    assert parsed["end"] == ["1100"]
    assert parsed["step"] == ["2"]
    assert "%20" not in query


def test_build_query_url_rejects_zero_points():
    with pytest.raises(ValueError):
        build_query_url("up", 0, 100, 0)


def test_query_prom_sends_accept_header(server):
    server["payload"] = _answer([[5.0, "1.5"]])
    result = query_prom("up", 0, 100, 10, server["base_url"])
    assert result.to_float64() == [[5.0, 1.5]]
    assert server["accept"] == ["application/json"]
    assert server["paths"][0].startswith("/api/v1/query_range?")


def test_query_prom_reads_error_body(server):
    server["status"] = 400
    server["payload"] = {"status": "error", "error": "bad query"}
    result = query_prom("up", 0, 100, 10, server["base_url"])
    assert result.status == "error"
    assert result.to_float64() == []


def test_query_prom_unreachable_raises():
    with pytest.raises(PrometheusError):
        query_prom("up", 0, 100, 10, "http://127.0.0.1:1")


def test_load_time_series_builds_metric_query(server):
    server["payload"] = _answer([[10.0, "22"], [20.0, "3000000000"], [30.0, "23"]])
    start = datetime(2021, 1, 1, tzinfo=timezone.utc)
    end = datetime(2021, 1, 2, tzinfo=timezone.utc)
    series = load_time_series("ctrl-example", start, end, "BOX", "TEMP", 0, server["base_url"])
    assert series == [[10.0, 22.0], [20.0, 22.0], [30.0, 23.0]]
    parsed = urllib.parse.parse_qs(urllib.parse.urlsplit(server["paths"][0]).query)
    assert parsed["query"] == ['g_BOX_0_TEMP{id="ctrl-example"}']
    assert parsed["start"] == [str(int(start.timestamp()))]
    assert parsed["end"] == [str(int(end.timestamp()))]


def test_load_time_series_failed_status_raises(server):
    server["payload"] = {"status": "error"}
    with pytest.raises(PrometheusError, match="cid parameter error: error"):
        load_time_series("ctrl-example", 0, 100, "BOX", "TEMP", 0, server["base_url"])