# growbackend

Building blocks for the backend of a grow-controller app: configuration
loading, JSON records, controller state held in Redis, metric series read
from Prometheus, a small middleware pipeline for HTTP handlers, response
caching, planning the clean-up of duplicated feed entries, and the paths,
commands and job store behind timelapse rendering.

## Installation

Install the package with its runtime dependencies (`redis`, `pyyaml`,
`pyjwt`). The `test` extra adds `pytest`. Python 3.11 or later is needed.

## Modules

| Module | Contents |
| --- | --- |
| `growbackend.config` | `load_config(name, search_paths, env_prefix, environ)` looks for `<name>.json`, `.toml`, `.yaml` or `.yml` in the search paths (by default `/etc/<name>` then the current directory) and returns a `Config`. `Config.get` checks the environment (`<PREFIX>_<KEY>`, prefix defaulting to the upper-cased name) first, then the file, then defaults registered with `Config.set_default`; keys are case-insensitive and nested tables become dotted keys. `ConfigError` is raised when no file is found or it cannot be parsed. |
| `growbackend.models` | The `Record` base with `to_dict` / `from_dict` keyed by JSON field names; the records `PlantSharing`, `Comment`, `Report`, `Like`, `Bookmark`, `LinkBookmark`, `Follow`, `UserEnd`; and the per-device sync links `UserEndBox`, `UserEndPlant`, `UserEndTimelapse`, `UserEndDevice`, `UserEndFeed`, `UserEndFeedEntry`, `UserEndFeedMedia`, all based on `UserEndLink` with its `object_id` property, `mark_dirty` and `mark_sent`. `format_time` writes RFC 3339 timestamps. |
| `growbackend.products` | `Product`, `Supplier`, `ProductSupplier` and `User` records. `User.to_dict` leaves out an unset `pic` and a false `liked`. |
| `growbackend.kv` | `KVStore` wraps a Redis client: `get_num`, `get_int` and `get_bool` return defaults for missing keys, `get_string` raises `KeyNotFound`, setters take an optional expiration (timedelta or seconds), `get_keys` expands patterns containing `*`, `get_values` reads many keys at once. `connect("host:port")` builds a store. |
| `growbackend.controllers` | `ControllerState(store, controller_id)` reads and writes one controller's keys: `alert_threshold` (with the `Metric`, `Bound` and `Period` enums), `temperature`, `box_temp_source`, `sht21_present`, `sht21_present_for_box`, `timer_power`, `led_box`, `alert_status` / `set_alert_status` (expiring after 30 to 44 minutes), `alert_type` / `set_alert_type`, `box_enabled`. |
| `growbackend.prometheus` | `build_query_url`, `query_prom` and `load_time_series` run range queries; `RangeResult.from_json` decodes the answer and `RangeResult.to_float64` returns the first series as `[timestamp, value]` pairs, replacing unparsable or out-of-range values with the last good one. Failures raise `PrometheusError`. |
| `growbackend.pipeline` | `Request`, `Response`, `HTTPError`, `chain`, `Endpoint` (whose `handle()` turns `HTTPError` into plain-text error responses), `DBEndpointBuilder`, and the decoders `decode_json` (400 on a bad body) and `decode_query` (500 when the factory rejects the query). |
| `growbackend.auth` | `extract_token` reads a bearer token from `Authorization` (or `Authentication`), `decode_user_id` verifies an HMAC-signed JWT and returns its `userID`, the `jwt_token(secret)` middleware puts claims and user id in the request context, and `user_id_required` / `object_id_required` reject requests with 400. `AuthError` signals a bad token. |
| `growbackend.outputs` | `output_object_id`, `output_ok`, `output_select_one_result`, and `output_result(name, store)`, which also caches the answer for one minute and keeps a `.last` copy for twenty minutes. |
| `growbackend.cache` | `select_cache_result(store, cache_key_fn)` answers from `cache.<key>` when present; when only the `.last` copy remains it answers with it and refreshes the cache in a background thread. |
| `growbackend.cleaner` | `plan_duplicate_cleanup(entry_type, entries, media_counts)` returns `CleanupAction`s (`CleanupKind.KEEP` or `DELETE`, with an optional new date) for a group of duplicated `FeedEntryRecord`s. |
| `growbackend.jobs` | `JobStore(directory)`, a persistent string key-value store (an SQLite file in the directory) with `get`, `set`, `delete`, `iter_prefix` in key order and `close`; usable as a context manager. |
| `growbackend.timelapse` | `render_dir`, `frame_path`, `interleave_frames` (returning `FrameSlot`s with blended frames between each pair), `blend_command`, `render_command`, `thumbnail_command`, `upload_object_name` and `check_access`. |

## Examples

Reading controller state from Redis:

```python
from growbackend.kv import connect
from growbackend.controllers import ControllerState, Metric

store = connect("redis:6379")
state = ControllerState(store, "CONTROLLER")
print(state.temperature(0))
print(state.alert_status(0, Metric.HUMIDITY))
print(store.get_keys(["CONTROLLER.KV.*"]))
```

Assembling a handler:

```python
from growbackend.pipeline import Request, chain
from growbackend.auth import jwt_token, user_id_required
from growbackend.outputs import output_ok

handler = chain([jwt_token("secret"), user_id_required], output_ok)
```

Building the command lines for a timelapse render:

```python
from growbackend.timelapse import render_dir, render_command, thumbnail_command

directory = render_dir("/var/timelapse", "3f1c0c1e-0000-4000-8000-000000000000")
print(render_command(directory, f"{directory}/render.mp4"))
print(thumbnail_command(f"{directory}/render.mp4", f"{directory}/render.jpg"))
```

## What the package does not do

It provides parts, not a running service. There is no command to start,
no HTTP server or router, no database access (the records are data
classes only; `plan_duplicate_cleanup` decides what to change but does not
change anything), no object storage, and no timelapse worker loop that
downloads frames, runs the commands or uploads the results.

## Tests

The test suite uses pytest and needs no running Redis or Prometheus.