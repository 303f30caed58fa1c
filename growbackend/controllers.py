"""Per-controller telemetry, settings and alert state kept in the store."""

from __future__ import annotations

import random
from datetime import timedelta
from enum import StrEnum

from growbackend.kv import KVStore


class Metric(StrEnum):
    TEMPERATURE = "TEMP"
    HUMIDITY = "HUMI"


class Bound(StrEnum):
    MIN = "MIN"
    MAX = "MAX"


class Period(StrEnum):
    DAY = "DAY"
    NIGHT = "NIGHT"


class ControllerState:
    """Reads and writes the keys of one controller, named by its identifier."""

    def __init__(
        self,
        store: KVStore,
        controller_id: str,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.controller_id = controller_id
        self._rng = rng or random.Random()

    def _kv(self, suffix: str) -> str:
        return f"{self.controller_id}.KV.{suffix}"

    def _alert(self, suffix: str) -> str:
        return f"{self.controller_id}.ALERT.{suffix}"

    def alert_threshold(
        self,
        box: int,
        metric: Metric | str,
        bound: Bound | str,
        period: Period | str,
        default: float,
    ) -> float:
        """Return the alert limit for a box, or ``default`` if none is set."""
        metric, bound, period = Metric(metric), Bound(bound), Period(period)
        key = self._alert(f"BOX_{box}_{bound}_{metric}_{period}")
        return self.store.get_num(key, default)

    def temperature(self, box: int) -> float:
        return self.store.get_num(self._kv(f"BOX_{box}_TEMP"), 0)

    def box_temp_source(self, box: int) -> int:
        return self.store.get_int(self._kv(f"BOX_{box}_TEMP_SOURCE"), 0)

    def sht21_present(self, sensor: int) -> bool:
        return self.store.get_bool(self._kv(f"SHT21_{sensor}_PRESENT"))

    def sht21_present_for_box(self, box: int) -> bool:
        """Whether the SHT21 sensor feeding the box is present; no source means False."""
        source = self.box_temp_source(box)
        if source == 0:
            return False
        return self.sht21_present(source - 1)

    def timer_power(self, box: int) -> float:
        return self.store.get_num(self._kv(f"BOX_{box}_TIMER_OUTPUT"), 0)

    def led_box(self, led: int) -> int:
        """Return the box a LED belongs to; raises KeyNotFound if unset."""
        return int(self.store.get_string(self._kv(f"LED_{led}_BOX")))

    def alert_status(self, box: int, metric: Metric | str) -> bool:
        return self.store.get_bool(self._alert(f"BOX_{box}_{Metric(metric)}"))

    def set_alert_status(self, box: int, metric: Metric | str, value: bool) -> None:
        """Record the alert state; it expires after 30 to 44 minutes."""
        expiration = timedelta(minutes=30 + self._rng.randrange(15))
        self.store.set_bool(self._alert(f"BOX_{box}_{Metric(metric)}"), value, expiration)

    def alert_type(self, box: int, metric: Metric | str) -> str:
        """Return the last alert type; raises KeyNotFound if unset."""
        return self.store.get_string(self._alert(f"BOX_{box}_{Metric(metric)}_TYPE"))

    def set_alert_type(self, box: int, metric: Metric | str, atype: str) -> None:
        self.store.set_string(self._alert(f"BOX_{box}_{Metric(metric)}_TYPE"), atype)

    def box_enabled(self, box: int) -> bool:
        return self.store.get_bool(self._kv(f"BOX_{box}_ENABLED"))