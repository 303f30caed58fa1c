import random
from fnmatch import fnmatchcase

import pytest

from growbackend.controllers import Bound, ControllerState, Metric, Period
from growbackend.kv import KeyNotFound, KVStore


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.px = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, px=None):
        self.data[key] = str(value).encode()
        self.px[key] = px
        return True

    def exists(self, *keys):
        return sum(key in self.data for key in keys)

    def keys(self, pattern):
        return sorted(k.encode() for k in self.data if fnmatchcase(k, pattern))

    def mget(self, keys):
        return [self.data.get(k) for k in keys]


@pytest.fixture
def client():
    return FakeRedis()


@pytest.fixture
def state(client):
    return ControllerState(KVStore(client), "CTRL", rng=random.Random(1))


def test_alert_threshold_key_and_default(state, client):
    assert state.alert_threshold(0, Metric.TEMPERATURE, Bound.MIN, Period.DAY, 18.0) == 18.0
    client.set("CTRL.ALERT.BOX_0_MIN_TEMP_DAY", "20.5")
    assert state.alert_threshold(0, "TEMP", "MIN", "DAY", 18.0) == 20.5


def test_alert_threshold_humidity_night(state, client):
    client.set("CTRL.ALERT.BOX_2_MAX_HUMI_NIGHT", "70")
    assert state.alert_threshold(2, Metric.HUMIDITY, Bound.MAX, Period.NIGHT, 0) == 70.0


def test_alert_threshold_bad_metric(state):
    with pytest.raises(ValueError):
        state.alert_threshold(0, "PRESSURE", "MIN", "DAY", 0)


def test_temperature_and_timer(state, client):
    assert state.temperature(1) == 0
    client.set("CTRL.KV.BOX_1_TEMP", "24.5")
    client.set("CTRL.KV.BOX_1_TIMER_OUTPUT", "80")
    assert state.temperature(1) == 24.5
    assert state.timer_power(1) == 80.0


def test_sht21_present_for_box_without_source(state, client):
    client.set("CTRL.KV.SHT21_0_PRESENT", "1")
    assert state.sht21_present_for_box(0) is False


def test_sht21_present_for_box_uses_source_minus_one(state, client):
    client.set("CTRL.KV.BOX_0_TEMP_SOURCE", "2")
    client.set("CTRL.KV.SHT21_1_PRESENT", "1")
    assert state.box_temp_source(0) == 2
    assert state.sht21_present_for_box(0) is True


def test_led_box(state, client):
    with pytest.raises(KeyNotFound):
        state.led_box(3)
    client.set("CTRL.KV.LED_3_BOX", "1")
    assert state.led_box(3) == 1


def test_alert_status_round_trip_and_expiration(state, client):
    assert state.alert_status(0, Metric.TEMPERATURE) is False
    state.set_alert_status(0, Metric.TEMPERATURE, True)
    assert state.alert_status(0, Metric.TEMPERATURE) is True
    px = client.px["CTRL.ALERT.BOX_0_TEMP"]
    assert 30 * 60_000 <= px < 45 * 60_000
    assert px % 60_000 == 0


def test_alert_type_round_trip(state, client):
    with pytest.raises(KeyNotFound):
        state.alert_type(0, Metric.HUMIDITY)
    state.set_alert_type(0, Metric.HUMIDITY, "TOO_HIGH")
    assert state.alert_type(0, "HUMI") == "TOO_HIGH"
    assert client.px["CTRL.ALERT.BOX_0_HUMI_TYPE"] is None


def test_box_enabled(state, client):
    assert state.box_enabled(0) is False
    client.set("CTRL.KV.BOX_0_ENABLED", "1")
    assert state.box_enabled(0) is True