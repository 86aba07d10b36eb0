"""
Unit tests for sensor payload decoding
"""

import pytest

from cylinder_monitor.errors import ValidationError
from cylinder_monitor.services.sensor_payloads import (
    decode_inclination,
    decode_offline_batch,
    decode_weight,
    is_end_marker,
)


class TestWeightPayload:
    def test_decode(self):
        assert decode_weight('{"w": 12.5}') == 12.5

    def test_decode_bytes(self):
        assert decode_weight(b'{"w":7}') == 7.0

    @pytest.mark.parametrize("payload", ['{"x": 1}', "not json", '{"w": "heavy"}'])
    def test_invalid(self, payload):
        with pytest.raises(ValidationError):
            decode_weight(payload)


class TestInclinationPayload:
    def test_decode(self):
        reading = decode_inclination('{"p": 15.2, "r": -3.1}', timestamp=42)

        assert reading.pitch == 15.2
        assert reading.roll == -3.1
        assert reading.timestamp == 42

    def test_missing_roll(self):
        with pytest.raises(ValidationError):
            decode_inclination('{"p": 1.0}')


class TestOfflinePayload:
    @pytest.mark.parametrize("payload", ["", "   ", "[]", "{}", "END", "end", "0", b""])
    def test_end_markers(self, payload):
        assert is_end_marker(payload)
        assert decode_offline_batch(payload) == []

    def test_decode_batch(self):
        samples = decode_offline_batch('[{"w": 25.1, "t": 300000}, {"w": 25.3, "t": 0}]')

        assert [(s.w, s.t) for s in samples] == [(25.1, 300000), (25.3, 0)]

    def test_relative_to_absolute_timestamp(self):
        sample = decode_offline_batch('[{"w": 25.1, "t": 300000}]')[0]

        weight_sample = sample.to_weight_sample(now=1_000_000)

        assert weight_sample.total_weight_kg == 25.1
        assert weight_sample.timestamp == 700_000

    def test_negative_age_rejected(self):
        with pytest.raises(ValidationError):
            decode_offline_batch('[{"w": 25.1, "t": -5}]')

    def test_not_an_array(self):
        with pytest.raises(ValidationError):
            decode_offline_batch('{"w": 25.1, "t": 5}')
