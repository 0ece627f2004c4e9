"""
Tests for the process-wide throttle
"""
from unittest.mock import patch

from doverbins.common import throttle as throttle_module


def test_throttle_disabled(monkeypatch):
    monkeypatch.setenv("THROTTLE_DISABLED", "1")
    with patch.object(throttle_module.time, "sleep") as sleep:
        throttle_module.throttle("council", 5)
        throttle_module.throttle("council", 5)
    sleep.assert_not_called()


def test_throttle_waits_between_calls(monkeypatch):
    monkeypatch.setenv("THROTTLE_DISABLED", "0")
    throttle_module.reset("test")
    clock = iter([100.0, 100.1, 100.5])
    with patch.object(throttle_module.time, "monotonic", side_effect=lambda: next(clock)), \
         patch.object(throttle_module.time, "sleep") as sleep:
        throttle_module.throttle("test", 0.5)
        throttle_module.throttle("test", 0.5)

    sleep.assert_called_once()
    assert abs(sleep.call_args[0][0] - 0.4) < 1e-9
    throttle_module.reset()
