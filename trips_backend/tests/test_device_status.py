"""
Device status flattening tests.
"""

from trips_backend.app.services.device_status import DEVICE_STATUS_FIELDS, flatten_device_status


def test_scalar_nested_and_valueless_fields():
    raw = {
        "speed": {"value": 42.5, "timestamp": "2024-05-01T10:00:00Z", "source": "autopi"},
        "cell": {"value": {"ip": "10.0.0.1"}, "timestamp": "ts", "source": "autopi"},
        "vin": {"timestamp": "ts", "source": "smartcar"},
    }

    entries = flatten_device_status(raw)
    by_name = {entry.signal_name: entry for entry in entries}

    assert set(by_name) == {"Cell.ip", "VIN", "Speed"}
    assert by_name["Speed"].value == "42.5"
    assert by_name["Speed"].timestamp == "2024-05-01T10:00:00Z"
    assert by_name["Cell.ip"].value == "10.0.0.1"
    assert by_name["VIN"].value == ""
    assert by_name["VIN"].source == "smartcar"


def test_entries_follow_table_order():
    raw = {field: {"value": 1, "timestamp": "t", "source": "s"} for _, field in DEVICE_STATUS_FIELDS}

    entries = flatten_device_status(raw)

    assert [e.signal_name for e in entries] == [name for name, _ in DEVICE_STATUS_FIELDS]


def test_unknown_and_malformed_fields_are_ignored():
    raw = {"somethingElse": {"value": 1}, "maf": "not-an-object"}
    assert flatten_device_status(raw) == []
