"""
Flattening of the raw device status document into signal entries.
"""

from typing import Any, Dict, List, Tuple

from trips_backend.app.schemas.vehicle import DeviceStatusEntry

# (signal name, field in the status-raw document), in display order
DEVICE_STATUS_FIELDS: List[Tuple[str, str]] = [
    ("DTC", "dtc"),
    ("MAF", "maf"),
    ("VIN", "vin"),
    ("Cell", "cell"),
    ("HDOP", "hdop"),
    ("NSAT", "nsat"),
    ("WiFi", "wifi"),
    ("Speed", "speed"),
    ("Device", "device"),
    ("RunTime", "runTime"),
    ("Altitude", "altitude"),
    ("Timestamp", "timestamp"),
    ("EngineLoad", "engineLoad"),
    ("IntakeTemp", "intakeTemp"),
    ("CoolantTemp", "coolantTemp"),
    ("EngineSpeed", "engineSpeed"),
    ("ThrottlePosition", "throttlePosition"),
    ("LongTermFuelTrim1", "longTermFuelTrim1"),
    ("BarometricPressure", "barometricPressure"),
    ("ShortTermFuelTrim1", "shortTermFuelTrim1"),
    ("AcceleratorPedalPositionD", "acceleratorPedalPositionD"),
    ("AcceleratorPedalPositionE", "acceleratorPedalPositionE"),
]


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_device_status(raw_status: Dict[str, Any]) -> List[DeviceStatusEntry]:
    """
    Flatten a status-raw document into one entry per signal.

    A field whose ``value`` is itself an object yields one entry per key,
    named ``<Signal>.<key>``. Fields without a ``value`` yield an entry with
    an empty value. Fields absent from the document are skipped.
    """
    entries: List[DeviceStatusEntry] = []

    for signal_name, field_name in DEVICE_STATUS_FIELDS:
        data = raw_status.get(field_name)
        if not isinstance(data, dict):
            continue

        timestamp = _text(data.get("timestamp"))
        source = _text(data.get("source"))
        value = data.get("value")

        if isinstance(value, dict):
            for key, nested in value.items():
                entries.append(DeviceStatusEntry(
                    signal_name=f"{signal_name}.{key}",
                    value=_text(nested),
                    timestamp=timestamp,
                    source=source,
                ))
        else:
            entries.append(DeviceStatusEntry(
                signal_name=signal_name,
                value=_text(value),
                timestamp=timestamp,
                source=source,
            ))

    return entries
