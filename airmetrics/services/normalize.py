# airmetrics/services/normalize.py
"""
Pure mapping from OpenAQ payloads to the internal schema.

No I/O here. Records whose value is not a finite number are dropped,
never surfaced as zero or null.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..core.errors import NotFound
from ..schemas.air_quality import CityRanking, Measurement
from ..utils.geo import extract_coordinates, finite_float
from ..utils.time import parse_date


def _text(v: Any) -> Optional[str]:
    return None if v is None else str(v)


def _timestamp(raw: Any):
    # v2: {"utc": "...", "local": "..."}; a veces viene el string directo
    if isinstance(raw, Mapping):
        raw = raw.get("utc") or raw.get("local")
    return parse_date(raw)


def _measurement(record: Mapping[str, Any]) -> Optional[Measurement]:
    value = finite_float(record.get("value"))
    parameter = record.get("parameter")
    if value is None or not parameter:
        return None
    return Measurement(
        parameter=str(parameter),
        value=value,
        unit=_text(record.get("unit")),
        observed_at=_timestamp(record.get("date") or record.get("datetime")),
        station=_text(record.get("location")),
    )


def normalize_measurements(records: Iterable[Any]) -> List[Measurement]:
    out: List[Measurement] = []
    for r in records:
        if not isinstance(r, Mapping):
            continue
        m = _measurement(r)
        if m is not None:
            out.append(m)
    if not out:
        raise NotFound("No valid measurements found for this location")
    return out


def _parameter_entry(record: Mapping[str, Any], parameter: str) -> Optional[Dict[str, Any]]:
    """First entry for `parameter` with a finite average, if any."""
    params = record.get("parameters")
    if not isinstance(params, list):
        return None
    for p in params:
        if not isinstance(p, Mapping) or p.get("parameter") != parameter:
            continue
        avg = finite_float(p.get("average"))
        if avg is not None:
            return {"average": avg, "unit": _text(p.get("unit"))}
    return None


def normalize_rankings(records: Iterable[Any], parameter: str) -> List[CityRanking]:
    """
    Map OpenAQ /locations records to CityRanking.

    Locations without a finite average for `parameter` are dropped; the
    provider order (value desc) is kept as is.
    """
    out: List[CityRanking] = []
    for r in records:
        if not isinstance(r, Mapping):
            continue
        entry = _parameter_entry(r, parameter)
        if entry is None:
            continue
        out.append(
            CityRanking(
                city=_text(r.get("city")) or "Unknown City",
                country=_text(r.get("country")) or "Unknown Country",
                value=entry["average"],
                unit=entry["unit"],
                coordinates=extract_coordinates(r.get("coordinates")),
                observed_at=parse_date(r.get("lastUpdated")),
            )
        )
    if not out:
        raise NotFound(f"No valid {parameter} data available for rankings")
    return out
