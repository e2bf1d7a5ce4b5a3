"""Encoded polyline support.

Directions payloads carry step and overview geometry in the Google polyline
format: each coordinate delta is zig-zag encoded, split into 5-bit chunks with
a 0x20 continuation bit and offset by 63 into printable ASCII.
"""

from __future__ import annotations

from typing import Iterable

from ...models.domain import GeoPoint

PRECISION = 1e5


def _decode_value(encoded: str, index: int) -> tuple[int, int]:
    shift = 0
    result = 0
    while True:
        b = ord(encoded[index]) - 63
        index += 1
        result |= (b & 0x1F) << shift
        shift += 5
        if b < 0x20:
            break
    delta = ~(result >> 1) if (result & 1) else (result >> 1)
    return delta, index


def decode_path(encoded: str) -> list[GeoPoint]:
    """Decode an encoded polyline string to a list of points.

    Raises:
        ValueError: if the string ends in the middle of a coordinate.
    """
    points: list[GeoPoint] = []
    index = 0
    lat = 0
    lng = 0

    try:
        while index < len(encoded):
            dlat, index = _decode_value(encoded, index)
            lat += dlat
            dlng, index = _decode_value(encoded, index)
            lng += dlng
            points.append(GeoPoint(latitude=lat / PRECISION, longitude=lng / PRECISION))
    except IndexError as exc:
        raise ValueError(f"Truncated polyline at position {index}") from exc

    return points


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chunks = []
    while value >= 0x20:
        chunks.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    chunks.append(chr(value + 63))
    return "".join(chunks)


def encode_path(points: Iterable[GeoPoint]) -> str:
    """Encode points with 5 decimal places of precision."""
    output = []
    prev_lat = 0
    prev_lng = 0
    for point in points:
        lat = round(point.latitude * PRECISION)
        lng = round(point.longitude * PRECISION)
        output.append(_encode_value(lat - prev_lat))
        output.append(_encode_value(lng - prev_lng))
        prev_lat, prev_lng = lat, lng
    return "".join(output)
