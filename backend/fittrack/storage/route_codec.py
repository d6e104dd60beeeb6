"""Text encoding of activity routes.

Routes are stored as a JSON array of ``{"latitude": .., "longitude": ..}``
objects, in recording order. Floats go through JSON's shortest round-trip
representation, so decode(encode(route)) gives back the same points.
"""

from typing import Iterable, Optional

from pydantic import TypeAdapter, ValidationError

from fittrack.core.errors import RouteDecodeError
from fittrack.schemas.activity import GeoPoint

_ROUTE_ADAPTER = TypeAdapter(list[GeoPoint])


def encode_route(points: Iterable[GeoPoint]) -> str:
    return _ROUTE_ADAPTER.dump_json(list(points)).decode("utf-8")


def decode_route(text: Optional[str]) -> list[GeoPoint]:
    """Decode a stored route.

    A NULL column means no route was recorded and decodes to an empty list.
    Anything else that is not a JSON array of points raises RouteDecodeError.
    """
    if text is None:
        return []
    try:
        return _ROUTE_ADAPTER.validate_json(text, strict=True)
    except ValidationError as e:
        raise RouteDecodeError(f"Malformed route data: {e.error_count()} error(s), first: {e.errors()[0]['msg']}") from e
