"""
Response serialization for ORM entities.

Routes built with :class:`EntitySerializingRoute` may return ``CommonEntity``
instances (alone, or inside lists and dicts).  They are converted to plain
column dicts before FastAPI encodes the response, dropping every column
flagged with ``info={"exclude": True}``.
"""

from __future__ import annotations

import functools
import inspect
from typing import Any, Callable

from fastapi.routing import APIRoute
from sqlalchemy import inspect as sa_inspect

from .db.models import CommonEntity


def entity_to_dict(entity: CommonEntity) -> dict[str, Any]:
    mapper = sa_inspect(entity).mapper
    return {
        attr.key: getattr(entity, attr.key)
        for attr in mapper.column_attrs
        if not any(column.info.get("exclude") for column in attr.columns)
    }


def serialize(value: Any) -> Any:
    if isinstance(value, CommonEntity):
        return entity_to_dict(value)
    if isinstance(value, dict):
        return {key: serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [serialize(item) for item in value]
    return value


def serializing_endpoint(endpoint: Callable[..., Any]) -> Callable[..., Any]:
    # include_router rebuilds routes from the already wrapped endpoint.
    if getattr(endpoint, "__serializes_entities__", False):
        return endpoint

    # FastAPI reads parameters from the signature, so hand it the resolved one.
    signature = inspect.signature(endpoint, eval_str=True)

    if inspect.iscoroutinefunction(endpoint):

        @functools.wraps(endpoint)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return serialize(await endpoint(*args, **kwargs))

    else:

        @functools.wraps(endpoint)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return serialize(endpoint(*args, **kwargs))

    wrapper.__signature__ = signature  # type: ignore[attr-defined]
    wrapper.__serializes_entities__ = True  # type: ignore[attr-defined]
    return wrapper


class EntitySerializingRoute(APIRoute):
    def __init__(self, path: str, endpoint: Callable[..., Any], **kwargs: Any) -> None:
        super().__init__(path, serializing_endpoint(endpoint), **kwargs)


__all__ = ["EntitySerializingRoute", "entity_to_dict", "serialize", "serializing_endpoint"]
