"""Request-level dependencies shared by the resource routers."""

from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import Depends, Request

from backoffice_service.errors import ValidationError


async def read_json_body(request: Request) -> Any:
    """Parse the raw body; an empty body is ``None``.

    Declared after the admin gate in each handler, so a malformed body from
    an unauthenticated caller still gets 401.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ValidationError("Malformed JSON body") from exc


def read_query(request: Request) -> dict[str, str]:
    return dict(request.query_params)


JsonBody = Annotated[Any, Depends(read_json_body)]
QueryParams = Annotated[dict[str, str], Depends(read_query)]
