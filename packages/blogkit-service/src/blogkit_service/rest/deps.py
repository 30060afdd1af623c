"""FastAPI dependencies for process-wide REST resources."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from blogkit_service.cache import Cache


def get_cache(request: Request) -> Cache:
    return request.app.state.cache


CacheDep = Annotated[Cache, Depends(get_cache)]
