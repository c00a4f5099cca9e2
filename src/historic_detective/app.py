"""FastAPI application for Historic Detective."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any

import httpx
from fastapi import Body, Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel

from historic_detective import __version__
from historic_detective.errors import InvalidInput
from historic_detective.models.schemas import Query
from historic_detective.service import ResolverService, build_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    async with httpx.AsyncClient() as http_client:
        app.state.service = build_service(http_client=http_client)
        yield


app = FastAPI(
    title="Historic Detective",
    description="Resolve a building from free text, an image, or a map point",
    version=__version__,
    lifespan=lifespan,
)


def get_service(request: Request) -> ResolverService:
    """Dependency for the wired resolver service."""
    return request.app.state.service


ServiceDep = Annotated[ResolverService, Depends(get_service)]


class TextSearchRequest(BaseModel):
    query: str


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@app.post("/resolve")
async def resolve(service: ServiceDep, payload: Annotated[dict[str, Any], Body()]) -> dict[str, Any]:
    """Resolve a text, image or location query to one building."""
    try:
        query = Query.parse(payload)
    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e)) from None
    if query.mode is None:
        raise HTTPException(status_code=422, detail=f"unsupported input mode: {query.modality}")

    resolution = await service.resolve(query)
    return resolution.to_wire()


@app.post("/search/text")
async def search_text(service: ServiceDep, body: TextSearchRequest) -> dict[str, Any]:
    """Nearest neighbours for free text in the text embedding index."""
    result = await service.search_text(body.query)
    return result.to_wire()


@app.post("/indexes/reload")
def reload_indexes(service: ServiceDep) -> dict[str, Any]:
    """Swap in fresh embedding snapshots from disk."""
    return {"reloaded": service.reload_indexes()}
