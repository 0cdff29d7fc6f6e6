# No `from __future__ import annotations` here: the endpoints below are built
# inside a function and FastAPI must see their real annotation objects.
from datetime import datetime
from typing import Annotated, Any, Callable
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response  # type: ignore[import-not-found]
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore[import-not-found]
from starlette import status  # type: ignore[import-not-found]

from discs.auth.depends import current_caller_required
from discs.commons.caller import AuthenticatedCaller
from discs.commons.catalog import NamedEntityService
from discs.commons.depends import database_session
from discs.commons.ids import parse_uuid


class NamedEntityPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    user_id: UUID
    created_at: datetime
    updated_at: datetime


class NamedEntityWrite(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None


def path_id(raw: str, entity: str) -> UUID:
    parsed = parse_uuid(raw)
    if parsed is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} not found")
    return parsed


def add_named_entity_routes(
    router: APIRouter,
    *,
    entity: str,
    get_service: Callable[[], NamedEntityService[Any]],
    public: type[NamedEntityPublic],
    write: type[NamedEntityWrite],
    listing: type[BaseModel],
) -> APIRouter:
    """Attach list/create/get/update/delete routes for one catalog entity."""

    Svc = Annotated[NamedEntityService[Any], Depends(get_service)]
    Db = Annotated[AsyncSession, Depends(database_session)]
    Caller = Annotated[AuthenticatedCaller, Depends(current_caller_required)]

    @router.get("", response_model=listing)
    async def list_entities(session: Db, svc: Svc, caller: Caller) -> Any:
        rows = await svc.list_by_user(session, caller=caller)
        return listing(items=[public.model_validate(r) for r in rows])

    @router.post("", response_model=public, status_code=status.HTTP_201_CREATED)
    async def create_entity(req: write, session: Db, svc: Svc, caller: Caller) -> Any:  # type: ignore[valid-type]
        row = await svc.create(
            session, caller=caller, name=req.name, description=req.description
        )
        return public.model_validate(row)

    @router.get("/{entity_id}", response_model=public)
    async def get_entity(entity_id: str, session: Db, svc: Svc, caller: Caller) -> Any:
        row = await svc.get(session, caller=caller, entity_id=path_id(entity_id, entity))
        return public.model_validate(row)

    @router.put("/{entity_id}", response_model=public)
    async def update_entity(
        entity_id: str, req: write, session: Db, svc: Svc, caller: Caller  # type: ignore[valid-type]
    ) -> Any:
        row = await svc.update(
            session,
            caller=caller,
            entity_id=path_id(entity_id, entity),
            name=req.name,
            description=req.description,
        )
        return public.model_validate(row)

    @router.delete("/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_entity(entity_id: str, session: Db, svc: Svc, caller: Caller) -> Response:
        await svc.delete(session, caller=caller, entity_id=path_id(entity_id, entity))
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
