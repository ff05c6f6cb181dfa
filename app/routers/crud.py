"""
Admin CRUD router factory shared by the CMS tables.

Every generated router exposes:

GET    (root)      — list, ordered by the table's display order.
GET    /{item_id}  — one row or 404.
POST   (root)      — create (201); unique-constraint clashes become 409.
PATCH  /{item_id}  — partial update of the fields sent.
DELETE /{item_id}  — delete (204).
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base, get_db
from app.dependencies.auth import require_admin

logger = logging.getLogger(__name__)

PrepareHook = Callable[[Dict[str, Any]], Dict[str, Any]]


async def _flush_or_conflict(db: AsyncSession, label: str) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("%s conflicts with an existing row: %s", label, exc.orig)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{label} conflicts with an existing record.",
        )


def build_crud_router(
    model: Type[Base],
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    response_schema: Type[BaseModel],
    label: str,
    order_by: Optional[Sequence[Any]] = None,
    prepare_create: Optional[PrepareHook] = None,
) -> APIRouter:
    """
    Build an admin-only router for *model*.

    ``prepare_create`` may fill derived fields (e.g. a slug) before insert.
    """
    router = APIRouter(dependencies=[Depends(require_admin)])
    ordering = list(order_by) if order_by is not None else [model.id]

    async def _get_or_404(db: AsyncSession, item_id: int):
        item = await db.get(model, item_id)
        if item is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{label} {item_id} not found.",
            )
        return item

    @router.get("", response_model=List[response_schema])
    async def list_items(
        skip: int = Query(0, ge=0),
        limit: int = Query(100, ge=1, le=500),
        db: AsyncSession = Depends(get_db),
    ):
        result = await db.execute(select(model).order_by(*ordering).offset(skip).limit(limit))
        return list(result.scalars().all())

    @router.get("/{item_id}", response_model=response_schema)
    async def get_item(item_id: int, db: AsyncSession = Depends(get_db)):
        return await _get_or_404(db, item_id)

    @router.post("", response_model=response_schema, status_code=status.HTTP_201_CREATED)
    async def create_item(body: create_schema, db: AsyncSession = Depends(get_db)):
        data = body.model_dump(mode="json")
        if prepare_create is not None:
            data = prepare_create(data)
        item = model(**data)
        db.add(item)
        await _flush_or_conflict(db, label)
        await db.refresh(item)
        logger.info("Created %s id=%d", label, item.id)
        return item

    @router.patch("/{item_id}", response_model=response_schema)
    async def update_item(item_id: int, body: update_schema, db: AsyncSession = Depends(get_db)):
        item = await _get_or_404(db, item_id)
        changes = body.model_dump(mode="json", exclude_unset=True)
        for field, value in changes.items():
            setattr(item, field, value)
        await _flush_or_conflict(db, label)
        await db.refresh(item)
        logger.info("Updated %s id=%d (%s)", label, item_id, ", ".join(changes) or "no changes")
        return item

    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_item(item_id: int, db: AsyncSession = Depends(get_db)):
        item = await _get_or_404(db, item_id)
        await db.delete(item)
        await db.flush()
        logger.info("Deleted %s id=%d", label, item_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
