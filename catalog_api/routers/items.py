"""
catalog_api/routers/items.py
Endpoints:
  GET  /api/items          → stored items (first `limit`)
  GET  /api/items/{id}     → single item
  POST /api/items          → append an item (id assigned by the store)

File I/O runs in a worker thread so stats computations and item reads
never block each other. Writes bump the file mtime; the stats cache
notices on its next poll.
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from catalog_api.core.store import JsonItemStore
from catalog_api.deps import get_store

router = APIRouter(prefix="/api/items", tags=["items"])


class ItemIn(BaseModel):
    name:     str
    category: Optional[str] = None
    price:    Optional[float] = Field(None, ge=0)


@router.get("")
async def list_items(
    limit: int = Query(100, ge=1, le=1000),
    store: JsonItemStore = Depends(get_store),
):
    items = await asyncio.to_thread(store.read_items)
    return {"data": items[:limit], "total": len(items)}


@router.get("/{item_id}")
async def get_item(item_id: int, store: JsonItemStore = Depends(get_store)):
    item = await asyncio.to_thread(store.get_item, item_id)
    if item is None:
        raise HTTPException(404, detail="Item not found")
    return item


@router.post("", status_code=201)
async def create_item(body: ItemIn, store: JsonItemStore = Depends(get_store)):
    fields = {k: v for k, v in body.model_dump().items() if v is not None}
    return await asyncio.to_thread(store.add_item, fields)
