from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from docstore.core.security import get_optional_username
from docstore.models.database import CollectionStore
from docstore.models.schemas import FilterRequest

router = APIRouter(
    prefix="/data",
    tags=["data"],
    dependencies=[Depends(get_optional_username)],
)


def get_collections(request: Request) -> CollectionStore:
    return request.app.state.collections


# --- create a record in a folder ---
@router.post("/{folder}", status_code=201)
async def create_record(
    folder: str,
    body: dict[str, Any] = Body(...),
    store: CollectionStore = Depends(get_collections),
):
    record = await store.create(folder, body)
    return {"message": "Record created successfully", "data": record}


# --- shallow-merge new fields into an existing record ---
@router.put("/{folder}/{record_id}")
async def update_record(
    folder: str,
    record_id: str,
    body: dict[str, Any] = Body(...),
    store: CollectionStore = Depends(get_collections),
):
    record = await store.update(folder, record_id, body)
    return {"message": "Record updated successfully", "data": record}


# --- filter records with {filtro, condicao, valorprocurado} clauses ---
@router.post("/{folder}/filter")
async def filter_records(
    folder: str,
    payload: FilterRequest,
    store: CollectionStore = Depends(get_collections),
):
    return await store.filter(folder, payload.predicates())


@router.delete("/{folder}/{record_id}")
async def delete_record(
    folder: str,
    record_id: str,
    store: CollectionStore = Depends(get_collections),
):
    await store.delete(folder, record_id)
    return {"message": "Record deleted successfully"}
