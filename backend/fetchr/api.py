from typing import Any, Dict, List
from fastapi import APIRouter, Body, Depends, Response
from fetchr.models import (
    HistoryEntry,
    HttpRequest,
    HttpResponse,
    ImportedCollection,
    StoredCollection,
    StoredEnvironment,
    StoredRequest,
)
from fetchr.core.storage import StorageEngine, get_storage
from fetchr.core.engine import runner
from fetchr.core.errors import RecordNotFoundError
from fetchr.core.exporter import export_collection_json
from fetchr.core.importer import link_imported_collection, parse_postman_collection
from fetchr.core.variables import interpolate, load_environment, resolve_request

router = APIRouter()


# --- Execution ---
@router.post("/send", response_model=HttpResponse)
async def send_request(req: HttpRequest, store: StorageEngine = Depends(get_storage)):
    env = load_environment(store.get_active_environment())
    result = await runner.execute(resolve_request(req, env))
    store.add_history(HistoryEntry(
        method=req.method,
        url=req.url,
        status=result.status,
        response_time=result.response_time,
    ))
    return result


@router.post("/interpolate")
async def interpolate_text(payload: Dict[str, Any] = Body(...), store: StorageEngine = Depends(get_storage)):
    text = str(payload.get("text") or "")
    return {"text": interpolate(text, load_environment(store.get_active_environment()))}


# --- Import / Export ---
@router.post("/import/postman", response_model=ImportedCollection)
async def import_postman(payload: Dict[str, Any] = Body(...)):
    return parse_postman_collection(payload)


@router.post("/import/save")
async def save_imported(imported: ImportedCollection, store: StorageEngine = Depends(get_storage)):
    root_id = store.save_linked(link_imported_collection(imported))
    return {"id": root_id}


@router.get("/collections/{collection_id}/export")
async def export_collection(collection_id: str, store: StorageEngine = Depends(get_storage)):
    collection = store.get_collection(collection_id)
    text = export_collection_json(collection.name, store.list_requests(collection_id))
    return Response(content=text, media_type="application/json")


# --- Collections ---
@router.get("/collections", response_model=List[StoredCollection])
async def list_collections(store: StorageEngine = Depends(get_storage)):
    return store.list_collections()


@router.post("/collections", response_model=StoredCollection)
async def create_collection(collection: StoredCollection, store: StorageEngine = Depends(get_storage)):
    return store.create_collection(collection)


@router.delete("/collections/{collection_id}")
async def delete_collection(collection_id: str, store: StorageEngine = Depends(get_storage)):
    store.delete_collection(collection_id)
    return {"status": "ok"}


# --- Requests ---
@router.get("/collections/{collection_id}/requests", response_model=List[StoredRequest])
async def list_requests(collection_id: str, store: StorageEngine = Depends(get_storage)):
    return store.list_requests(collection_id)


@router.get("/requests/{request_id}", response_model=StoredRequest)
async def get_request(request_id: str, store: StorageEngine = Depends(get_storage)):
    record = store.get_request(request_id)
    if record is None:
        raise RecordNotFoundError(f"Request not found: {request_id}")
    return record


@router.post("/requests", response_model=StoredRequest)
async def save_request(request: StoredRequest, store: StorageEngine = Depends(get_storage)):
    return store.save_request(request)


@router.delete("/requests/{request_id}")
async def delete_request(request_id: str, store: StorageEngine = Depends(get_storage)):
    store.delete_request(request_id)
    return {"status": "ok"}


# --- Environments ---
@router.get("/environments", response_model=List[StoredEnvironment])
async def list_environments(store: StorageEngine = Depends(get_storage)):
    return store.list_environments()


@router.get("/environments/active")
async def get_active_environment(store: StorageEngine = Depends(get_storage)):
    return store.get_active_environment()


@router.post("/environments", response_model=StoredEnvironment)
async def save_environment(env: StoredEnvironment, store: StorageEngine = Depends(get_storage)):
    return store.save_environment(env)


@router.delete("/environments/{env_id}")
async def delete_environment(env_id: str, store: StorageEngine = Depends(get_storage)):
    store.delete_environment(env_id)
    return {"status": "ok"}


# --- History ---
@router.get("/history", response_model=List[HistoryEntry])
async def get_history(limit: int = 50, store: StorageEngine = Depends(get_storage)):
    return store.get_history(limit)


@router.delete("/history")
async def clear_history(store: StorageEngine = Depends(get_storage)):
    store.clear_history()
    return {"status": "ok"}
