import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from journey_builder.graph.layout import Direction
from journey_builder.models.catalog import DataSourceField
from journey_builder.session import PrefillSession
from journey_builder.utils.exceptions import GraphLoadError, PersistenceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class EnabledRequest(BaseModel):
    enabled: bool


def _open_session(request: Request) -> PrefillSession:
    """(Re)load the graph. Edits held by the current session move to the new one."""
    state = request.app.state
    backend = state.backend
    catalog_cfg = state.settings.catalog
    with state.lock:
        previous = state.session
        try:
            state.session = PrefillSession.load(
                state.graph_loader,
                backend.list_fields,
                backend,
                global_sources=catalog_cfg.global_sources,
                field_fetch_timeout=catalog_cfg.field_fetch_timeout,
                store=previous.store if previous is not None else None,
            )
        except GraphLoadError as e:
            logger.error(f"Graph load failed: {e}")
            raise HTTPException(502, str(e))
        return state.session


def _session(request: Request) -> PrefillSession:
    state = request.app.state
    with state.lock:
        return state.session or _open_session(request)


def _form_session(form_id: str, request: Request) -> PrefillSession:
    session = _session(request)
    if form_id not in session.graph:
        raise HTTPException(404, f"Step '{form_id}' not found")
    return session


# --- Graph ---

@router.get("/graph")
def get_graph(request: Request):
    session = _session(request)
    return {**session.graph.to_payload(), "warnings": session.graph.warnings}


@router.post("/graph/reload")
def reload_graph(request: Request):
    session = _open_session(request)
    return {"nodes": len(session.graph), "warnings": session.graph.warnings}


@router.get("/graph/layout")
def get_layout(request: Request, direction: Direction = Direction.TOP_BOTTOM):
    session = _session(request)
    return session.layout(direction).to_payload()


# --- Dependencies & catalog ---

@router.get("/forms/{form_id}/dependencies")
def get_dependencies(form_id: str, request: Request):
    return _form_session(form_id, request).resolve_dependencies(form_id).model_dump()


@router.get("/forms/{form_id}/catalog")
async def get_catalog(form_id: str, request: Request, search: str | None = None, refresh: bool = False):
    session = _form_session(form_id, request)
    catalog = await session.get_catalog(form_id, search, refresh=refresh)
    return [g.model_dump(mode="json") for g in catalog]


# --- Prefill config ---

@router.get("/forms/{form_id}/prefill")
def get_prefill(form_id: str, request: Request):
    return _form_session(form_id, request).get_snapshot(form_id).to_wire()


# Mutations are serialized on the app lock; handlers run in the thread pool.

@router.put("/forms/{form_id}/prefill/enabled")
def set_enabled(form_id: str, body: EnabledRequest, request: Request):
    with request.app.state.lock:
        session = _form_session(form_id, request)
        session.set_enabled(form_id, body.enabled)
        return session.get_snapshot(form_id).to_wire()


@router.put("/forms/{form_id}/prefill/mappings/{target_field_id}")
def upsert_mapping(form_id: str, target_field_id: str, source: DataSourceField, request: Request):
    with request.app.state.lock:
        session = _form_session(form_id, request)
        mapping = session.upsert_mapping(form_id, target_field_id, source)
        return {
            **mapping.model_dump(mode="json", by_alias=True),
            "description": session.get_mapping_description(form_id, target_field_id),
        }


@router.delete("/forms/{form_id}/prefill/mappings/{target_field_id}")
def remove_mapping(form_id: str, target_field_id: str, request: Request):
    with request.app.state.lock:
        session = _form_session(form_id, request)
        session.remove_mapping(form_id, target_field_id)
        return session.get_snapshot(form_id).to_wire()


@router.get("/forms/{form_id}/prefill/mappings/{target_field_id}/description")
def describe_mapping(form_id: str, target_field_id: str, request: Request):
    session = _form_session(form_id, request)
    return {"description": session.get_mapping_description(form_id, target_field_id)}


@router.post("/forms/{form_id}/prefill/save")
def save_prefill(form_id: str, request: Request):
    session = _form_session(form_id, request)
    try:
        return session.save(form_id).to_wire()
    except PersistenceError as e:
        raise HTTPException(502, str(e))


@router.post("/forms/{form_id}/prefill/load")
def load_prefill(form_id: str, request: Request):
    with request.app.state.lock:
        session = _form_session(form_id, request)
        try:
            config = session.load_config(form_id)
        except PersistenceError as e:
            raise HTTPException(502, str(e))
    if config is None:
        raise HTTPException(404, f"No prefill config stored for form '{form_id}'")
    return config.to_wire()
