import json
import threading
from pathlib import Path

from fastapi import FastAPI

from journey_builder.api.routes import router
from journey_builder.client.blueprint_api import BlueprintClient
from journey_builder.config.settings import Settings, load_settings
from journey_builder.storage.json_store import JsonStore


def create_app(
    settings: Settings | None = None,
    local: bool = False,
    graph_file: str | None = None,
) -> FastAPI:
    """Build the API app.

    ``local`` serves graph, fields and prefill configs from the JSON store in
    ``settings.storage.data_dir`` instead of the blueprint service.
    ``graph_file`` overrides only where the graph comes from.
    """
    app = FastAPI(title="Journey Builder Prefill")
    app.include_router(router)

    @app.on_event("startup")
    def startup():
        cfg = settings or load_settings()
        store = JsonStore(cfg.storage.data_dir)
        backend = store if local else BlueprintClient(cfg.api)

        if graph_file:
            app.state.graph_loader = lambda: json.loads(Path(graph_file).read_text())
        elif local:
            app.state.graph_loader = lambda: store.load_graph(cfg.api.blueprint_id)
        else:
            app.state.graph_loader = backend.load_graph

        app.state.settings = cfg
        app.state.backend = backend
        app.state.session = None
        app.state.lock = threading.RLock()

    return app
