"""Editing session: one loaded graph, its catalogs and the operator's prefill edits."""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from journey_builder.catalog.builder import FieldLister, build_catalog
from journey_builder.catalog.search import filter_catalog
from journey_builder.client.blueprint_api import BlueprintClient
from journey_builder.graph import dependency_resolver
from journey_builder.graph.graph_model import GraphModel
from journey_builder.graph.layout import Direction, layout
from journey_builder.models.catalog import DataSourceField, DataSourceGroup, DependencySummary, GlobalSource
from journey_builder.models.graph import StepKind
from journey_builder.models.prefill import PrefillConfig, PrefillMapping
from journey_builder.prefill.config_store import CatalogContext, PrefillConfigStore
from journey_builder.storage.json_store import JsonStore
from journey_builder.utils.exceptions import GraphLoadError, JourneyBuilderError

logger = logging.getLogger(__name__)


class PrefillSession:
    def __init__(
        self,
        graph: GraphModel,
        list_fields: FieldLister,
        repository: JsonStore | BlueprintClient,
        global_sources: Sequence[GlobalSource] | None = None,
        field_fetch_timeout: float | None = None,
        store: PrefillConfigStore | None = None,
    ) -> None:
        """Open a session on *graph*.

        Passing the *store* of an earlier session keeps its unsaved edits;
        it is re-pointed at this graph's form steps.
        """
        self.graph = graph
        self._list_fields = list_fields
        self._repository = repository
        self._global_sources = global_sources
        self._timeout = field_fetch_timeout
        self._catalogs: dict[str, list[DataSourceGroup]] = {}
        form_ids = [s.id for s in graph.nodes_of_kind(StepKind.FORM)]
        if store is None:
            store = PrefillConfigStore(form_ids)
        else:
            store.set_form_step_ids(form_ids)
        self.store = store

    @classmethod
    def load(cls, graph_loader: Callable[[], Any], *args: Any, **kwargs: Any) -> "PrefillSession":
        """Fetch the graph once and open a session on it.

        Any failure of the loader surfaces as GraphLoadError.
        """
        try:
            payload = graph_loader()
        except GraphLoadError:
            raise
        except Exception as e:
            raise GraphLoadError("Graph fetch failed", str(e)) from e
        return cls(GraphModel.from_payload(payload), *args, **kwargs)

    def resolve_dependencies(self, form_id: str) -> DependencySummary:
        return dependency_resolver.resolve(self.graph, form_id)

    async def get_catalog(
        self,
        form_id: str,
        search_term: str | None = None,
        refresh: bool = False,
    ) -> list[DataSourceGroup]:
        if refresh or form_id not in self._catalogs:
            self._catalogs[form_id] = await build_catalog(
                self.graph,
                form_id,
                self._list_fields,
                self._global_sources,
                self._timeout,
            )
        return filter_catalog(self._catalogs[form_id], search_term)

    def catalog_context(self) -> CatalogContext:
        return CatalogContext.build(self.graph, self._catalogs.values())

    # Mappings

    def set_enabled(self, form_id: str, value: bool) -> None:
        self.store.set_enabled(form_id, value)

    def upsert_mapping(self, form_id: str, target_field_id: str, source_field: DataSourceField) -> PrefillMapping:
        return self.store.upsert_mapping(form_id, target_field_id, source_field)

    def remove_mapping(self, form_id: str, target_field_id: str) -> None:
        self.store.remove_mapping(form_id, target_field_id)

    def get_mapping_description(self, form_id: str, target_field_id: str) -> str | None:
        return self.store.describe_mapping(form_id, target_field_id, self.catalog_context())

    def get_snapshot(self, form_id: str) -> PrefillConfig:
        return self.store.snapshot(form_id)

    # Persistence

    def save(self, form_id: str) -> PrefillConfig:
        """Persist the form's config. On failure the in-session edits are kept."""
        config = self.store.snapshot(form_id)
        self._repository.save_prefill_config(config)
        return config

    def load_config(self, form_id: str) -> PrefillConfig | None:
        config = self._repository.load_prefill_config(form_id)
        if config is None:
            return None
        if config.form_id != form_id:
            raise JourneyBuilderError(f"Loaded prefill config is for form '{config.form_id}', not '{form_id}'")
        self.store.replace(config)
        logger.info(f"Restored prefill config for form {form_id} ({len(config.mappings)} mappings)")
        return self.store.snapshot(form_id)

    def layout(self, direction: Direction | str = Direction.TOP_BOTTOM) -> GraphModel:
        """Return a laid-out copy of the graph; the session's graph keeps its positions."""
        placed = layout(self.graph.nodes, self.graph.edges, direction)
        return self.graph.with_positions({s.id: s.position for s in placed})
