"""Per-form prefill mappings for one editing session."""

from collections.abc import Iterable, Sequence

from journey_builder.graph.graph_model import GraphModel
from journey_builder.models.catalog import DataSourceField, DataSourceGroup, GroupSourceKind
from journey_builder.models.prefill import MappingSourceKind, PrefillConfig, PrefillMapping

_GLOBAL_LABELS = {
    MappingSourceKind.ACTION: "Action",
    MappingSourceKind.CLIENT: "Client",
}


class CatalogContext:
    """Name lookups used to turn a stored source path back into display text."""

    def __init__(
        self,
        step_names: dict[str, str] | None = None,
        field_names: dict[str, str] | None = None,
    ) -> None:
        self.step_names = dict(step_names or {})
        self.field_names = dict(field_names or {})  # path -> field name

    @classmethod
    def build(
        cls,
        graph: GraphModel | None = None,
        catalogs: Iterable[Sequence[DataSourceGroup]] = (),
    ) -> "CatalogContext":
        ctx = cls()
        if graph is not None:
            ctx.step_names = {s.id: s.display_name for s in graph.nodes}
        for catalog in catalogs:
            ctx._index(catalog)
        return ctx

    def _index(self, groups: Sequence[DataSourceGroup]) -> None:
        for group in groups:
            if group.source_kind == GroupSourceKind.FORM and group.fields is not None:
                self.step_names.setdefault(group.id, group.name)
            for f in group.fields or []:
                self.field_names[f.path] = f.name
            self._index(group.children or [])

    def step_name(self, step_id: str) -> str | None:
        return self.step_names.get(step_id)

    def field_name(self, step_id: str, field_id: str) -> str | None:
        return self.field_names.get(f"{step_id}.{field_id}")


class PrefillConfigStore:
    def __init__(self, form_step_ids: Iterable[str] = ()) -> None:
        """Hold per-form configs for one editing session.

        *form_step_ids* are the graph's form steps. A source path is only
        classified as ``form`` when its first segment is one of them (or the
        literal ``form``), so a store built without them files step paths
        such as ``form-b.username`` under ``other``.
        """
        self._configs: dict[str, PrefillConfig] = {}
        self._form_step_ids = set(form_step_ids)

    def set_form_step_ids(self, form_step_ids: Iterable[str]) -> None:
        """Re-point classification at a reloaded graph. Recorded mappings keep their kind."""
        self._form_step_ids = set(form_step_ids)

    def _entry(self, form_id: str) -> PrefillConfig:
        if form_id not in self._configs:
            self._configs[form_id] = PrefillConfig(form_id=form_id)
        return self._configs[form_id]

    def source_kind(self, path: str) -> MappingSourceKind:
        head = path.split(".", 1)[0]
        if head == MappingSourceKind.ACTION.value:
            return MappingSourceKind.ACTION
        if head == MappingSourceKind.CLIENT.value:
            return MappingSourceKind.CLIENT
        if head == MappingSourceKind.FORM.value or head in self._form_step_ids:
            return MappingSourceKind.FORM
        return MappingSourceKind.OTHER

    def set_enabled(self, form_id: str, value: bool) -> None:
        self._entry(form_id).enabled = value

    def upsert_mapping(self, form_id: str, target_field_id: str, source_field: DataSourceField) -> PrefillMapping:
        """Map *target_field_id* to *source_field*, replacing any existing mapping in place."""
        mapping = PrefillMapping(
            target_field_id=target_field_id,
            source_kind=self.source_kind(source_field.path),
            source_path=source_field.path,
        )
        mappings = self._entry(form_id).mappings
        for i, existing in enumerate(mappings):
            if existing.target_field_id == target_field_id:
                mappings[i] = mapping
                break
        else:
            mappings.append(mapping)
        return mapping

    def remove_mapping(self, form_id: str, target_field_id: str) -> None:
        config = self._configs.get(form_id)
        if config is None:
            return
        config.mappings = [m for m in config.mappings if m.target_field_id != target_field_id]

    def get_mapping(self, form_id: str, target_field_id: str) -> PrefillMapping | None:
        config = self._configs.get(form_id)
        if config is None:
            return None
        return next((m for m in config.mappings if m.target_field_id == target_field_id), None)

    def describe_mapping(
        self,
        form_id: str,
        target_field_id: str,
        context: CatalogContext | None = None,
    ) -> str | None:
        mapping = self.get_mapping(form_id, target_field_id)
        if mapping is None:
            return None
        context = context or CatalogContext()
        head, _, rest = mapping.source_path.partition(".")

        if mapping.source_kind == MappingSourceKind.FORM:
            step_name = context.step_name(head)
            if step_name is None:
                return mapping.source_path
            return f"{step_name} > {context.field_name(head, rest) or rest}"

        label = _GLOBAL_LABELS.get(mapping.source_kind)
        if label is not None:
            return f"{label} > {rest.split('.', 1)[0]}"
        return mapping.source_path

    def replace(self, config: PrefillConfig) -> None:
        """Install a previously persisted config for its form, wholesale."""
        self._configs[config.form_id] = config.model_copy(deep=True)

    def snapshot(self, form_id: str) -> PrefillConfig:
        config = self._configs.get(form_id) or PrefillConfig(form_id=form_id)
        return config.model_copy(deep=True)
