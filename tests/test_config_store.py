import pytest

from journey_builder.models.catalog import DataSourceField, DataSourceGroup, GroupSourceKind
from journey_builder.models.prefill import MappingSourceKind, PrefillConfig, PrefillMapping
from journey_builder.prefill.config_store import CatalogContext, PrefillConfigStore


def _src(path, name=None):
    fid = path.split(".", 1)[1]
    return DataSourceField(id=fid, name=name or fid, path=path)


@pytest.fixture
def store():
    return PrefillConfigStore(form_step_ids={"form-a", "form-b", "form-c"})


@pytest.fixture
def context():
    return CatalogContext(
        step_names={"form-b": "Form B"},
        field_names={"form-b.username": "Username"},
    )


class TestSourceKind:
    def test_globals(self, store):
        assert store.source_kind("action.id") == MappingSourceKind.ACTION
        assert store.source_kind("client.name") == MappingSourceKind.CLIENT

    def test_form_step(self, store):
        assert store.source_kind("form-b.username") == MappingSourceKind.FORM
        assert store.source_kind("form.username") == MappingSourceKind.FORM

    def test_other(self, store):
        assert store.source_kind("env.region") == MappingSourceKind.OTHER

    def test_step_paths_need_form_ids(self):
        bare = PrefillConfigStore()
        assert bare.source_kind("form-b.username") == MappingSourceKind.OTHER
        assert bare.source_kind("form.username") == MappingSourceKind.FORM

    def test_rebind_keeps_recorded_kinds(self, store):
        store.upsert_mapping("form-a", "email", _src("form-b.username"))
        store.set_form_step_ids({"form-a", "form-x"})
        assert store.source_kind("form-x.title") == MappingSourceKind.FORM
        assert store.source_kind("form-b.username") == MappingSourceKind.OTHER
        assert store.snapshot("form-a").mappings[0].source_kind == MappingSourceKind.FORM


class TestUpsert:
    def test_append(self, store):
        store.upsert_mapping("form-a", "email", _src("form-b.username"))
        store.upsert_mapping("form-a", "name", _src("client.name"))
        snap = store.snapshot("form-a")
        assert [m.target_field_id for m in snap.mappings] == ["email", "name"]
        assert snap.mappings[0].source_kind == MappingSourceKind.FORM

    def test_replacement_keeps_position(self, store):
        store.upsert_mapping("form-a", "email", _src("form-b.username"))
        store.upsert_mapping("form-a", "name", _src("client.name"))
        store.upsert_mapping("form-a", "email", _src("action.id"))
        mappings = store.snapshot("form-a").mappings
        assert len(mappings) == 2
        assert mappings[0] == PrefillMapping(
            target_field_id="email", source_kind=MappingSourceKind.ACTION, source_path="action.id"
        )
        assert [m.target_field_id for m in mappings] == ["email", "name"]

    def test_forms_are_independent(self, store):
        store.upsert_mapping("form-a", "email", _src("form-b.username"))
        assert store.snapshot("form-c").mappings == []


class TestRemove:
    def test_remove(self, store):
        store.upsert_mapping("form-a", "email", _src("form-b.username"))
        store.remove_mapping("form-a", "email")
        assert store.snapshot("form-a").mappings == []

    def test_remove_absent_is_noop(self, store):
        store.remove_mapping("form-a", "email")
        store.upsert_mapping("form-a", "name", _src("client.name"))
        store.remove_mapping("form-a", "email")
        assert len(store.snapshot("form-a").mappings) == 1


class TestDescribe:
    def test_form_source(self, store, context):
        store.upsert_mapping("form-a", "email", _src("form-b.username"))
        text = store.describe_mapping("form-a", "email", context)
        assert text == "Form B > Username"
        assert store.get_mapping("form-a", "email").source_kind == MappingSourceKind.FORM

    def test_form_source_unknown_step_falls_back_to_path(self, store):
        store.upsert_mapping("form-a", "email", _src("form-b.username"))
        assert store.describe_mapping("form-a", "email", CatalogContext()) == "form-b.username"

    def test_form_source_unknown_field_uses_field_id(self, store):
        store.upsert_mapping("form-a", "email", _src("form-b.username"))
        ctx = CatalogContext(step_names={"form-b": "Form B"})
        assert store.describe_mapping("form-a", "email", ctx) == "Form B > username"

    def test_globals(self, store, context):
        store.upsert_mapping("form-a", "id", _src("action.id"))
        store.upsert_mapping("form-a", "org", _src("client.name"))
        assert store.describe_mapping("form-a", "id", context) == "Action > id"
        assert store.describe_mapping("form-a", "org", context) == "Client > name"

    def test_other_returns_raw_path(self, store, context):
        store.upsert_mapping("form-a", "x", _src("env.region"))
        assert store.describe_mapping("form-a", "x", context) == "env.region"

    def test_round_trip(self, store):
        for path in ("form-b.username", "action.timestamp", "client.email", "env.region", "form-z.q"):
            store.upsert_mapping("form-a", "f", _src(path))
            assert store.describe_mapping("form-a", "f") is not None
            store.remove_mapping("form-a", "f")
            assert store.describe_mapping("form-a", "f") is None

    def test_unmapped(self, store):
        assert store.describe_mapping("nope", "email") is None


class TestSnapshot:
    def test_shape(self, store):
        store.set_enabled("form-a", True)
        store.upsert_mapping("form-a", "email", _src("form-b.username"))
        assert store.snapshot("form-a").to_wire() == {
            "formId": "form-a",
            "enabled": True,
            "mappings": [{"targetFieldId": "email", "sourceKind": "form", "sourcePath": "form-b.username"}],
        }

    def test_unseen_form(self, store):
        assert store.snapshot("form-q") == PrefillConfig(form_id="form-q", enabled=False, mappings=[])

    def test_snapshot_is_detached(self, store):
        store.upsert_mapping("form-a", "email", _src("form-b.username"))
        snap = store.snapshot("form-a")
        snap.mappings.clear()
        assert len(store.snapshot("form-a").mappings) == 1

    def test_replace(self, store):
        store.upsert_mapping("form-a", "email", _src("form-b.username"))
        store.replace(PrefillConfig(form_id="form-a", enabled=True))
        assert store.snapshot("form-a").mappings == []
        assert store.snapshot("form-a").enabled is True


def test_context_from_catalog():
    catalog = [
        DataSourceGroup(
            id="direct-forms", name="Direct Dependencies", source_kind=GroupSourceKind.FORM,
            children=[
                DataSourceGroup(
                    id="form-b", name="Form B", source_kind=GroupSourceKind.FORM,
                    fields=[DataSourceField(id="username", name="Username", path="form-b.username")],
                )
            ],
        )
    ]
    ctx = CatalogContext.build(catalogs=[catalog])
    assert ctx.step_name("form-b") == "Form B"
    assert ctx.step_name("direct-forms") is None
    assert ctx.field_name("form-b", "username") == "Username"
