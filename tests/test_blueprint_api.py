import json

import pytest
import requests
import responses

from journey_builder.client.blueprint_api import BlueprintClient
from journey_builder.config.settings import ApiConfig
from journey_builder.models.catalog import FormField
from journey_builder.models.prefill import MappingSourceKind, PrefillConfig, PrefillMapping
from journey_builder.utils.exceptions import FieldListError, GraphLoadError, PersistenceError

BASE = "http://api.test.com/api/v1/t1/actions/blueprints/bp1"


@pytest.fixture
def client():
    return BlueprintClient(ApiConfig(base_url="http://api.test.com/api/v1/", tenant_id="t1", blueprint_id="bp1"))


@responses.activate
def test_load_graph(client):
    payload = {"nodes": [{"id": "a"}], "edges": []}
    responses.add(responses.GET, f"{BASE}/graph", json=payload, status=200)
    assert client.load_graph() == payload


@responses.activate
def test_load_graph_http_error(client):
    responses.add(responses.GET, f"{BASE}/graph", body="Server Error", status=500)
    with pytest.raises(GraphLoadError, match="500"):
        client.load_graph()


@responses.activate
def test_load_graph_connection_error(client):
    responses.add(responses.GET, f"{BASE}/graph", body=requests.ConnectionError("refused"))
    with pytest.raises(GraphLoadError, match="refused"):
        client.load_graph()


@responses.activate
def test_load_graph_not_json(client):
    responses.add(responses.GET, f"{BASE}/graph", body="<html>", status=200)
    with pytest.raises(GraphLoadError, match="not JSON"):
        client.load_graph()


@responses.activate
def test_list_fields(client):
    responses.add(
        responses.GET, f"{BASE}/nodes/form-b/form-fields",
        json=[{"id": "email", "name": "Email", "type": "email"}], status=200,
    )
    assert client.list_fields("form-b") == [FormField(id="email", name="Email", type="email")]


@responses.activate
def test_list_fields_unknown_step(client):
    responses.add(responses.GET, f"{BASE}/nodes/ghost/form-fields", status=404)
    assert client.list_fields("ghost") == []


@responses.activate
def test_list_fields_error_names_step(client):
    responses.add(responses.GET, f"{BASE}/nodes/form-b/form-fields", body="nope", status=503)
    with pytest.raises(FieldListError, match="form-b") as exc:
        client.list_fields("form-b")
    assert exc.value.step_id == "form-b"


@responses.activate
def test_save_prefill_config(client):
    responses.add(responses.POST, f"{BASE}/prefill-config", json={"success": True}, status=200)
    config = PrefillConfig(
        form_id="form-a", enabled=True,
        mappings=[PrefillMapping(target_field_id="email", source_kind=MappingSourceKind.ACTION,
                                 source_path="action.id")],
    )
    client.save_prefill_config(config)
    sent = json.loads(responses.calls[0].request.body)
    assert sent == {
        "formId": "form-a",
        "enabled": True,
        "mappings": [{"targetFieldId": "email", "sourceKind": "action", "sourcePath": "action.id"}],
    }


@responses.activate
def test_save_prefill_config_failure(client):
    responses.add(responses.POST, f"{BASE}/prefill-config", body="bad", status=400)
    with pytest.raises(PersistenceError, match="form-a"):
        client.save_prefill_config(PrefillConfig(form_id="form-a"))


@responses.activate
def test_load_prefill_config(client):
    responses.add(
        responses.GET, f"{BASE}/nodes/form-a/prefill-config",
        json={"formId": "form-a", "enabled": True,
              "mappings": [{"targetFieldId": "email", "sourceType": "form", "sourcePath": "form-b.email"}]},
        status=200,
    )
    config = client.load_prefill_config("form-a")
    assert config.form_id == "form-a"
    assert config.mappings[0].source_kind == MappingSourceKind.FORM


@responses.activate
def test_load_prefill_config_missing(client):
    responses.add(responses.GET, f"{BASE}/nodes/form-z/prefill-config", status=404)
    assert client.load_prefill_config("form-z") is None


@pytest.mark.parametrize("step_id, segment", [
    ("forms/b", "forms%2Fb"),
    ("what?now", "what%3Fnow"),
    ("../b", "..%2Fb"),
])
@responses.activate
def test_ids_are_quoted_in_urls(client, step_id, segment):
    responses.add(
        responses.GET, f"{BASE}/nodes/{segment}/form-fields",
        json=[{"id": "email", "name": "Email"}], status=200,
    )
    responses.add(responses.GET, f"{BASE}/nodes/{segment}/prefill-config", status=404)
    assert client.list_fields(step_id) == [FormField(id="email", name="Email")]
    assert client.load_prefill_config(step_id) is None
    assert responses.calls[0].request.path_url.endswith(f"/nodes/{segment}/form-fields")


def test_blueprint_url_quotes_tenant_and_blueprint():
    c = BlueprintClient(ApiConfig(base_url="http://h/api", tenant_id="t/1", blueprint_id="bp 2"))
    assert c.blueprint_url == "http://h/api/t%2F1/actions/blueprints/bp%202"
