"""HTTP client for the blueprint service: graph, form fields and prefill configs."""

import logging
from typing import Any
from urllib.parse import quote

import requests

from journey_builder.config.settings import ApiConfig
from journey_builder.models.catalog import FormField
from journey_builder.models.prefill import PrefillConfig
from journey_builder.utils.exceptions import FieldListError, GraphLoadError, PersistenceError

logger = logging.getLogger(__name__)


def _segment(value: str) -> str:
    return quote(value, safe="")


class BlueprintClient:
    def __init__(self, config: ApiConfig, session: requests.Session | None = None) -> None:
        self._config = config
        self._http = session or requests.Session()

    @property
    def blueprint_url(self) -> str:
        c = self._config
        return (
            f"{c.base_url.rstrip('/')}/{_segment(c.tenant_id)}"
            f"/actions/blueprints/{_segment(c.blueprint_id)}"
        )

    def _node_url(self, step_id: str, resource: str) -> str:
        return f"{self.blueprint_url}/nodes/{_segment(step_id)}/{resource}"

    def _get(self, url: str) -> requests.Response:
        return self._http.get(url, timeout=self._config.timeout)

    def load_graph(self) -> dict[str, Any]:
        url = f"{self.blueprint_url}/graph"
        try:
            resp = self._get(url)
        except requests.RequestException as e:
            raise GraphLoadError("Graph request failed", str(e)) from e
        if resp.status_code >= 400:
            raise GraphLoadError(f"Graph request failed with HTTP {resp.status_code}", resp.text)
        try:
            return resp.json()
        except ValueError as e:
            raise GraphLoadError("Graph response is not JSON", str(e)) from e

    def list_fields(self, step_id: str) -> list[FormField]:
        url = self._node_url(step_id, "form-fields")
        try:
            resp = self._get(url)
        except requests.RequestException as e:
            raise FieldListError(step_id, str(e)) from e
        if resp.status_code == 404:
            return []
        if resp.status_code >= 400:
            raise FieldListError(step_id, f"HTTP {resp.status_code}: {resp.text}")
        try:
            return [FormField.model_validate(item) for item in resp.json()]
        except ValueError as e:
            raise FieldListError(step_id, f"invalid response: {e}") from e

    def save_prefill_config(self, config: PrefillConfig) -> None:
        url = f"{self.blueprint_url}/prefill-config"
        try:
            resp = self._http.post(url, json=config.to_wire(), timeout=self._config.timeout)
        except requests.RequestException as e:
            raise PersistenceError(config.form_id, str(e)) from e
        if resp.status_code >= 400:
            raise PersistenceError(config.form_id, f"HTTP {resp.status_code}: {resp.text}")
        logger.info(f"Saved prefill config for form {config.form_id}")

    def load_prefill_config(self, form_id: str) -> PrefillConfig | None:
        url = self._node_url(form_id, "prefill-config")
        try:
            resp = self._get(url)
        except requests.RequestException as e:
            raise PersistenceError(form_id, str(e)) from e
        if resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            raise PersistenceError(form_id, f"HTTP {resp.status_code}: {resp.text}")
        try:
            return PrefillConfig.model_validate(resp.json())
        except ValueError as e:
            raise PersistenceError(form_id, f"invalid response: {e}") from e
