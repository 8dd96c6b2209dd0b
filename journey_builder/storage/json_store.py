import json
import logging
import os
import threading
from pathlib import Path
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from journey_builder.models.catalog import FormField
from journey_builder.models.prefill import PrefillConfig
from journey_builder.utils.exceptions import GraphLoadError, PersistenceError

logger = logging.getLogger(__name__)


def _file_name(key: str) -> str:
    # one flat file per id, separators included
    return quote(key, safe="") + ".json"


class JsonStore:
    """Local directory backend for graphs, form field listings and prefill configs."""

    def __init__(self, base_dir: str | Path | None = None):
        if base_dir is None:
            base_dir = os.environ.get("JB_DATA_DIR", "data")
        self._base = Path(base_dir)
        self._graphs_dir = self._base / "graphs"
        self._fields_dir = self._base / "fields"
        self._prefill_dir = self._base / "prefill"
        for d in (self._graphs_dir, self._fields_dir, self._prefill_dir):
            d.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _atomic_write(self, path: Path, data: Any) -> None:
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, default=str))
        os.replace(tmp, path)

    # Graphs

    def save_graph(self, blueprint_id: str, payload: dict[str, Any]) -> None:
        with self._lock:
            self._atomic_write(self._graphs_dir / _file_name(blueprint_id), payload)

    def load_graph(self, blueprint_id: str) -> dict[str, Any]:
        path = self._graphs_dir / _file_name(blueprint_id)
        if not path.exists():
            raise GraphLoadError(f"Graph for blueprint '{blueprint_id}' not found")
        try:
            return json.loads(path.read_text())
        except (OSError, ValueError) as e:
            raise GraphLoadError(f"Graph for blueprint '{blueprint_id}' is unreadable", str(e)) from e

    # Form fields

    def save_form_fields(self, step_id: str, fields: list[FormField]) -> None:
        with self._lock:
            self._atomic_write(
                self._fields_dir / _file_name(step_id),
                [f.model_dump(mode="json") for f in fields],
            )

    def list_fields(self, step_id: str) -> list[FormField]:
        path = self._fields_dir / _file_name(step_id)
        if not path.exists():
            return []
        data = json.loads(path.read_text())
        return [FormField.model_validate(item) for item in data]

    # Prefill configs

    def save_prefill_config(self, config: PrefillConfig) -> None:
        try:
            with self._lock:
                self._atomic_write(self._prefill_dir / _file_name(config.form_id), config.to_wire())
        except OSError as e:
            raise PersistenceError(config.form_id, str(e)) from e
        logger.info(f"Saved prefill config for form {config.form_id} ({len(config.mappings)} mappings)")

    def load_prefill_config(self, form_id: str) -> PrefillConfig | None:
        path = self._prefill_dir / _file_name(form_id)
        if not path.exists():
            return None
        try:
            return PrefillConfig.model_validate(json.loads(path.read_text()))
        except (OSError, ValueError, ValidationError) as e:
            raise PersistenceError(form_id, str(e)) from e

