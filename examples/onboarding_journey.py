"""
Journey: customer onboarding

Graph:
    form-a (Account) ──→ form-b (Profile) ──→ form-d (Contract)
          └──────────→ form-c (Company)  ──┘        ↑
    branch-1 (Region check) ───────────────────────┘

Seeds a local JSON store with the graph and each form's fields, then shows
the catalog offered when prefilling form-d and maps two of its fields.
"""

import asyncio
import json

from journey_builder.models.catalog import FormField
from journey_builder.session import PrefillSession
from journey_builder.storage.json_store import JsonStore

BLUEPRINT_ID = "bp_onboarding"


def build_graph() -> dict:
    return {
        "nodes": [
            {"id": "form-a", "type": "form", "data": {"name": "Account"}},
            {"id": "form-b", "type": "form", "data": {"name": "Profile"}},
            {"id": "form-c", "data": {"name": "Company", "component_type": "form"}},
            {"id": "branch-1", "type": "branch", "data": {"name": "Region check"}},
            {"id": "form-d", "type": "form", "data": {"name": "Contract"}},
        ],
        "edges": [
            {"source": "form-a", "target": "form-b"},
            {"source": "form-a", "target": "form-c"},
            {"source": "form-b", "target": "form-d"},
            {"source": "form-c", "target": "form-d"},
            {"source": "branch-1", "target": "form-d"},
        ],
    }


FIELDS = {
    "form-a": [FormField(id="email", name="Email", type="email"), FormField(id="name", name="Name")],
    "form-b": [FormField(id="address", name="Address", type="textarea")],
    "form-c": [FormField(id="title", name="Company Title"), FormField(id="vat", name="VAT Number")],
    "form-d": [FormField(id="signer_email", name="Signer Email", type="email")],
}


def main():
    store = JsonStore("data")
    store.save_graph(BLUEPRINT_ID, build_graph())
    for step_id, fields in FIELDS.items():
        store.save_form_fields(step_id, fields)

    session = PrefillSession.load(lambda: store.load_graph(BLUEPRINT_ID), store.list_fields, store)

    deps = session.resolve_dependencies("form-d")
    print("=== Dependencies of form-d ===")
    print(f"Direct: {deps.direct}")
    print(f"Transitive: {deps.transitive}")
    print()

    catalog = asyncio.run(session.get_catalog("form-d"))
    print("=== Catalog ===")
    print(json.dumps([g.model_dump(mode="json", exclude_none=True) for g in catalog], indent=2)[:1500])
    print()

    # only form-a (transitive) has a matching field
    email = asyncio.run(session.get_catalog("form-d", "email"))[0].children[0].fields[0]
    session.set_enabled("form-d", True)
    session.upsert_mapping("form-d", "signer_email", email)
    print(f"signer_email <- {session.get_mapping_description('form-d', 'signer_email')}")

    saved = session.save("form-d")
    print(json.dumps(saved.to_wire(), indent=2))


if __name__ == "__main__":
    main()
