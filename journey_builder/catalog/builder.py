"""Assemble the data-source catalog offered when mapping a form's fields."""

import asyncio
import logging
from collections.abc import Callable, Sequence

from journey_builder.graph.dependency_resolver import resolve
from journey_builder.graph.graph_model import GraphModel
from journey_builder.models.catalog import (
    DataSourceField,
    DataSourceGroup,
    FormField,
    GlobalSource,
    GlobalSourceField,
    GroupSourceKind,
    field_path,
)

logger = logging.getLogger(__name__)

FieldLister = Callable[[str], list[FormField]]

DIRECT_GROUP_ID = "direct-forms"
TRANSITIVE_GROUP_ID = "transitive-forms"

DEFAULT_GLOBAL_SOURCES: list[GlobalSource] = [
    GlobalSource(
        id="action",
        name="Action Properties",
        fields=[
            GlobalSourceField(id="id", name="ID"),
            GlobalSourceField(id="name", name="Name"),
            GlobalSourceField(id="status", name="Status"),
            GlobalSourceField(id="timestamp", name="Timestamp"),
        ],
    ),
    GlobalSource(
        id="client",
        name="Client Organisation Properties",
        fields=[
            GlobalSourceField(id="id", name="ID"),
            GlobalSourceField(id="name", name="Name"),
            GlobalSourceField(id="email", name="Email"),
        ],
    ),
]


def render_key(parent_key: str | None, group_id: str) -> str:
    return f"{parent_key}/{group_id}" if parent_key else group_id


async def _fetch_fields(list_fields: FieldLister, step_id: str, timeout: float | None) -> list[FormField]:
    try:
        return await asyncio.wait_for(asyncio.to_thread(list_fields, step_id), timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Field listing for step '{step_id}' timed out after {timeout}s")
    except Exception as e:
        logger.warning(f"Field listing for step '{step_id}' failed: {e}")
    return []


def _form_group(
    group_id: str,
    name: str,
    graph: GraphModel,
    step_ids: Sequence[str],
    fields_by_step: dict[str, list[FormField]],
) -> DataSourceGroup:
    children = []
    for step_id in step_ids:
        step = graph.get(step_id)
        children.append(
            DataSourceGroup(
                id=step_id,
                name=step.display_name if step else step_id,
                source_kind=GroupSourceKind.FORM,
                render_key=render_key(group_id, step_id),
                fields=[
                    DataSourceField(id=f.id, name=f.name, path=field_path(step_id, f.id))
                    for f in fields_by_step.get(step_id, [])
                ],
            )
        )
    return DataSourceGroup(
        id=group_id,
        name=name,
        source_kind=GroupSourceKind.FORM,
        render_key=render_key(None, group_id),
        children=children,
    )


def global_group(source: GlobalSource) -> DataSourceGroup:
    return DataSourceGroup(
        id=source.id,
        name=source.name,
        source_kind=GroupSourceKind.GLOBAL,
        render_key=render_key(None, source.id),
        fields=[
            DataSourceField(id=f.id, name=f.name, path=field_path(source.id, f.id))
            for f in source.fields
        ],
    )


async def build_catalog(
    graph: GraphModel,
    target_form_id: str,
    list_fields: FieldLister,
    global_sources: Sequence[GlobalSource] | None = None,
    timeout: float | None = None,
) -> list[DataSourceGroup]:
    """Catalog for *target_form_id*: direct forms, transitive-only forms, then globals.

    Field listings run concurrently, one per dependency. A listing that fails
    or exceeds *timeout* leaves that dependency with an empty field list.
    """
    deps = resolve(graph, target_form_id)
    step_ids = deps.direct + deps.transitive

    results = await asyncio.gather(*(_fetch_fields(list_fields, sid, timeout) for sid in step_ids))
    fields_by_step = dict(zip(step_ids, results))

    catalog = [
        _form_group(DIRECT_GROUP_ID, "Direct Dependencies", graph, deps.direct, fields_by_step),
        _form_group(TRANSITIVE_GROUP_ID, "Transitive Dependencies", graph, deps.transitive, fields_by_step),
    ]
    sources = DEFAULT_GLOBAL_SOURCES if global_sources is None else global_sources
    catalog.extend(global_group(s) for s in sources)
    logger.debug(
        f"Catalog for '{target_form_id}': {len(deps.direct)} direct, "
        f"{len(deps.transitive)} transitive, {len(sources)} global groups"
    )
    return catalog
