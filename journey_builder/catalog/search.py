from collections.abc import Sequence

from journey_builder.models.catalog import DataSourceGroup


def filter_catalog(catalog: Sequence[DataSourceGroup], term: str | None) -> list[DataSourceGroup]:
    """Prune *catalog* to fields whose name contains *term* (case-insensitive).

    Groups survive only with a matching field or a surviving child; the
    hierarchy is otherwise preserved. The input is never modified.
    """
    needle = (term or "").strip().lower()
    if not needle:
        return [g.model_copy(deep=True) for g in catalog]
    return _filter_groups(catalog, needle)


def _filter_groups(groups: Sequence[DataSourceGroup], needle: str) -> list[DataSourceGroup]:
    result: list[DataSourceGroup] = []
    for group in groups:
        fields = None
        if group.fields is not None:
            fields = [f.model_copy() for f in group.fields if needle in f.name.lower()]
        children = None
        if group.children is not None:
            children = _filter_groups(group.children, needle)
        if fields or children:
            result.append(group.model_copy(update={"fields": fields, "children": children}))
    return result
