import argparse
import json
import logging
import sys
from pathlib import Path

from journey_builder.client.blueprint_api import BlueprintClient
from journey_builder.config.settings import Settings, load_settings
from journey_builder.session import PrefillSession
from journey_builder.storage.json_store import JsonStore
from journey_builder.utils.exceptions import GraphLoadError, PersistenceError


def _settings(args) -> Settings:
    settings = load_settings(args.config)
    if args.data_dir:
        settings.storage.data_dir = args.data_dir
    return settings


def _open_session(args) -> PrefillSession:
    settings = _settings(args)
    backend = JsonStore(settings.storage.data_dir) if args.local else BlueprintClient(settings.api)
    if args.graph_file:
        loader = lambda: json.loads(Path(args.graph_file).read_text())  # noqa: E731
    elif args.local:
        loader = lambda: backend.load_graph(settings.api.blueprint_id)  # noqa: E731
    else:
        loader = backend.load_graph
    return PrefillSession.load(
        loader,
        backend.list_fields,
        backend,
        global_sources=settings.catalog.global_sources,
        field_fetch_timeout=settings.catalog.field_fetch_timeout,
    )


def cmd_serve(args):
    import uvicorn

    from journey_builder.api.app import create_app

    app = create_app(settings=_settings(args), local=args.local, graph_file=args.graph_file)
    uvicorn.run(app, host=args.host, port=args.port)


def cmd_deps(args):
    session = _open_session(args)
    deps = session.resolve_dependencies(args.form_id)
    print(json.dumps(deps.model_dump(), indent=2))


def cmd_catalog(args):
    import asyncio

    session = _open_session(args)
    catalog = asyncio.run(session.get_catalog(args.form_id, args.search))
    print(json.dumps([g.model_dump(mode="json", exclude_none=True) for g in catalog], indent=2))


def cmd_show_config(args):
    session = _open_session(args)
    config = session.load_config(args.form_id)
    if config is None:
        print(f"No prefill config stored for form {args.form_id}")
        return
    print(json.dumps(config.to_wire(), indent=2))
    for mapping in config.mappings:
        print(f"  {mapping.target_field_id} <- {session.get_mapping_description(args.form_id, mapping.target_field_id)}")


def main():
    parser = argparse.ArgumentParser(prog="journey-builder", description="Journey Builder prefill engine")
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument("--data-dir", default=None)
    parser.add_argument("--local", action="store_true", help="Use the local JSON store instead of the blueprint API")
    parser.add_argument("--graph-file", default=None, help="Read the graph from a JSON file")
    parser.add_argument("--log-level", default="INFO")
    sub = parser.add_subparsers(dest="command")

    serve_p = sub.add_parser("serve", help="Start the API server")
    serve_p.add_argument("--host", default="0.0.0.0")
    serve_p.add_argument("--port", type=int, default=8000)

    deps_p = sub.add_parser("deps", help="Show direct and transitive dependencies of a form")
    deps_p.add_argument("form_id")

    catalog_p = sub.add_parser("catalog", help="Show the data-source catalog for a form")
    catalog_p.add_argument("form_id")
    catalog_p.add_argument("--search", default=None)

    show_p = sub.add_parser("show-config", help="Show the stored prefill config for a form")
    show_p.add_argument("form_id")

    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "serve": cmd_serve,
        "deps": cmd_deps,
        "catalog": cmd_catalog,
        "show-config": cmd_show_config,
    }
    if args.command not in commands:
        parser.print_help()
        sys.exit(1)

    try:
        commands[args.command](args)
    except (GraphLoadError, PersistenceError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
