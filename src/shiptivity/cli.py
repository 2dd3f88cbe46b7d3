from __future__ import annotations

import argparse
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from loguru import logger
from rich.console import Console

from .config import Settings, build_settings, load_config, resolve_config_path
from .io_utils import load_seed_records
from .lanes.engine import LaneEngine
from .lanes.errors import ClientError
from .lanes.model import Lane
from .lanes.store import ClientStore
from .logging_utils import clients_table, configure_logging, print_output, report_table
from .server import create_app


def _settings(args: argparse.Namespace) -> Settings:
    config_path = resolve_config_path(args.config)
    config, err = load_config(config_path)
    settings = build_settings(
        config,
        db_path=args.db,
        log_level=args.log_level,
        base_dir=config_path.parent,
    )
    configure_logging(settings.log_level)
    if err:
        logger.warning("Ignoring config {}: {}", config_path, err)
    return settings


@contextmanager
def _engine(settings: Settings) -> Iterator[LaneEngine]:
    with ClientStore(settings.db_path, busy_timeout=settings.busy_timeout) as store:
        store.ensure_schema()
        yield LaneEngine(store)


def _console() -> Console:
    return Console(file=sys.stdout)


def _clients_list(args: argparse.Namespace) -> int:
    with _engine(_settings(args)) as engine:
        clients = engine.list_clients(args.status)
    print_output(_console(), [c.to_dict() for c in clients], clients_table(clients), args.json)
    return 0


def _clients_get(args: argparse.Namespace) -> int:
    with _engine(_settings(args)) as engine:
        client = engine.get_client(args.client_id)
    print_output(_console(), client.to_dict(), clients_table([client], title=f"Client {client.id}"), args.json)
    return 0


def _clients_move(args: argparse.Namespace) -> int:
    with _engine(_settings(args)) as engine:
        clients = engine.reassign(args.client_id, status=args.status, priority=args.priority)
    print_output(_console(), [c.to_dict() for c in clients], clients_table(clients), args.json)
    return 0


def _db_init(args: argparse.Namespace) -> int:
    settings = _settings(args)
    records = load_seed_records(Path(args.seed)) if args.seed else []
    with _engine(settings) as engine:
        created = engine.seed(records) if records else []
    sys.stdout.write(f"Initialised {settings.db_path} ({len(created)} client(s) seeded)\n")
    return 0


def _db_check(args: argparse.Namespace) -> int:
    with _engine(_settings(args)) as engine:
        reports = engine.lane_report()
    payload = {lane.value: report.to_dict() for lane, report in reports.items()}
    print_output(_console(), payload, report_table(reports), args.json)
    return 0 if all(r.is_dense for r in reports.values()) else 1


def _db_compact(args: argparse.Namespace) -> int:
    with _engine(_settings(args)) as engine:
        clients = engine.compact_lane(args.lane)
    print_output(_console(), [c.to_dict() for c in clients], clients_table(clients, title=args.lane), args.json)
    return 0


def _server(args: argparse.Namespace) -> int:
    try:
        import uvicorn
    except ImportError:
        sys.stderr.write("Install server extras: pip install 'shiptivity[server]'\n")
        return 1

    settings = _settings(args)
    host = args.host or settings.host
    port = args.port or settings.port
    logger.info("Serving Shiptivity on {}:{} (db: {})", host, port, settings.db_path)
    uvicorn.run(create_app(settings=settings), host=host, port=port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Shiptivity client swimlanes')
    parser.add_argument('--config', default=None, help='Config file (default: $SHIPTIVITY_CONFIG or ./shiptivity.yaml)')
    parser.add_argument('--db', default=None, help='SQLite database path (overrides config)')
    parser.add_argument('--log-level', default=None, help='Log level (overrides config)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    server = subparsers.add_parser('server', help='Start the web server')
    server.add_argument('--host', default=None)
    server.add_argument('--port', default=None, type=int)
    server.set_defaults(func=_server)

    lanes = Lane.values()
    clients = subparsers.add_parser('clients', help='Inspect and move clients')
    clients_sub = clients.add_subparsers(dest='clients_cmd', required=True)
    clist = clients_sub.add_parser('list', help='List clients')
    clist.add_argument('--status', default=None, choices=lanes)
    clist.add_argument('--json', action='store_true')
    clist.set_defaults(func=_clients_list)
    cget = clients_sub.add_parser('get', help='Show one client')
    cget.add_argument('client_id')
    cget.add_argument('--json', action='store_true')
    cget.set_defaults(func=_clients_get)
    cmove = clients_sub.add_parser('move', help='Change lane and/or priority of a client')
    cmove.add_argument('client_id')
    cmove.add_argument('--status', default=None, choices=lanes)
    cmove.add_argument('--priority', default=None)
    cmove.add_argument('--json', action='store_true')
    cmove.set_defaults(func=_clients_move)

    db = subparsers.add_parser('db', help='Database setup and maintenance')
    db_sub = db.add_subparsers(dest='db_cmd', required=True)
    dinit = db_sub.add_parser('init', help='Create the clients table')
    dinit.add_argument('--seed', default=None, help='YAML/JSON file with a clients list')
    dinit.set_defaults(func=_db_init)
    dcheck = db_sub.add_parser('check', help='Verify every lane is densely ranked')
    dcheck.add_argument('--json', action='store_true')
    dcheck.set_defaults(func=_db_check)
    dcompact = db_sub.add_parser('compact', help='Renumber a lane to 1..n')
    dcompact.add_argument('lane', choices=lanes)
    dcompact.add_argument('--json', action='store_true')
    dcompact.set_defaults(func=_db_compact)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, 'func', None)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return int(handler(args) or 0)
    except ClientError as exc:
        sys.stderr.write(f"{exc.message} {exc.long_message}\n")
        return 1
    except (OSError, ValueError) as exc:
        sys.stderr.write(f"{exc}\n")
        return 1
