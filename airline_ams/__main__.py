"""Run the service against a PostgreSQL database: python -m airline_ams <dbname> <port> <user>"""

import argparse
import sys

import uvicorn

from .config import Settings
from .main import create_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="airline_ams", description="Airline AMS seat allocation service")
    parser.add_argument("dbname")
    parser.add_argument("port", type=int)
    parser.add_argument("user")
    parser.add_argument("--host", default=None, help="database host (default from DB_HOST)")
    parser.add_argument("--password", default=None, help="database password (default from DB_PASSWORD)")
    parser.add_argument("--bind", default="0.0.0.0", help="HTTP bind address")
    parser.add_argument("--http-port", type=int, default=8000)
    parser.add_argument("--seed-demo-data", action="store_true")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {
        "DATABASE_URL": None,
        "DB_NAME": args.dbname,
        "DB_PORT": args.port,
        "DB_USER": args.user,
    }
    if args.host:
        overrides["DB_HOST"] = args.host
    if args.password is not None:
        overrides["DB_PASSWORD"] = args.password
    if args.seed_demo_data:
        overrides["SEED_DEMO_DATA"] = True
    return Settings(**overrides)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    app = create_app(settings_from_args(args))
    uvicorn.run(app, host=args.bind, port=args.http_port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
