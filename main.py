"""Main entry point for the Price Charge Scheduler."""

import argparse
import sys
from pathlib import Path

from pricecharge.main import build_repository, load_config, setup_logging
from pricecharge.storage import create_db_engine, init_db


def _load(config_path: Path):
    if not config_path.exists():
        print(f"ERROR: {config_path} not found! Please create it from config.example.yaml")
        sys.exit(1)
    return load_config(config_path)


def serve(config_path: Path):
    import uvicorn

    config = _load(config_path)
    print(f"Starting server on {config.server.host}:{config.server.port}")

    uvicorn.run(
        "pricecharge.main:app",
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower()
    )


def create_user(config_path: Path, email: str):
    config = _load(config_path)
    setup_logging(config.logging.level)
    repository = build_repository(config)
    user_id, api_key = repository.create_user(email)
    print(f"Created user {user_id} ({email})")
    print(f"API key: {api_key}")


def create_tables(config_path: Path):
    config = _load(config_path)
    setup_logging(config.logging.level)
    init_db(create_db_engine(config.database))
    print(f"Database ready at {config.database.url}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Price-driven EV charge scheduler")
    parser.add_argument("--config", type=Path, default=Path("config.yaml"), help="Path to config.yaml")
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("serve", help="Run the API server and automation (default)")
    user_parser = commands.add_parser("create-user", help="Create a user and print its API key")
    user_parser.add_argument("email")
    commands.add_parser("init-db", help="Create database tables")

    args = parser.parse_args(argv)

    if args.command == "create-user":
        create_user(args.config, args.email)
    elif args.command == "init-db":
        create_tables(args.config)
    else:
        serve(args.config)


if __name__ == "__main__":
    main()
