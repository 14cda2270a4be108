"""Main entry point for the coLoc CLI."""
from __future__ import annotations

import logging
import sys

import httpx

from coloc_cli import __version__
from coloc_cli.client import ApiClient, RemoteTransport
from coloc_cli.config import Config
from coloc_cli.mirror import GameClient
from coloc_cli.repl import Repl
from engine.kernel.catalog import Catalog, CatalogError, load_catalog


def print_help():
    """Print help message."""
    print(f"""
coLoc CLI v{__version__}

Usage:
  coloc [options]

Options:
  --api-url URL     Game server to play against (default: offline)
  --verbose         Log transport and rejection details
  -h, --help        Show this help
  -v, --version     Show version

Environment:
  COLOC_API_URL     Game server URL (overridden by --api-url)

Examples:
  coloc                                   # Solo play, state kept locally
  coloc --api-url http://localhost:3001   # Join a running game server
""")


def parse_args(args: list[str]) -> dict:
    """
    Parse command line arguments.

    Returns dict with:
        api_url: str | None
        verbose: bool
        show_help: bool
        show_version: bool
    """
    result = {
        "api_url": None,
        "verbose": False,
        "show_help": False,
        "show_version": False,
    }

    i = 0
    while i < len(args):
        arg = args[i]

        if arg == "--api-url":
            if i + 1 < len(args):
                result["api_url"] = args[i + 1]
                i += 1
            else:
                print("Error: --api-url requires a URL")
                sys.exit(1)
        elif arg == "--verbose":
            result["verbose"] = True
        elif arg in ("--help", "-h"):
            result["show_help"] = True
        elif arg in ("--version", "-v"):
            result["show_version"] = True
        else:
            print(f"Unknown option: {arg}")
            print("Run 'coloc --help' for usage.")
            sys.exit(1)

        i += 1

    return result


def connect(config: Config) -> tuple[ApiClient | None, RemoteTransport | None]:
    """Reach the configured server. Returns (None, None) for offline play."""
    if not config.api_url:
        return None, None

    api = ApiClient(config.api_url)
    try:
        api.health()
    except httpx.HTTPError as e:
        print(f"  Warning: {config.api_url} unreachable ({e}). Playing offline.")
        api.close()
        return None, None
    return api, RemoteTransport(api)


def catalog_for(api: ApiClient | None) -> Catalog:
    """The server's catalog when connected (it may be overridden there), else the bundled one."""
    if api is None:
        return load_catalog()
    try:
        return Catalog.from_dict(api.get_catalog())
    except (httpx.HTTPError, CatalogError) as e:
        print(f"  Warning: could not load the server catalog ({e}). Using the bundled one.")
        return load_catalog()


def main():
    """Main entry point."""
    args = parse_args(sys.argv[1:])

    if args["show_help"]:
        print_help()
        return

    if args["show_version"]:
        print(f"coloc {__version__}")
        return

    logging.basicConfig(level=logging.DEBUG if args["verbose"] else logging.WARNING)

    config = Config(api_url_override=args["api_url"])
    api, transport = connect(config)

    client = GameClient(transport=transport)
    client.sync()

    Repl(client, catalog_for(api), api=api).start()


if __name__ == "__main__":
    main()
