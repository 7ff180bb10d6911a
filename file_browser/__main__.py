from __future__ import annotations

import argparse
import sys

import uvicorn
from pydantic import ValidationError

from .config import Settings
from .main import create_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='file-browser', description='Serve a read-only view of a directory tree.')
    parser.add_argument('--path', dest='root', help='root directory to serve (env FILE_BROWSER_ROOT)')
    parser.add_argument('--host', help='address to bind (default 127.0.0.1)')
    parser.add_argument('--port', type=int, help='port to listen on (default 3000)')
    parser.add_argument('--preview-max', help='max preview size, e.g. 1MB or 512KB')
    parser.add_argument('--base-path', help='prefix when deployed behind a reverse proxy, e.g. /files')
    parser.add_argument('--search-max-results', type=int, help='cap on recursive search matches (default 100)')
    parser.add_argument('--log-level', help='logging level (default info)')
    return parser


def load_settings(argv: list[str] | None = None) -> Settings:
    args = build_parser().parse_args(argv)
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    return Settings(**overrides)


def main(argv: list[str] | None = None) -> int:
    try:
        cfg = load_settings(argv)
    except ValidationError as exc:
        print(f'file-browser: invalid configuration: {exc}', file=sys.stderr)
        return 1

    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port, log_level=cfg.log_level.lower())
    return 0


if __name__ == '__main__':
    sys.exit(main())
