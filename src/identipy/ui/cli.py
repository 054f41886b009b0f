from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

import uvicorn
from dotenv import load_dotenv

from identipy.adapters.sqlalchemy.unit_of_work import shutdown, startup
from identipy.app import identify_contact
from identipy.config import ConfigurationError, configure_logging, get_server_config
from identipy.domain.errors import ValidationError
from identipy.domain.reconciliation import IdentifyRequest
from identipy.ui.api import create_app
from identipy.ui.schemas import IdentifyResponse

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from identipy.config import ServerConfig

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile contact identities")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the /identify HTTP service")
    serve.add_argument(
        "--host",
        type=str,
        default=None,
        help="Interface to bind (defaults to IDENTIPY_HOST or 127.0.0.1)",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind (defaults to IDENTIPY_PORT or 3000)",
    )

    identify = subparsers.add_parser("identify", help="Reconcile one email/phone pair")
    identify.add_argument("--email", type=str, help="Email address to reconcile")
    identify.add_argument("--phone", type=str, help="Phone number to reconcile")

    subparsers.add_parser("migrate", help="Apply database migrations and exit")

    return parser.parse_args(list(argv))


def _serve(args: argparse.Namespace, server: ServerConfig) -> None:
    host = args.host or server.host
    port = args.port or server.port
    log.info("Serving identipy on %s:%s", host, port)
    uvicorn.run(create_app(), host=host, port=port, log_config=None)


def _identify(request: IdentifyRequest) -> None:
    try:
        summary = identify_contact(email=request.email, phone=request.phone)
    finally:
        shutdown()
    response = IdentifyResponse.from_summary(summary)
    print(json.dumps(response.model_dump(by_alias=True)))  # noqa: T201


def _migrate() -> None:
    startup()
    shutdown()
    log.info("Database schema is up to date")


def main(argv: Sequence[str] | None = None) -> None:
    """Run one subcommand.

    Exits with status 2 on invalid input or settings and with status 1 when the
    command itself fails.
    """
    try:
        configure_logging()
        args = _parse_args(sys.argv[1:] if argv is None else argv)
        request = (
            IdentifyRequest(email=args.email, phone=args.phone)
            if args.command == "identify"
            else None
        )
        server = get_server_config() if args.command == "serve" else None
    except (ValidationError, ConfigurationError) as exc:
        log.error("Invalid input: %s", exc)  # noqa: TRY400
        sys.exit(2)

    try:
        if request is not None:
            _identify(request)
        elif server is not None:
            _serve(args, server)
        elif args.command == "migrate":
            _migrate()
        else:
            raise ValueError(f"Unsupported command: {args.command}")  # noqa: TRY301
    except Exception:
        log.exception("identipy %s failed", args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    log.info("Interrupted, shutting down")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
