"""Command-line helper for the Yahoo OAuth2 authorization-code flow."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Mapping, Optional

from oauth_helper.config import ENV_TOKEN_FILE, HelperConfig
from oauth_helper.token_store import TokenStore, TokenStoreError
from oauth_helper.yahoo_client import (
    CREATE_APP_URL,
    TokenExchangeError,
    YahooTokenClient,
    build_authorization_url,
)

logger = logging.getLogger(__name__)

COMMANDS_HELP = """expected some command. available commands:
  create-app
  get-code
  get-token
  refresh-token
  show-token"""

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


class UsageError(ValueError):
    """Raised when a required input was neither passed as a flag nor set in the environment."""


def build_parser() -> argparse.ArgumentParser:
    """Create command-line parser."""
    parser = argparse.ArgumentParser(
        prog="yahoo-oauth-helper",
        description="Obtain, refresh and show Yahoo OAuth2 tokens.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output to stderr.",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("create-app", help="Print where to create a Yahoo API app.")

    get_code_parser = subparsers.add_parser(
        "get-code", help="Print the browser URL for retrieving an authorization code."
    )
    _add_client_id(get_code_parser)

    get_token_parser = subparsers.add_parser(
        "get-token", help="Exchange an authorization code for tokens and save them."
    )
    _add_client_id(get_token_parser)
    _add_client_secret(get_token_parser)
    get_token_parser.add_argument(
        "--code",
        help="Authorization code from get-code (default: $YAHOO_APP_CLIENT_CODE).",
    )
    _add_token_file(get_token_parser)

    refresh_parser = subparsers.add_parser(
        "refresh-token", help="Refresh the access token stored in the token file."
    )
    _add_client_id(refresh_parser)
    _add_client_secret(refresh_parser)
    _add_token_file(refresh_parser)

    show_parser = subparsers.add_parser(
        "show-token", help="Print the stored access token."
    )
    _add_token_file(show_parser)

    return parser


def _add_client_id(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--id", dest="client_id", help="Client ID (default: $YAHOO_APP_CLIENT_ID).")


def _add_client_secret(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--secret",
        dest="client_secret",
        help="Client secret (default: $YAHOO_APP_CLIENT_SECRET).",
    )


def _add_token_file(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--file",
        dest="token_file",
        help=f"Token file to read and write (default: ${ENV_TOKEN_FILE}).",
    )


def resolve_config(args: argparse.Namespace, base: HelperConfig) -> HelperConfig:
    """Apply flags given on the command line on top of environment settings."""
    return base.with_overrides(
        client_id=getattr(args, "client_id", None),
        client_secret=getattr(args, "client_secret", None),
        client_code=getattr(args, "code", None),
        token_file=getattr(args, "token_file", None),
    )


def run_command(
    command: str,
    config: HelperConfig,
    client: YahooTokenClient,
) -> str:
    """Run one subcommand and return the text to print.

    Raises ``UsageError`` for missing inputs before any network or disk access,
    and lets store and exchange errors propagate.
    """
    if command == "create-app":
        return f"To create a new Yahoo API app, visit: {CREATE_APP_URL}\n"

    if command == "get-code":
        if not config.client_id:
            raise UsageError("please provide a client id, if you do not have one try create-app")
        url = build_authorization_url(config.client_id)
        return f"Click this link to retrieve a code:\n{url}\n"

    if command == "get-token":
        _require_credentials(config)
        if not config.client_code:
            raise UsageError(
                "please provide a code to obtain the token with (did you run get-code?)"
            )
        store = _token_store(config)
        token = client.exchange_code(config.client_id, config.client_secret, config.client_code)
        store.save(token)
        return f"Token written to {store.path}\n"

    if command == "refresh-token":
        _require_credentials(config)
        store = _token_store(config)
        old_token = store.load()
        token = client.refresh(config.client_id, config.client_secret, old_token.refresh_token)
        store.save(token)
        return f"Token written to {store.path}\n"

    if command == "show-token":
        token = _token_store(config).load()
        return token.access_token

    raise UsageError(COMMANDS_HELP)


def _require_credentials(config: HelperConfig) -> None:
    if not config.client_id or not config.client_secret:
        raise UsageError("please provide a client id and a client secret")


def _token_store(config: HelperConfig) -> TokenStore:
    if not config.token_file:
        raise UsageError(f"please provide a token file with --file or {ENV_TOKEN_FILE}")
    return TokenStore(Path(config.token_file))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def main(
    argv: Optional[list[str]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    client: Optional[YahooTokenClient] = None,
) -> int:
    """Entrypoint for CLI execution."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command is None:
        print(COMMANDS_HELP, file=sys.stderr)
        return 2

    config = resolve_config(args, HelperConfig.from_env(environ))
    client = client or YahooTokenClient()

    try:
        with client:
            output = run_command(args.command, config, client)
    except UsageError as exc:
        print(exc, file=sys.stderr)
        return 2
    except TokenExchangeError as exc:
        print(f"error obtaining token: {exc}", file=sys.stderr)
        return 1
    except TokenStoreError as exc:
        print(f"token file error: {exc}", file=sys.stderr)
        return 1

    print(output, end="")
    logger.debug("%s completed", args.command)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
