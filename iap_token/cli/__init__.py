import json
import logging
import os
import socket
from typing import Optional

import click
import sentry_sdk
from libiaptoken.config import Settings
from libiaptoken.errors import describe
from libiaptoken.pipeline import fetch_token, init

VERSION = "1.0"

logging.basicConfig(level=os.getenv("IAP_TOKEN_LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# Without SENTRY_DSN this leaves the SDK disabled.
sentry_sdk.init(
    dsn=os.getenv("SENTRY_DSN"),
    traces_sample_rate=1.0,
    environment=socket.gethostname(),
)


@click.command()
@click.option(
    "--target-principal",
    type=str,
    default=None,
    help="Email of a service account to impersonate.",
)
@click.version_option(VERSION, prog_name="iap-token")
@click.pass_context
def main(ctx: click.Context, target_principal: Optional[str]) -> None:
    """
    Prints an OpenID Connect ID token for the IAP protected App Engine
    application of the current project.

    Outside of App Engine, Cloud Run or Cloud Functions you have to pass
    --target-principal.
    """
    with sentry_sdk.start_transaction(op="function", name="main()") as transaction:
        transaction.set_tag(key="impersonation", value=bool(target_principal))
        try:
            settings = Settings.from_env()
            provider, target_audience = init(settings, target_principal)
            result = fetch_token(provider, target_audience)
        except Exception as e:
            logger.debug("Failed to fetch an ID token", exc_info=True)
            sentry_sdk.capture_exception(e)
            click.echo(json.dumps({"ERROR": describe(e)}, indent=2), err=True)
            ctx.exit(1)

    click.echo(json.dumps(result, indent=2))
    click.echo("DONE", err=True)
