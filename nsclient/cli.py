"""Command-line entry point: ``platform-ns create``."""

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

import click
import httpx
from pydantic import ValidationError

from nsclient import __version__
from nsclient.auth import fetch_token
from nsclient.client import upsert_namespace
from nsclient.config import load_settings
from nsclient.errors import OptionError, PlatformClientError
from nsclient.metadata import collect_metadata, parse_extra_properties
from nsclient.models import DEFAULT_TTL, NamespaceRequest, VaultServiceAccounts, parse_ttl

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger().setLevel(level.upper())


def _validate_ttl(ctx: click.Context, param: click.Parameter, value: str) -> str:
    try:
        parse_ttl(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    return value


def _resolve_name(productkey: str, name: str, manifest_name: str | None, strip_prefix: bool) -> str:
    """Work out the namespace suffix from the positional name and options."""
    strict = False
    if name == "-":
        if not manifest_name:
            raise OptionError(
                "metadata-from-manifest",
                "-",
                "name passed as '-' but no name provided in manifest metadata",
            )
        name = manifest_name
        strict = True

    if strip_prefix or strict:
        prefix = f"{productkey}-"
        if name.startswith(prefix):
            name = name[len(prefix):]
        elif strict:
            raise PlatformClientError(
                f"Expected that name '{name}' is prefixed with product key '{productkey}'"
            )
    return name


@contextmanager
def _http_client(ctx: click.Context, timeout: float) -> Iterator[httpx.Client]:
    """One connection pool for the token and namespace calls.

    A client passed in as ``obj["http"]`` is used as-is and left open.
    """
    shared = ctx.obj.get("http")
    if shared is not None:
        yield shared
        return
    with httpx.Client(timeout=timeout) as client:
        yield client


def _vault_service_accounts(raw: str | None, accounts: tuple[str, ...]) -> VaultServiceAccounts:
    if raw is not None:
        return VaultServiceAccounts.from_raw(raw)
    vsas = VaultServiceAccounts()
    vsas.extend(accounts)
    return vsas


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    envvar="LOG_LEVEL",
    default="WARNING",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging verbosity (written to stderr)",
)
@click.pass_context
def main(ctx: click.Context, log_level: str) -> None:
    """Platform API Namespace Client.

    Programs embedding the CLI can pass a preconfigured ``httpx.Client`` as
    ``obj={"http": client}``; otherwise each command opens its own.
    """
    ctx.ensure_object(dict)
    _configure_logging(log_level)


@main.command()
@click.option("--ttl", default=DEFAULT_TTL, show_default=True, callback=_validate_ttl,
              help="ttl for namespace. valid values are 1-24h or 1-7d")
@click.option("-s", "--strip-prefix", is_flag=True,
              help="strip prefix from namespace name if it is already prepended")
@click.option("-l", "--label", "--labels", "labels", multiple=True,
              help="label as key=value, or a comma-separated list of them")
@click.option("-a", "--annotation", "annotations", multiple=True, help="annotation as key=value")
@click.option("--metadata-from-manifest", "manifest",
              help="read name, labels and annotations from a manifest (yaml). '@' prefix reads a file.")
@click.option("--service-principal", "--vault-service-account", "service_accounts", multiple=True,
              help="add an additional service account for vault access")
@click.option("--vault-service-account-raw", "service_accounts_raw",
              help="service accounts for vault access. comma-separated raw list of values.")
@click.option("--extra-data", "extra_data",
              help="provide extra params to api by reading in yaml/json. value prefixed with '@' is treated as a filename.")
@click.option("-d", "--dry-run", is_flag=True, help="print the payload instead of calling the API")
@click.option("--hostname", help="hostname of API, otherwise read from PLATFORM_API_HOSTNAME env var")
@click.option("--cluster", help="cluster name, otherwise read from PLATFORM_API_CLUSTER env var")
@click.option("--tenant", help="tenant info for auth, otherwise read from PLATFORM_API_TENANT env var")
@click.argument("productkey")
@click.argument("name")
@click.pass_context
def create(
    ctx: click.Context,
    ttl: str,
    strip_prefix: bool,
    labels: tuple[str, ...],
    annotations: tuple[str, ...],
    manifest: str | None,
    service_accounts: tuple[str, ...],
    service_accounts_raw: str | None,
    extra_data: str | None,
    dry_run: bool,
    hostname: str | None,
    cluster: str | None,
    tenant: str | None,
    productkey: str,
    name: str,
) -> None:
    """Create Dynamic Namespace.

    PRODUCTKEY is prepended to the namespace name, NAME is appended as the
    suffix. Pass NAME as '-' to take it from --metadata-from-manifest.
    """
    if service_accounts and service_accounts_raw is not None:
        raise click.UsageError(
            "--vault-service-account-raw cannot be combined with --service-principal/--vault-service-account"
        )
    if name == "-" and not manifest:
        raise click.UsageError("--metadata-from-manifest is required when NAME is '-'")

    try:
        settings = load_settings(hostname=hostname, cluster=cluster, tenant=tenant)
        metadata = collect_metadata(manifest, labels, annotations)
        suffix = _resolve_name(productkey, name, metadata.name, strip_prefix)
        try:
            request = NamespaceRequest(
                productkey=productkey,
                namespace=suffix,
                cluster=settings.platform_api_cluster,
                ttl=ttl,
                labels=metadata.labels,
                annotations=metadata.annotations,
                vault_service_accounts=_vault_service_accounts(service_accounts_raw, service_accounts),
                extra_properties=parse_extra_properties(extra_data),
            )
        except ValidationError as e:
            messages = "; ".join(err["msg"].removeprefix("Value error, ") for err in e.errors())
            raise PlatformClientError(f"Invalid namespace request: {messages}") from e

        if dry_run:
            expiry = datetime.now(timezone.utc) + request.ttl_delta
            click.echo(
                "Would submit the following payload to the API:\n"
                + json.dumps(request.to_payload(), indent=2, default=str)
            )
            click.echo(f"Expected expiry: {expiry.strftime('%Y-%m-%dT%H:%M:%SZ')}")
            click.echo("Dry-run, not calling API!", err=True)
            return

        timeout = settings.platform_api_timeout
        with _http_client(ctx, timeout) as http:
            token = fetch_token(settings.credentials, settings.token_url, http=http, timeout=timeout)
            response = upsert_namespace(
                token, settings.platform_api_hostname, request, http=http, timeout=timeout
            )
    except PlatformClientError as e:
        logger.debug("Command failed", exc_info=True)
        click.echo(str(e), err=True)
        ctx.exit(1)

    click.echo(str(response))


if __name__ == "__main__":
    main()
