"""CLI commands for one-off fetches."""

import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any

import click
import structlog

from fetchkit.fetch.client import HttpFetcher
from fetchkit.fetch.config import FetchConfig
from fetchkit.fetch.constants import (
    DEFAULT_INITIAL_DELAY_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY_SECONDS,
)
from fetchkit.fetch.decoding import RawDecoder
from fetchkit.fetch.metrics import FetchMetrics
from fetchkit.fetch.request import HttpMethod, RequestDescriptor
from fetchkit.fetch.retry import RetryPolicy
from fetchkit.observability.logging import configure_logging
from fetchkit.settings.app import get_settings


logger = structlog.get_logger()


@dataclass
class GetOptions:
    """Options for the get command."""

    url: str
    path: str
    method: HttpMethod
    headers: tuple[tuple[str, str], ...]
    query_params: tuple[tuple[str, str], ...]
    data: str | None
    attempts: int
    initial_delay: float
    max_delay: float
    raw: bool
    show_metrics: bool


def parse_header(value: str) -> tuple[str, str]:
    """Parse a ``Name: value`` header argument.

    Args:
        value: Raw option value.

    Returns:
        (name, value) pair.

    Raises:
        click.BadParameter: If the value has no colon or an empty name.
    """
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        msg = f"expected 'Name: value', got {value!r}"
        raise click.BadParameter(msg)
    return name.strip(), header_value.strip()


def parse_query_param(value: str) -> tuple[str, str]:
    """Parse a ``name=value`` query argument.

    Raises:
        click.BadParameter: If the value has no equals sign.
    """
    name, sep, param_value = value.partition("=")
    if not sep or not name:
        msg = f"expected 'name=value', got {value!r}"
        raise click.BadParameter(msg)
    return name, param_value


async def _run_get(options: GetOptions) -> int:
    """Execute one fetch and print the outcome.

    Returns:
        Process exit code.
    """
    config = FetchConfig.from_settings(get_settings())
    request = RequestDescriptor(
        url=options.url,
        path=options.path,
        method=options.method,
        headers=options.headers,
        query_params=options.query_params,
        body=options.data.encode() if options.data is not None else None,
    )
    policy = RetryPolicy(
        max_attempts=options.attempts,
        initial_delay=options.initial_delay,
        max_delay=max(options.max_delay, options.initial_delay),
    )

    decoder = RawDecoder() if options.raw else None
    async with HttpFetcher(config=config, decoder=decoder) as fetcher:
        if options.raw:
            raw_result = await fetcher.fetch(request, bytes, policy)
            error = raw_result.error
            if error is None:
                click.echo(
                    (raw_result.value or b"").decode("utf-8", errors="replace")
                )
        else:
            json_result = await fetcher.fetch(
                request,
                Any,  # type: ignore[arg-type]
                policy,
            )
            error = json_result.error
            if error is None:
                click.echo(json.dumps(json_result.value, indent=2, sort_keys=True))

    if options.show_metrics:
        metrics = FetchMetrics.get_instance().to_dict()
        click.echo(json.dumps(metrics, indent=2), err=True)

    if error is not None:
        click.echo(f"Error: {error.message}", err=True)
        return 1
    return 0


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """fetchkit HTTP fetch CLI."""


@cli.command()
@click.argument("url")
@click.option("--path", default="", help="Path appended to the URL path.")
@click.option(
    "--method",
    "-X",
    type=click.Choice([m.value for m in HttpMethod], case_sensitive=False),
    default=HttpMethod.GET.value,
    help="HTTP method (default: GET).",
)
@click.option(
    "--header",
    "-H",
    "headers",
    multiple=True,
    help="Request header as 'Name: value'. Repeatable.",
)
@click.option(
    "--query",
    "-q",
    "query_params",
    multiple=True,
    help="Query parameter as 'name=value'. Repeatable, order kept.",
)
@click.option("--data", "-d", default=None, help="Request body.")
@click.option(
    "--attempts",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_ATTEMPTS,
    help=f"Maximum attempts, first included (default: {DEFAULT_MAX_ATTEMPTS}).",
)
@click.option(
    "--initial-delay",
    type=click.FloatRange(min=0.0),
    default=DEFAULT_INITIAL_DELAY_SECONDS,
    help="Backoff before the first retry, in seconds.",
)
@click.option(
    "--max-delay",
    type=click.FloatRange(min=0.0),
    default=DEFAULT_MAX_DELAY_SECONDS,
    help="Upper bound for any backoff, in seconds.",
)
@click.option("--raw", is_flag=True, help="Print the body without JSON decoding.")
@click.option(
    "--show-metrics", is_flag=True, help="Print fetch metrics to stderr."
)
@click.option(
    "--json-logs/--no-json-logs",
    default=False,
    help="Use JSON format for logs (default: false).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def get(  # noqa: PLR0913
    url: str,
    path: str,
    method: str,
    headers: tuple[str, ...],
    query_params: tuple[str, ...],
    data: str | None,
    attempts: int,
    initial_delay: float,
    max_delay: float,
    raw: bool,
    show_metrics: bool,
    json_logs: bool,
    verbose: bool,
) -> None:
    """Fetch URL with retries and print the response body.

    JSON responses are pretty-printed. Non-2xx responses, network failures
    and undecodable bodies exit with status 1.
    """
    configure_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        json_format=json_logs,
    )

    options = GetOptions(
        url=url,
        path=path,
        method=HttpMethod(method.upper()),
        headers=tuple(parse_header(h) for h in headers),
        query_params=tuple(parse_query_param(q) for q in query_params),
        data=data,
        attempts=attempts,
        initial_delay=initial_delay,
        max_delay=max_delay,
        raw=raw,
        show_metrics=show_metrics,
    )
    logger.bind(component="cli", command="get").debug(
        "cli_get_started", method=options.method.value, attempts=attempts
    )
    sys.exit(asyncio.run(_run_get(options)))


if __name__ == "__main__":
    cli()
