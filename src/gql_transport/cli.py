from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import httpx
import typer
from loguru import logger

from .errors import GraphQLHTTPResponseError, OperationIdentifierMissing
from .models import Operation
from .request_builder import RequestBuilder
from .settings import TransportSettings
from .transport import HTTPNetworkTransport

app = typer.Typer(help="GraphQL HTTP transport CLI")

EXIT_HTTP_ERROR = 1
EXIT_CONNECTION_ERROR = 3

# ---------------------------
# Common options
# ---------------------------


def url_opt() -> str:
    return typer.Option(..., "--url", envvar="GQL_TRANSPORT_URL", help="GraphQL endpoint")


def variables_opt() -> str:
    return typer.Option("{}", "--variables", "-v", help="Variables as a JSON object")


def id_opt() -> Optional[str]:
    return typer.Option(None, "--id", help="Persisted operation identifier")


def persisted_opt() -> bool:
    return typer.Option(
        False,
        "--persisted",
        envvar="GQL_TRANSPORT_SEND_OPERATION_IDENTIFIERS",
        help="Send the persisted identifier instead of the query text",
    )


def header_opt() -> List[str]:
    return typer.Option(None, "--header", "-H", help="Extra header as 'Name: value' (repeatable)")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", help="Debug logging")):
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


# ---------------------------
# Helpers
# ---------------------------


def _load_query(query: str) -> str:
    path = Path(query)
    if path.suffix in {".graphql", ".gql"} and path.is_file():
        return path.read_text(encoding="utf-8")
    return query


def _parse_variables(raw: str) -> dict:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"invalid JSON: {e}", param_hint="--variables")
    if not isinstance(value, dict):
        raise typer.BadParameter("must be a JSON object", param_hint="--variables")
    return value


def _parse_headers(values: List[str]) -> dict:
    headers = {}
    for item in values or []:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(f"expected 'Name: value', got {item!r}", param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


# ---------------------------
# Commands
# ---------------------------


@app.command("build-request")
def build_request(
    query: str = typer.Argument(..., help="Query text or path to a .graphql file"),
    variables: str = variables_opt(),
    operation_id: Optional[str] = id_opt(),
    persisted: bool = persisted_opt(),
    url: str = typer.Option("http://localhost/graphql", "--url", envvar="GQL_TRANSPORT_URL"),
    header: List[str] = header_opt(),
):
    """Print the request that would be sent, without contacting the server."""
    op = Operation(_load_query(query), _parse_variables(variables), operation_id)
    builder = RequestBuilder(url, send_operation_identifiers=persisted, headers=_parse_headers(header))
    try:
        request = builder.build(op)
    except OperationIdentifierMissing as e:
        raise typer.BadParameter(str(e), param_hint="--id")
    typer.echo(
        json.dumps(
            {
                "method": request.method,
                "url": request.url,
                "headers": dict(request.headers),
                "body": json.loads(request.body),
            },
            indent=2,
        )
    )


@app.command("send")
def send(
    query: str = typer.Argument(..., help="Query text or path to a .graphql file"),
    variables: str = variables_opt(),
    operation_id: Optional[str] = id_opt(),
    persisted: bool = persisted_opt(),
    url: str = url_opt(),
    timeout: float = typer.Option(30.0, "--timeout", help="Request timeout in seconds"),
    header: List[str] = header_opt(),
):
    """Send one operation and print the JSON response body."""
    op = Operation(_load_query(query), _parse_variables(variables), operation_id)
    settings = TransportSettings(
        url=url,
        send_operation_identifiers=persisted,
        timeout_sec=timeout,
        headers=_parse_headers(header),
    )

    async def _run() -> dict:
        async with HTTPNetworkTransport.from_settings(settings) as transport:
            response = await transport.execute(op)
            return response.body

    try:
        body = asyncio.run(_run())
    except OperationIdentifierMissing as e:
        raise typer.BadParameter(str(e), param_hint="--id")
    except GraphQLHTTPResponseError as e:
        logger.error(str(e))
        raise typer.Exit(EXIT_HTTP_ERROR)
    except httpx.RequestError as e:
        logger.error(f"Request failed: {type(e).__name__}: {e}")
        raise typer.Exit(EXIT_CONNECTION_ERROR)

    typer.echo(json.dumps(body, indent=2))


if __name__ == "__main__":
    app()
