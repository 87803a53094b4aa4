"""Command-line interface for auth-audience.

Debugging aids for the verification pipeline: peek into a token without
verifying it, or run the full header → domain → verify pipeline against a
key and constraints.

Example:
    >>> # From terminal:
    >>> # auth-audience --version
    >>> # auth-audience inspect <token> [--domains domains.json]
    >>> # auth-audience verify "Bearer <token>" --key <secret> --scheme Bearer --audience my-api
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from joserfc import jws
from joserfc.errors import JoseError
from starlette.requests import Request

from auth_audience import __version__
from auth_audience.auth.config import AuthAudienceOptions, resolve_config
from auth_audience.auth.domains import domain_of
from auth_audience.auth.outcomes import AuthFailure
from auth_audience.auth.strategies import JwtAudienceAuthenticator
from auth_audience.auth.verifier import JoseTokenVerifier
from auth_audience.errors import ConfigurationError
from auth_audience.models.domains import parse_domain_table
from auth_audience.observability import configure_logging

app = typer.Typer(help="auth-audience CLI.")


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show auth-audience version and exit.",
    callback=_version_callback,
    is_eager=True,
)


@app.callback()
def cli(version: bool = VERSION_OPTION) -> None:
    """auth-audience CLI entrypoint."""


def _read_domains(path: Optional[Path]) -> Optional[str]:
    if path is None:
        return None
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


def _request_with_header(header: str, value: str) -> Request:
    """Minimal ASGI request carrying a single credential header.

    Raises:
        UnicodeEncodeError: If ``value`` is not Latin-1 encodable.
    """
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "path": "/",
        "root_path": "",
        "query_string": b"",
        "headers": [(header.lower().encode("latin-1"), value.encode("latin-1"))],
    }
    return Request(scope)


@app.command("inspect")
def inspect_token(
    token: Annotated[str, typer.Argument(help="Raw JWT (no scheme).")],
    domains: Annotated[
        Optional[Path],
        typer.Option("--domains", "-d", help="JSON domain table to resolve the token against."),
    ] = None,
) -> None:
    """Show the unverified header, claims and domain of a token. Does not verify."""
    try:
        header = jws.extract_compact(token.encode("ascii")).headers()
    except (JoseError, ValueError) as exc:
        typer.echo(f"Not a compact JWT: {exc}", err=True)
        raise typer.Exit(1) from exc
    claims = JoseTokenVerifier().decode(token)
    domain = domain_of(claims)
    output: dict[str, object] = {"header": header, "claims": claims, "domain": domain}
    raw_domains = _read_domains(domains)
    if raw_domains is not None:
        try:
            table = parse_domain_table(raw_domains)
        except ConfigurationError as exc:
            raise typer.BadParameter(exc.message) from exc
        output["domain_configured"] = domain in table
    typer.echo(json.dumps(output, indent=2, default=str))


@app.command("verify")
def verify(
    credential: Annotated[
        str, typer.Argument(help="Credential header value, e.g. 'Bearer <token>' or a bare token.")
    ],
    key: Annotated[
        Optional[str],
        typer.Option("--key", "-k", help="HMAC secret or PEM text; defaults to AUTH_AUDIENCE_JWT_KEY."),
    ] = None,
    key_file: Annotated[
        Optional[Path],
        typer.Option("--key-file", help="File holding the key (e.g. a PEM public key)."),
    ] = None,
    audience: Annotated[
        Optional[list[str]],
        typer.Option("--audience", "-a", help="Expected audience (repeatable)."),
    ] = None,
    issuer: Annotated[Optional[str], typer.Option("--issuer", "-i", help="Expected issuer.")] = None,
    scheme: Annotated[
        str, typer.Option("--scheme", help="Expected scheme; empty for a bare token.")
    ] = "",
    algorithm: Annotated[
        Optional[list[str]],
        typer.Option("--algorithm", help="Allowed algorithm (repeatable)."),
    ] = None,
    domains: Annotated[
        Optional[Path],
        typer.Option("--domains", "-d", help="JSON domain table."),
    ] = None,
) -> None:
    """Run the full verification pipeline; exit 0 with the payload or 1 with the failure."""
    if key_file is not None:
        if not key_file.exists():
            raise typer.BadParameter(f"Key file not found: {key_file}")
        key = key_file.read_text(encoding="utf-8")
    options = AuthAudienceOptions(
        audience=audience or None,
        issuer=issuer,
        key=key,
        auth_scheme=scheme,
        algorithms=algorithm or None,
        domains=_read_domains(domains),
    )
    try:
        config = resolve_config(options)
    except ConfigurationError as exc:
        raise typer.BadParameter(exc.message) from exc

    try:
        request = _request_with_header(config.auth_header, credential)
    except UnicodeEncodeError as exc:
        typer.echo(f"Credential is not valid header text: {exc.reason}", err=True)
        raise typer.Exit(1) from exc
    outcome = asyncio.run(JwtAudienceAuthenticator(config).authenticate(request))

    if isinstance(outcome, AuthFailure):
        typer.echo(
            json.dumps(
                {"error": outcome.message, "status": outcome.status, "detail": str(outcome.error)},
                indent=2,
            ),
            err=True,
        )
        raise typer.Exit(1)
    typer.echo(json.dumps(outcome.payload, indent=2, default=str))


def main() -> None:
    """Run the auth-audience CLI."""
    configure_logging()
    app()


if __name__ == "__main__":
    main()
