"""
DTE Signer CLI — sign, verify and inspect DTE tokens from the shell.

Usage:
    python -m dtesign_cli.cli --cert-dir certificates sign request.json
    python -m dtesign_cli.cli verify <token|file> --nit 12345678901234
    python -m dtesign_cli.cli extract <token|file>
    python -m dtesign_cli.cli inspect 12345678901234
    python -m dtesign_cli.cli mock-cert 12345678901234 --password testpassword
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dtesign.config import SignerConfig
from dtesign.errors import DteError
from dtesign.jws import JwsVerifier
from dtesign.loader import CertificateLoader
from dtesign.mock import TEST_PASSWORD, write_mock_certificate
from dtesign.schema import OperationResult, PayloadEncoding, SchemaVariant
from dtesign.service import DteSigner, DteVerifier


console = Console()


def _read_token(value: str) -> str:
    """Accept a token literal, a path to a file holding one, or ``-`` for stdin."""
    if value == "-":
        return sys.stdin.read().strip()
    # tokens can exceed the OS path length limit
    if os.path.isfile(value):
        return Path(value).read_text(encoding="utf-8").strip()
    return value.strip()


def _fail(result: OperationResult) -> None:
    console.print(f"[red]✗ {escape(result.message)}[/red]  [dim]({result.error_code})[/dim]")
    for err in result.errors:
        console.print(f"  [red]- {escape(err)}[/red]")
    sys.exit(1)


def _print_payload(payload) -> None:
    console.print_json(json.dumps(payload, ensure_ascii=False))


@click.group()
@click.option(
    "--cert-dir",
    envvar="DTE_CERT_DIR",
    default=None,
    help="Certificate directory (default: $DTE_CERT_DIR or ./certificates)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, cert_dir: str | None, verbose: bool):
    """DTE Signer — RS512 JWS signing with Ministry certificates."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = SignerConfig.from_env()
    if cert_dir:
        config.cert_directory = cert_dir
    ctx.obj = config


@main.command()
@click.argument("request_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--encoding",
    type=click.Choice([e.value for e in PayloadEncoding]),
    default=None,
    help="Payload serialization (default: pretty)",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the token to a file")
@click.pass_obj
def sign(config: SignerConfig, request_file: str, encoding: str | None, output: str | None):
    """Sign the DTE in REQUEST_FILE ({nit, passwordPri, dteJson})."""
    if encoding:
        config.payload_encoding = PayloadEncoding(encoding)
    result = DteSigner(config).sign(request_file)
    if not result.success:
        _fail(result)

    if output:
        Path(output).write_text(result.data + "\n", encoding="utf-8")
        console.print(f"[green]✓ {result.message}[/green] → {escape(output)}")
    else:
        click.echo(result.data)


@main.command()
@click.argument("token")
@click.option("--nit", "-n", required=True, help="NIT of the issuing certificate")
@click.option("--password", "-p", default=None, help="Certificate password, if its key is encrypted")
@click.pass_obj
def verify(config: SignerConfig, token: str, nit: str, password: str | None):
    """Verify TOKEN against the certificate of NIT and print its payload."""
    result = DteVerifier(config).verify(_read_token(token), nit, password)
    if not result.success:
        _fail(result)
    console.print(Panel(f"✓ {result.message}", style="bold green"))
    _print_payload(result.data)


@main.command()
@click.argument("token")
@click.option("--header", is_flag=True, help="Also show the JWS header")
@click.pass_obj
def extract(config: SignerConfig, token: str, header: bool):
    """Print the payload of TOKEN WITHOUT verifying its signature."""
    raw = _read_token(token)
    result = DteVerifier(config).extract_payload(raw)
    if not result.success:
        _fail(result)
    console.print(Panel("Signature NOT verified: treat this payload as untrusted", style="bold yellow"))
    if header:
        _print_payload(JwsVerifier().decode_header(raw))
    _print_payload(result.data)


@main.command()
@click.argument("nit")
@click.pass_obj
def inspect(config: SignerConfig, nit: str):
    """Show the state of the certificate for NIT (no password needed)."""
    loader = CertificateLoader(config.cert_directory, extension=config.certificate_extension)
    try:
        record = loader.read_certificate(nit)
    except DteError as e:
        console.print(f"[red]✗ {escape(e.message)}[/red]  [dim]({e.code})[/dim]")
        sys.exit(1)

    table = Table(show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("File", str(loader.certificate_path(nit)))
    table.add_row("Schema", record.schema_variant.value)
    table.add_row("NIT", record.nit or "-")
    table.add_row("Active", "[green]yes[/green]" if record.active else "[red]no[/red]")
    table.add_row("Verified", "[green]yes[/green]" if record.verified else "[red]no[/red]")
    table.add_row("Key ID", record.key_id or "-")
    table.add_row("Key material", f"{len(record.key_material)} bytes")
    console.print(Panel("DTE Certificate", style="bold cyan"))
    console.print(table)


@main.command("mock-cert")
@click.argument("nit")
@click.option("--password", "-p", default=TEST_PASSWORD, show_default=True)
@click.option(
    "--variant",
    type=click.Choice([v.value for v in SchemaVariant]),
    default=SchemaVariant.MINISTRY.value,
    show_default=True,
)
@click.option("--encrypt-key", is_flag=True, help="Encrypt the Ministry key with the password")
@click.pass_obj
def mock_cert(config: SignerConfig, nit: str, password: str, variant: str, encrypt_key: bool):
    """Write a throw-away test certificate for NIT. Not for production use."""
    cert = write_mock_certificate(
        config.cert_directory,
        nit=nit,
        password=password,
        variant=SchemaVariant(variant),
        encrypt_key=encrypt_key,
        extension=config.certificate_extension,
    )
    console.print(f"[green]✓ Mock {cert.variant.value} certificate written[/green] → {escape(str(cert.path))}")


if __name__ == "__main__":
    main()
