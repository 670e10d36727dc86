"""
`webproof verify` - check an attestation artifact's signature offline.
"""
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import typer

from webproof_sdk.exceptions import ValidationError
from webproof_sdk.verify import VerificationResult, verify_attestation

EXIT_OK = 0
EXIT_MALFORMED = 1
EXIT_MISMATCH = 2


def should_use_color() -> bool:
    """Colors only when writing to a terminal"""
    return sys.stdout.isatty()


def load_artifact(path: Path) -> Any:
    """
    Read and parse an artifact file.

    Raises:
        ValueError: If the file cannot be read or is not valid JSON
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise ValueError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e


def _mark(ok: Optional[bool], no_color: bool) -> str:
    if ok is None:
        return "n/a"
    text = "yes" if ok else "NO"
    if no_color:
        return text
    return typer.style(text, fg=typer.colors.GREEN if ok else typer.colors.RED, bold=True)


def format_result(result: VerificationResult, no_color: bool = False) -> str:
    """Human-readable summary of a verification"""
    lines = [
        f"Format:            {result.format}",
        f"Message hash:      {result.message_hash}",
        f"Recovered signer:  {result.recovered_address}",
        f"Public key:        {result.public_key}",
        f"Public key x:      {result.public_key_x}",
        f"Public key y:      {result.public_key_y}",
        f"Compact signature: {result.compact_signature}",
        f"Signature valid:   {_mark(result.signature_valid, no_color)}",
    ]
    if result.expected_signer is not None:
        lines.append(f"Expected signer:   {result.expected_signer}")
        lines.append(f"Signer matches:    {_mark(result.signer_matches, no_color)}")
    if result.request_urls:
        lines.append(f"Request URLs:      {', '.join(u for u in result.request_urls if u)}")
    if result.allowed_urls is not None:
        lines.append(f"URL allowed:       {_mark(result.url_allowed, no_color)}")
    if result.data_sha256:
        lines.append(f"Data sha256:       {result.data_sha256}")
    if result.payload_sha256:
        lines.append(f"Payload sha256:    {result.payload_sha256}")
    for digest in result.attested_hashes:
        lines.append(f"Attested hash:     {digest}")
    return "\n".join(lines)


def verify(
    path: Path = typer.Argument(..., help="Path to the attestation artifact (JSON)"),
    expected_signer: Optional[str] = typer.Option(
        None, "--expected-signer", "-s", help="Address the attestation must be signed by"
    ),
    index: int = typer.Option(0, "--index", "-i", help="public_data entry to verify"),
    allowed_url: Optional[List[str]] = typer.Option(
        None, "--allowed-url", "-u", help="Accepted request URL (repeatable)"
    ),
    max_responses: Optional[int] = typer.Option(
        None, "--max-responses", help="Reject artifacts with more requests than this"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """
    Recover the signer of an attestation and check its signature.
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG)
    no_color = no_color or not should_use_color()

    try:
        artifact = load_artifact(path)
        result = verify_attestation(
            artifact,
            expected_signer=expected_signer,
            index=index,
            allowed_urls=allowed_url or None,
            max_responses=max_responses,
        )
    except (ValueError, ValidationError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_MALFORMED)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        typer.echo(format_result(result, no_color=no_color))

    if not result.ok:
        raise typer.Exit(code=EXIT_MISMATCH)
