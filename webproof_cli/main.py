"""
Entry point for the `webproof` command-line tool.
"""
import typer

from webproof_sdk import __version__
from webproof_sdk.commitment import compute_commitment
from webproof_sdk.exceptions import FieldTooLongError

from .verify import EXIT_MALFORMED, verify

app = typer.Typer(
    name="webproof",
    help="Verify attestation artifacts and compute commitment values.",
    no_args_is_help=True,
)

app.command("verify")(verify)


@app.command("commitment")
def commitment(
    amount: str = typer.Argument(..., help="Transaction amount, e.g. -10"),
    currency: str = typer.Argument(..., help="Currency code, e.g. GBP"),
    counterparty: str = typer.Argument(..., help="Counterparty identifier"),
    tx_id: str = typer.Argument(..., help="Transaction id"),
):
    """
    Compute the commitment value binding a transaction to an escrow.
    """
    try:
        value = compute_commitment(amount, currency, counterparty, tx_id)
    except FieldTooLongError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_MALFORMED)
    typer.echo(f"0x{value:064x}")


@app.command("version")
def version():
    """Print the SDK version."""
    typer.echo(__version__)


def main():
    app()


if __name__ == "__main__":
    main()
