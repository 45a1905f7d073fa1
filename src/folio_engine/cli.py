"""Typer CLI for Folio-Engine."""

import base64
import os
from pathlib import Path

import typer
from rich.console import Console

app = typer.Typer(name="folio", help="Folio-Engine: invoice rendering and delivery")
console = Console()


def _vault():
    from folio_engine.common.config import get_settings
    from folio_engine.vault.cipher import CredentialVault

    try:
        vault = CredentialVault.from_settings(get_settings())
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    if not vault.configured:
        console.print("[bold red]Error:[/bold red] FOLIO_SECRET_ENC_KEY is not set")
        raise typer.Exit(1)
    return vault


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the Folio-Engine API server."""
    import uvicorn
    from folio_engine.app import create_app

    console.print(f"[bold green]Starting Folio-Engine on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command("gen-key")
def gen_key():
    """Print a fresh base64 encryption key for FOLIO_SECRET_ENC_KEY."""
    console.print(base64.b64encode(os.urandom(32)).decode("ascii"))


@app.command()
def seal(
    secret: str = typer.Argument(..., help="Plaintext to seal"),
):
    """Seal a secret with the configured encryption key."""
    console.print(_vault().seal_text(secret))


@app.command("open")
def open_envelope(
    envelope: str = typer.Argument(..., help="Base64 envelope to open"),
):
    """Open a sealed envelope with the configured encryption key."""
    from folio_engine.common.exceptions import DecryptionError

    try:
        console.print(_vault().open_text(envelope))
    except DecryptionError as e:
        console.print(f"[bold red]{e.code}[/bold red] — {e.message}")
        raise typer.Exit(1)


@app.command("render-sample")
def render_sample(
    output: Path = typer.Option(Path("sample-invoice.pdf"), help="Where to write the PDF"),
    items: int = typer.Option(3, min=1, help="Number of line items"),
):
    """Render a sample invoice locally with the layout renderer."""
    from folio_engine.documents.schemas import ClientInfo, DocumentRequest, DocumentType, LineItem
    from folio_engine.rendering.pdf import LayoutRenderer
    from folio_engine.tenants.record import TenantRecord

    tenant = TenantRecord(
        id="sample",
        slug="acme-co",
        business_name="Acme Co Ltd",
        business_address="Rua Exemplo 1\n1000-001 Lisboa",
        business_email="billing@acme.example",
        tax_id="PT123456789",
        brand_color="#3b6b5c",
    )
    lines = [
        LineItem(description=f"Service {n}", qty=1, unit_price=100, tax_rate=23, line_total=100)
        for n in range(1, items + 1)
    ]
    subtotal = 100.0 * items
    request = DocumentRequest(
        document_type=DocumentType.INVOICE,
        number="INV-2024-007",
        issue_date="2024-09-01",
        due_date="2024-09-15",
        currency="EUR",
        subtotal=subtotal,
        tax_total=subtotal * 0.23,
        total=subtotal * 1.23,
        notes="Payment by bank transfer within 14 days.",
        client=ClientInfo(name="Rosa Maria", email="rosa@example.com", address="Rua Exemplo 123, Lisboa"),
        items=lines,
    )
    result = LayoutRenderer().render(tenant, request)
    output.write_bytes(result.data)
    console.print(f"[bold green]Wrote[/bold green] {output} ({len(result.data)} bytes)")


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check Folio-Engine server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
