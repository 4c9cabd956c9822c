"""Authentication commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from gf_cli.commands.common import get_state, print_json_payload
from gf_cli.core.auth import AuthError, GoogleFitAuth
from gf_cli.core.config import resolve_client_secret, save_config
from gf_cli.core.state import CLIState

app = typer.Typer(help="Authenticate with Google Fit")


@app.command("login")
def login_command(
    ctx: typer.Context,
    client_secret: Optional[Path] = typer.Option(
        None,
        help="OAuth client JSON downloaded from the Google Cloud console",
        envvar="GF_CLIENT_SECRET",
    ),
    code: Optional[str] = typer.Option(None, help="Authorization code (skips the prompt)"),
    force: bool = typer.Option(False, "--force", help="Re-authorize even if a token is cached"),
) -> None:
    """Authorize access to Google Fit and cache the OAuth token."""
    state = get_state(ctx)
    auth = GoogleFitAuth(
        config=state.config,
        client_secret_file=resolve_client_secret(state.config, explicit=client_secret),
    )

    try:
        if not force and code is None:
            try:
                auth.access_token()
            except AuthError:
                pass
            else:
                _report_login(state, auth, reused=True)
                return

        if code is None:
            url = auth.authorization_url()
            typer.echo("Open this URL in a browser and approve access:", err=True)
            typer.echo(url, err=True)
            code = typer.prompt("Authorization code")
        auth.exchange_code(code)
    except AuthError as exc:
        if state.json_output:
            print_json_payload(state, {"status": "error", "message": str(exc)})
        elif state.plain_output:
            typer.echo("status\terror")
            typer.echo(f"message\t{exc}")
        else:
            state.console.print(f"Login failed: {exc}")
        raise typer.Exit(code=1)

    if client_secret is not None:
        state.config.setdefault("auth", {})["client_secret"] = str(auth.client_secret_file)
        save_config(state.config, state.config_path)
    _report_login(state, auth, reused=False)


def _report_login(state: CLIState, auth: GoogleFitAuth, reused: bool) -> None:
    payload = {
        "status": "success",
        "authenticated": True,
        "reused_token": reused,
        "token_store": str(auth.token_file),
    }
    if state.json_output:
        print_json_payload(state, payload)
        return

    if state.plain_output:
        typer.echo("status\tsuccess")
        typer.echo(f"reused_token\t{str(reused).lower()}")
        typer.echo(f"token_store\t{auth.token_file}")
        return

    state.console.print("Already logged in" if reused else "Login successful")
    state.console.print(f"Token cached at: {auth.token_file}")


@app.command("logout")
def logout_command(ctx: typer.Context) -> None:
    """Delete the cached OAuth token."""
    state = get_state(ctx)
    auth = GoogleFitAuth(config=state.config)
    removed = auth.logout()

    if state.json_output:
        print_json_payload(
            state,
            {
                "status": "success",
                "logged_out": bool(removed),
                "message": "Local token cache removed" if removed else "No cached token file",
            },
        )
        return

    if state.plain_output:
        typer.echo("status\tsuccess")
        typer.echo(f"logged_out\t{str(bool(removed)).lower()}")
        typer.echo(
            "message\tLocal token cache removed"
            if removed
            else "message\tNo local token cache file"
        )
        return

    if removed:
        state.console.print("Local token cache removed")
    else:
        state.console.print("No local token cache found")
