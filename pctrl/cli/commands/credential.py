#  pctrl - Credential Commands
#
#  Secret values are masked on output unless --reveal is given.
#
#  Depends on: cli/_common.py, store/store.py, models/credentials.py
#  Used by:    cli/main.py

import typer
from rich.table import Table

from pctrl.cli._common import build, console, fail, parse_enum, print_fields, resolve, run, slugify
from pctrl.exceptions import NotFoundError
from pctrl.models.credentials import (
    ApiTokenData,
    BasicAuthData,
    Credential,
    OAuthData,
    SshAgentData,
    SshKeyData,
)
from pctrl.models.enums import CredentialType

app = typer.Typer(no_args_is_help=True)

_MASK = "********"
_SECRET_FIELDS = {"passphrase", "token", "password", "access_token", "refresh_token"}

# Fields each credential type needs from the command line
_REQUIRED = {
    CredentialType.SSH_KEY: ("username", "key_path"),
    CredentialType.SSH_AGENT: ("username",),
    CredentialType.API_TOKEN: ("token",),
    CredentialType.BASIC_AUTH: ("username", "password"),
    CredentialType.OAUTH: ("access_token",),
}


@app.command("list")
def list_credentials():
    """List credentials (names and types only; nothing is decrypted)."""
    summaries = run(lambda store: store.list_credential_summaries())
    if not summaries:
        console.print("No credentials yet. Add one with [cyan]pctrl credential add NAME --type TYPE[/cyan].")
        return

    table = Table(title="Credentials")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Type", style="green")
    table.add_column("Notes")
    for c in summaries:
        table.add_row(c.id, c.name, c.credential_type.value, c.notes or "")
    console.print(table)


@app.command("add")
def add_credential(
    name: str = typer.Argument(..., help="Credential name"),
    credential_type: str = typer.Option(..., "--type", "-t", help="ssh_key, ssh_agent, api_token, basic_auth or oauth"),
    credential_id: str | None = typer.Option(None, "--id", help="Credential id (default: slug of name)"),
    username: str | None = typer.Option(None, "--username", "-u"),
    port: int = typer.Option(22, "--port", help="SSH port"),
    key_path: str | None = typer.Option(None, "--key-path", help="Private key file (ssh_key)"),
    passphrase: str | None = typer.Option(None, "--key-passphrase", help="Private key passphrase"),
    token: str | None = typer.Option(None, "--token"),
    password: str | None = typer.Option(None, "--password"),
    access_token: str | None = typer.Option(None, "--access-token"),
    refresh_token: str | None = typer.Option(None, "--refresh-token"),
    expires_at: str | None = typer.Option(None, "--expires-at"),
    url: str | None = typer.Option(None, "--url"),
    notes: str | None = typer.Option(None, "--notes"),
):
    """Add a credential. Secrets are encrypted when PCTRL_PASSPHRASE is set."""
    kind = parse_enum(CredentialType, credential_type, "--type")
    given = {
        "username": username,
        "key_path": key_path,
        "token": token,
        "password": password,
        "access_token": access_token,
    }
    missing = [f"--{f.replace('_', '-')}" for f in _REQUIRED[kind] if not given[f]]
    if missing:
        raise fail(f"{kind.value} credential requires {', '.join(missing)}")

    if kind == CredentialType.SSH_KEY:
        data = build(SshKeyData, username=username, port=port, key_path=key_path, passphrase=passphrase)
    elif kind == CredentialType.SSH_AGENT:
        data = build(SshAgentData, username=username, port=port)
    elif kind == CredentialType.API_TOKEN:
        data = build(ApiTokenData, token=token, url=url)
    elif kind == CredentialType.BASIC_AUTH:
        data = build(BasicAuthData, username=username, password=password, url=url)
    else:
        data = build(
            OAuthData,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
            url=url,
        )

    credential = build(Credential, id=credential_id or slugify(name), name=name, data=data, notes=notes)
    run(lambda store: store.add_credential(credential))
    console.print(
        f"[bold green]✓[/bold green] Credential [magenta]{credential.name}[/magenta] added ({credential.id})"
    )


@app.command("show")
def show_credential(
    ref: str = typer.Argument(..., help="Credential id or name"),
    reveal: bool = typer.Option(False, "--reveal", help="Print secret values"),
):
    """Show a credential (decrypts it)."""
    credential = run(
        lambda store: resolve("credential", store.get_credential, store.get_credential_by_name, ref)
    )
    fields = {"Type": credential.credential_type.value}
    for key, value in credential.data.model_dump(exclude={"type"}).items():
        if value is not None and key in _SECRET_FIELDS and not reveal:
            value = _MASK
        fields[key.replace("_", " ").capitalize()] = value
    fields["Notes"] = credential.notes
    print_fields(f"Credential: {credential.name} ({credential.id})", fields)


@app.command("remove")
def remove_credential(ref: str = typer.Argument(..., help="Credential id or name")):
    """Remove a credential."""

    async def _remove(store):
        if await store.remove_credential(ref) or await store.remove_credential_by_name(ref):
            return
        raise NotFoundError("credential", ref)

    run(_remove)
    console.print(f"[bold green]✓[/bold green] Credential [magenta]{ref}[/magenta] removed")
