#  pctrl - CLI Helpers
#
#  Shared console, container and the run() wrapper every command uses:
#  open the store, run one coroutine, close, and turn domain errors into
#  a red message plus exit code 1.
#
#  Depends on: container.py, config.py, exceptions.py
#  Used by:    cli/main.py, cli/commands/*

import asyncio
import json
import logging
import re
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

import pydantic
import typer
from rich.console import Console

from pctrl import config
from pctrl.container import Container
from pctrl.exceptions import NotFoundError, PctrlError
from pctrl.store.store import Store

logger = logging.getLogger("pctrl.cli")

console = Console()
err_console = Console(stderr=True)
container = Container()

T = TypeVar("T")
E = TypeVar("E", bound=Enum)
M = TypeVar("M", bound=pydantic.BaseModel)


def slugify(name: str) -> str:
    """Derive an entity id from a display name: "Prod Box #1" -> "prod-box-1"."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "item"


def fail(message: str) -> typer.Exit:
    err_console.print(f"[bold red]Error:[/bold red] {message}")
    return typer.Exit(1)


def run(fn: Callable[[Store], Awaitable[T]]) -> T:
    """Run ``fn(store)`` against a freshly opened store."""

    async def _main() -> T:
        store = container.store()
        await store.init(config.DB_PATH, config.PASSPHRASE or None)
        try:
            return await fn(store)
        finally:
            await store.close()

    try:
        return asyncio.run(_main())
    except (PctrlError, config.ConfigError) as e:
        logger.debug(
            "Command failed", exc_info=True,
            extra={"entity": getattr(e, "entity", None), "key": getattr(e, "key", None)},
        )
        raise fail(str(e)) from e
    except pydantic.ValidationError as e:
        raise fail(f"Invalid input: {_format_errors(e)}") from e
    finally:
        container.reset_singletons()


def _format_errors(e: pydantic.ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}" for err in e.errors()
    )


async def resolve(
    entity: str,
    by_id: Callable[[str], Awaitable[T | None]],
    by_name: Callable[[str], Awaitable[T | None]],
    ref: str,
) -> T:
    """Look a record up by id, then by name; NotFoundError if neither hits."""
    found = await by_id(ref)
    if found is None:
        found = await by_name(ref)
    if found is None:
        raise NotFoundError(entity, ref)
    return found


def print_json(records: list[pydantic.BaseModel] | pydantic.BaseModel) -> None:
    if isinstance(records, list):
        payload: Any = [r.model_dump(mode="json") for r in records]
    else:
        payload = records.model_dump(mode="json")
    typer.echo(json.dumps(payload, indent=2))


def print_fields(title: str, fields: dict[str, Any]) -> None:
    console.print(f"[bold]{title}[/bold]")
    for label, value in fields.items():
        if value is None or value == "" or value == []:
            continue
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        console.print(f"  [cyan]{label}:[/cyan] {value}")


def split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_enum(enum_cls: type[E], value: str, option: str) -> E:
    """Parse a CLI value into an enum, accepting the enum's aliases."""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise typer.BadParameter(f"'{value}' is not one of: {allowed}", param_hint=option)


def build(model_cls: type[M], **fields: Any) -> M:
    """Construct a record from CLI input, reporting validation errors cleanly."""
    try:
        return model_cls(**fields)
    except pydantic.ValidationError as e:
        raise fail(f"Invalid input: {_format_errors(e)}") from e
