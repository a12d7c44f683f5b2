"""pipestore CLI — pipe-delimited record file on the command line.

Commands:
    pipestore init                 create pipestore.toml
    pipestore append FIELD...      append a record (fields joined with the delimiter)
    pipestore show                 dump every record
    pipestore last                 print the last record
    pipestore find VALUE           first record with a field equal to VALUE
    pipestore update OLD NEW       replace OLD with NEW in every record containing it
    pipestore delete VALUE         drop every record containing VALUE
    pipestore count                number of records
    pipestore clear                remove every record
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from pipestore.config import StoreConfig, init_config, load_config
from pipestore.models import join_record
from pipestore.store import RecordStore

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg(file: str | None = None, root: Path | None = None) -> StoreConfig:
    try:
        cfg = load_config(root)
    except (OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    if file:
        cfg.path = Path(file)
    return cfg


def _store(ctx: click.Context) -> RecordStore:
    return RecordStore.from_config(ctx.obj)


def _check(ok: bool, action: str, store: RecordStore) -> None:
    if not ok:
        raise click.ClickException(f"{action} failed for {store.path} (see log)")


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="pipestore")
@click.option("--file", "file", default=None, help="Record file (overrides pipestore.toml)")
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level")
@click.pass_context
def cli(ctx: click.Context, file: str | None, verbose: bool) -> None:
    """pipestore — flat-file record store."""
    if ctx.invoked_subcommand == "init":
        return
    cfg = _load_cfg(file)
    logging.basicConfig(
        level=logging.DEBUG if verbose else cfg.log.level_no,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    ctx.obj = cfg


# ---------------------------------------------------------------------------
# pipestore init
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--dir", "root", default=".", show_default=True, help="Project root")
@click.option("--path", "store_path", default=None, help="Record file path, relative to root")
def init(root: str, store_path: str | None) -> None:
    """Create pipestore.toml in the current project."""
    root_path = Path(root).resolve()
    try:
        config_path = init_config(root_path, path=store_path)
        click.echo(f"Created {config_path}")
    except FileExistsError:
        click.echo("pipestore.toml already exists — skipping init")

    cfg = _load_cfg(root=root_path)
    click.echo(f"Store : {cfg.path}")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--raw", is_flag=True, help="Print lines exactly as stored")
@click.pass_context
def show(ctx: click.Context, raw: bool) -> None:
    """Dump every record in file order."""
    store = _store(ctx)
    for record in store.records():
        click.echo(record.line if raw else " | ".join(record.fields))


@cli.command()
@click.pass_context
def last(ctx: click.Context) -> None:
    """Print the last record."""
    line = _store(ctx).read_last_line()
    if line is None:
        click.echo("(empty)", err=True)
        raise SystemExit(1)
    click.echo(line)


@cli.command()
@click.argument("value")
@click.pass_context
def find(ctx: click.Context, value: str) -> None:
    """Print the first record with a field exactly equal to VALUE."""
    line = _store(ctx).find_by_value(value)
    if line is None:
        click.echo(f"not found: {value}", err=True)
        raise SystemExit(1)
    click.echo(line)


@cli.command()
@click.pass_context
def count(ctx: click.Context) -> None:
    """Print the number of records."""
    click.echo(_store(ctx).count_elements())


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("fields", nargs=-1, required=True)
@click.pass_context
def append(ctx: click.Context, fields: tuple[str, ...]) -> None:
    """Append a record. Several FIELDS are joined with the delimiter."""
    store = _store(ctx)
    line = join_record(list(fields), store.delimiter)
    _check(store.append(line), "append", store)
    click.echo(line)


@cli.command()
@click.argument("old")
@click.argument("new")
@click.pass_context
def update(ctx: click.Context, old: str, new: str) -> None:
    """Replace OLD with NEW in every record that contains it."""
    store = _store(ctx)
    _check(store.update(old, new), "update", store)
    click.echo(f"Updated {old!r} -> {new!r}")


@cli.command()
@click.argument("value")
@click.pass_context
def delete(ctx: click.Context, value: str) -> None:
    """Delete every record containing VALUE."""
    store = _store(ctx)
    before = store.count_elements()
    _check(store.delete(value), "delete", store)
    click.echo(f"Deleted {before - store.count_elements()} record(s)")


@cli.command()
@click.confirmation_option(prompt="Remove every record?")
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Remove every record from the store."""
    store = _store(ctx)
    _check(store.clear(), "clear", store)
    click.echo(f"Cleared {store.path}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
