"""CLI main entry point."""

import click

from . import __version__
from .commands import start, wakeup
from .config import load_config
from .shared.logging import configure_logging, level_for_verbosity
from .upgrade import LatestVersionLookup, VersionConfig


@click.group()
@click.option("-c", "--config", type=click.Path(dir_okay=False), help="Config file path")
@click.option("-v", "--verbose", count=True, help="Increase verbosity")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Write JSON logs to this file")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: int, log_file: str | None) -> None:
    """Install and manage loft on a kubernetes cluster."""
    ctx.ensure_object(dict)
    configure_logging(
        level_for_verbosity(verbose),
        log_file=log_file,
        json_output=bool(log_file),
    )
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj.setdefault("cli_config", load_config(config))
    ctx.obj.setdefault("version_config", VersionConfig(__version__))
    ctx.obj.setdefault("version_lookup", LatestVersionLookup())


@cli.command()
def version() -> None:
    """Show the loftctl version."""
    click.echo(f"loft version {__version__}")


cli.add_command(start)
cli.add_command(wakeup)


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
