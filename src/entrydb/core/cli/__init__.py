"""entrydb CLI — inspect and edit store files from the shell."""

import click

from entrydb import __version__


@click.group()
@click.version_option(version=__version__, package_name="entrydb")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR).")
@click.option("--config", "config_file", default=None, type=click.Path(dir_okay=False), help="YAML or JSON config file.")
@click.pass_context
def main(ctx: click.Context, log_level: str | None, config_file: str | None) -> None:
    """entrydb — file-backed entry stores."""
    from entrydb.core.config import Config
    from entrydb.core.utils.logging import setup_logging

    config = Config(config_file=config_file)
    setup_logging(level=log_level or config.get("logging.level", "WARNING"), log_file=config.get("logging.file") or None)
    ctx.obj = config


from .entries_cmd import add, count, delete, get, init, list_entries

main.add_command(init)
main.add_command(list_entries)
main.add_command(get)
main.add_command(add)
main.add_command(delete)
main.add_command(count)
