import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from hoist.backends.firebase import FirebaseHostingClient
from hoist.cancel import CancelToken
from hoist.catalog import FileCatalog
from hoist.config import Config
from hoist.constants import DEFAULT_UPLOAD_WORKERS
from hoist.deployer import Deployer
from hoist.errors import DeployError

logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """
    Custom formatter with colors for different log levels
    """

    COLORS = {
        logging.DEBUG: "\033[90m",  # Grey
        logging.INFO: "\033[37m",  # White
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[31m",  # Red
    }
    RESET = "\033[0m"

    ABBREVIATIONS = {
        "DEBUG": "DBG",
        "INFO": "INF",
        "WARNING": "WRN",
        "ERROR": "ERR",
        "CRITICAL": "CRT",
    }

    def format(self, record):
        color = self.COLORS.get(record.levelno, self.RESET)
        levelname_abbr = self.ABBREVIATIONS.get(record.levelname, record.levelname[:3])
        record.levelname = f"{color}{levelname_abbr:>3}{self.RESET}"
        record.msg = f"{color}{record.msg}{self.RESET}"
        return super().format(record)


def fail(error: DeployError):
    """
    Prints the single diagnostic line for a failed run and exits non-zero.
    """
    click.echo(f"error: {error}", err=True)
    sys.exit(1)


def interrupted(cancel: CancelToken):
    cancel.cancel()
    click.echo("error: cancelled: interrupted", err=True)
    sys.exit(130)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False
    ),
    default="WARNING",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default="firebase.json",
)
@click.option("--site", help="Hosting site ID, overriding the config file")
@click.pass_context
def main(ctx, log_level: str, config_path: Path, site: str | None):
    # Configure logging with custom colored formatter
    handler = logging.StreamHandler()
    handler.setFormatter(
        ColoredFormatter("%(asctime)s | %(levelname)s | %(message)s", datefmt="%H:%M")
    )
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        handlers=[handler],
    )
    # Config is loaded lazily so errors come out as a single line
    ctx.obj = {"config_path": config_path, "site": site}


site_option = click.option("--site", help="Hosting site ID for this command")


def load_config(options: dict, site: str | None = None) -> Config:
    try:
        return Config(options["config_path"], site=site or options["site"])
    except DeployError as e:
        fail(e)


@main.command()
@click.option(
    "-w",
    "--workers",
    type=click.IntRange(min=1),
    default=DEFAULT_UPLOAD_WORKERS,
    help="Maximum concurrent uploads",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Abort the whole run after this many seconds",
)
@site_option
@click.pass_obj
def deploy(options: dict, workers: int, timeout: float | None, site: str | None):
    """
    Upload the public directory and release it
    """
    config = load_config(options, site)
    cancel = CancelToken(timeout=timeout)
    try:
        # Build the catalog first so local failures never touch the service
        catalog = FileCatalog.build(config.public_path, config.ignore_rules, cancel)
        deployer = Deployer(
            FirebaseHostingClient.from_default_credentials(),
            config.site,
            serving_config=config.serving_config(),
            max_workers=workers,
            cancel=cancel,
        )
        result = deployer.run(catalog)
    except DeployError as e:
        fail(e)
    except KeyboardInterrupt:
        interrupted(cancel)
    logger.info(
        f"Released {result.version_name}: {result.file_count} files, "
        f"{result.uploaded_count} uploaded"
    )


@main.command()
@click.argument("version_name")
@site_option
@click.pass_obj
def release(options: dict, version_name: str, site: str | None):
    """
    Release an already-finalized version (retry after a failed release)
    """
    config = load_config(options, site)
    cancel = CancelToken()
    try:
        deployer = Deployer(
            FirebaseHostingClient.from_default_credentials(),
            config.site,
            cancel=cancel,
        )
        deployer.resume_finalized(version_name)
        deployer.release()
    except DeployError as e:
        fail(e)
    except KeyboardInterrupt:
        interrupted(cancel)


@main.command()
@click.pass_obj
def manifest(options: dict):
    """
    List the files that would be deployed, without contacting the service
    """
    config = load_config(options)
    try:
        catalog = FileCatalog.build(config.public_path, config.ignore_rules)
    except DeployError as e:
        fail(e)

    console = Console()
    table = Table()

    table.add_column("Path", style="cyan")
    table.add_column("Content Hash", style="green")
    table.add_column("Size", justify="right", style="magenta")

    for entry in sorted(catalog.entries, key=lambda e: e.path):
        table.add_row(
            entry.path,
            entry.content_hash[:12] + "...",
            _format_size(len(entry.compressed)),
        )

    console.print(table)
    console.print(
        f"{len(catalog)} files, {len(catalog.content)} distinct contents, "
        f"{_format_size(catalog.total_size)} compressed"
    )


def _format_size(size: float) -> str:
    """
    Format size in human-readable units
    """
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


if __name__ == "__main__":
    main()
