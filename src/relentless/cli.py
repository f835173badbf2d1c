"""CLI interface for relentless"""

import itertools
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
from pydantic import ValidationError

from relentless.application.retry_driver import RetryDriver
from relentless.domain.config.retry import RetryConfig
from relentless.domain.models.budget import Bounded
from relentless.errors import AttemptsExhausted
from relentless.infrastructure.command_runner import CommandFailed, run_command_with_retries
from relentless.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from relentless.infrastructure.http_client import fetch_with_retries

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    for logger_name in logging.Logger.manager.loggerDict:
        logging.getLogger(logger_name).setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def retry_options(func):
    """Attach the retry policy options shared by all commands"""
    options = [
        click.option(
            "--attempts",
            "-n",
            type=click.IntRange(min=1),
            help="Maximum number of attempts. Overrides config.",
        ),
        click.option("--forever", is_flag=True, help="Retry until success. Overrides config."),
        click.option(
            "--base-delay",
            type=click.FloatRange(min=0),
            help="Delay in seconds after the first failure. Overrides config.",
        ),
        click.option(
            "--growth-factor",
            type=click.FloatRange(min=1),
            help="Delay multiplier applied after each failure. Overrides config.",
        ),
        click.option(
            "--max-delay",
            type=click.FloatRange(min=0, min_open=True),
            help="Upper bound for a single delay in seconds (uncapped by default).",
        ),
        click.option(
            "--start-index",
            type=click.IntRange(min=0),
            help="Attempt index passed to the first attempt. Overrides config.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load_config_manager(ctx: click.Context) -> ConfigManager:
    """Load configuration, turning validation errors into CLI errors"""
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=ctx.obj.get("verbose", False), exc=e)


def _resolve_retry_config(config_manager: ConfigManager, retry_opts: Dict[str, Any]) -> RetryConfig:
    """Merge CLI retry options over the configured retry policy

    Args:
        config_manager: Configuration manager
        retry_opts: Values of the options added by retry_options

    Returns:
        Validated RetryConfig
    """
    forever = retry_opts.pop("forever", False)
    attempts = retry_opts.pop("attempts", None)
    if forever and attempts is not None:
        raise click.UsageError("--attempts and --forever are mutually exclusive")

    overrides = {key: value for key, value in retry_opts.items() if value is not None}
    if attempts is not None:
        overrides["max_attempts"] = attempts
    if forever:
        overrides["max_attempts"] = None

    merged = {**config_manager.get_retry_config().model_dump(), **overrides}
    return RetryConfig(**merged)


def _create_driver(ctx: click.Context, retry_opts: Dict[str, Any]) -> RetryDriver:
    """Create retry driver from config and CLI options"""
    verbose = ctx.obj.get("verbose", False)
    config_manager = ctx.obj.get("config_manager") or _load_config_manager(ctx)
    ctx.obj["config_manager"] = config_manager
    try:
        retry_config = _resolve_retry_config(config_manager, retry_opts)
        driver = RetryDriver.from_config(retry_config)
    except (ValidationError, ValueError) as e:
        _die(f"Invalid retry options: {e}", verbose=verbose, exc=e)
    logger.debug(f"Using {driver!r}")
    return driver


def _exit_status(returncode: int) -> int:
    """Map a child return code to a shell exit status (signal N -> 128 + N)"""
    if returncode < 0:
        return 128 - returncode
    return returncode


def _parse_headers(headers: Tuple[str, ...]) -> Dict[str, str]:
    """Parse 'Name: value' header options"""
    parsed = {}
    for header in headers:
        name, sep, value = header.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected 'Name: value', got {header!r}", param_hint="--header")
        parsed[name.strip()] = value.strip()
    return parsed


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .relentless.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """relentless - retry flaky operations with exponential backoff"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@retry_options
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def run(ctx, command: Tuple[str, ...], **retry_opts):
    """Run a command until it exits with status 0.

    COMMAND: Program and arguments. The attempt index is exported as
    RELENTLESS_ATTEMPT. Exits with the command's last status when all
    attempts fail.
    """
    verbose = ctx.obj.get("verbose", False)
    driver = _create_driver(ctx, retry_opts)
    logger.info(f"Running {' '.join(command)} ({driver.budget})")

    exit_code = 0
    try:
        run_command_with_retries(command, driver)
    except AttemptsExhausted as e:
        click.echo(f"ERROR: {e}", err=True)
        cause = e.last_error
        exit_code = _exit_status(cause.returncode) if isinstance(cause, CommandFailed) else 1
    except click.ClickException:
        raise
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)

    if exit_code:
        ctx.exit(exit_code)


@cli.command()
@retry_options
@click.argument("url", type=str)
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), help="Request timeout in seconds. Overrides config.")
@click.option("--header", "-H", "headers", multiple=True, help="Extra request header as 'Name: value'")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the response body to a file instead of stdout",
)
@click.pass_context
def fetch(ctx, url: str, timeout: Optional[float], headers: Tuple[str, ...], output: Optional[Path], **retry_opts):
    """Fetch a URL, retrying failures and non-2xx responses.

    URL: Address to GET
    """
    verbose = ctx.obj.get("verbose", False)
    driver = _create_driver(ctx, retry_opts)
    http_config = ctx.obj["config_manager"].get_http_config()
    request_headers = {**http_config.headers, **_parse_headers(headers)}

    try:
        resp = fetch_with_retries(
            url,
            driver,
            timeout=timeout or http_config.timeout,
            headers=request_headers,
        )
    except AttemptsExhausted as e:
        _die(str(e), verbose=verbose, exc=e)
    except click.ClickException:
        raise
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)

    logger.info(f"GET {url} -> {resp.status_code}")
    if output is not None:
        output.write_bytes(resp.content)
        click.echo(f"Saved {len(resp.content)} bytes to {output}")
    else:
        click.echo(resp.text)


@cli.command()
@retry_options
@click.option("--count", "-c", type=click.IntRange(min=1), default=5, show_default=True, help="Delays to show for unbounded policies")
@click.pass_context
def schedule(ctx, count: int, **retry_opts):
    """Show the delays the retry policy would sleep."""
    driver = _create_driver(ctx, retry_opts)

    if isinstance(driver.budget, Bounded):
        count = driver.budget.attempts - 1
    if count == 0:
        click.echo("Single attempt: no retries")
        return

    click.echo(f"Budget: {driver.budget}")
    for offset, delay in enumerate(itertools.islice(driver.schedule, count)):
        click.echo(f"after attempt {driver.start_index + offset}: {delay:g}s")


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
