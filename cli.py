#!/usr/bin/env python3
"""
QuickNote Operations CLI.

Entry point for running and maintaining the backend.
Use --service to select what to run, --action to control the server.

Usage:
    python cli.py --help
    python cli.py --service server --verbose
    python cli.py --service server --action stop
    python cli.py --service purge
    python cli.py --service scheduler
    python cli.py --service health
    python cli.py --service config
    python cli.py --service test --test-type unit

The note client itself is the `quicknote` command (quicknote/cli/app.py).
"""

import asyncio
import os
import signal
import subprocess
import sys
from pathlib import Path

import click
import structlog

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from quicknote.backend.core.logging import get_logger, setup_logging


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


def _fail(logger, message: str, **context) -> None:
    logger.error(message, extra=context)
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _find_process_on_port(port: int) -> list[int]:
    """Find PIDs listening on a port."""
    result = subprocess.run(
        ["lsof", "-ti", f":{port}"],
        capture_output=True, text=True,
    )
    return [int(p) for p in result.stdout.split() if p.strip()]


def _server_port(port: int | None) -> int:
    if port is not None:
        return port
    from quicknote.backend.core.config import get_app_config
    return get_app_config().application.server.port


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice(["server", "purge", "scheduler", "health", "config", "test", "info"]),
    default="info",
    help="Service or command to run.",
)
@click.option(
    "--action", "-a",
    type=click.Choice(["start", "stop", "restart", "status"]),
    default="start",
    help="Lifecycle action for the server.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output (INFO level logging).")
@click.option("--debug", "-d", is_flag=True, help="Enable debug output (DEBUG level logging).")
@click.option("--host", default=None, help="Server host.")
@click.option("--port", default=None, type=int, help="Server port.")
@click.option("--reload", is_flag=True, help="Enable auto-reload (server only).")
@click.option(
    "--test-type",
    type=click.Choice(["all", "unit", "integration"]),
    default="all",
    help="Test type to run.",
)
@click.option("--coverage", is_flag=True, help="Run tests with coverage.")
def main(
    service: str,
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    test_type: str,
    coverage: bool,
) -> None:
    """
    QuickNote operations CLI.

    \b
    Examples:
        python cli.py --service server --verbose
        python cli.py --service server --action restart --port 8099
        python cli.py --service server --action status
        python cli.py --service purge --verbose
        python cli.py --service scheduler --verbose
        python cli.py --service health
        python cli.py --service config
        python cli.py --service test --test-type unit --coverage
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")
    structlog.contextvars.bind_contextvars(source="cli")
    logger = get_logger(__name__)
    logger.debug("CLI invoked", extra={"service": service, "action": action})

    if service == "server" and action != "start":
        server_port = _server_port(port)
        if action == "status":
            server_status(server_port)
            return
        stop_server(logger, server_port)
        if action == "stop":
            return
        import time
        time.sleep(2)

    if service == "server":
        run_server(logger, host, port, reload)
    elif service == "purge":
        purge_notes(logger)
    elif service == "scheduler":
        run_scheduler(logger)
    elif service == "health":
        check_health(logger)
    elif service == "config":
        show_config(logger)
    elif service == "test":
        run_tests(logger, test_type, coverage)
    elif service == "info":
        show_info(logger)


def stop_server(logger, port: int) -> None:
    """Stop the server listening on a port."""
    pids = _find_process_on_port(port)
    if not pids:
        click.echo(f"No server running on port {port}.")
        return
    for pid in pids:
        os.kill(pid, signal.SIGINT)
        logger.info("Sent SIGINT", extra={"pid": pid, "port": port})
    click.echo(f"Server on port {port} stopped (PID: {', '.join(str(p) for p in pids)}).")


def server_status(port: int) -> None:
    pids = _find_process_on_port(port)
    if pids:
        click.echo(f"Server is running on port {port} (PID: {', '.join(str(p) for p in pids)}).")
    else:
        click.echo(f"Server is not running on port {port}.")


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start the FastAPI server with uvicorn."""
    from quicknote.backend.core.config import get_app_config

    try:
        server_config = get_app_config().application.server
    except Exception as e:
        _fail(logger, "Could not load config/settings/application.yaml.", error=str(e))

    server_host = host or server_config.host
    server_port = port or server_config.port
    logger.info("Starting server", extra={"host": server_host, "port": server_port, "reload": reload})

    cmd = [
        sys.executable, "-m", "uvicorn",
        "quicknote.backend.main:app",
        "--host", server_host,
        "--port", str(server_port),
    ]
    if reload:
        cmd.append("--reload")

    click.echo(f"Starting server at http://{server_host}:{server_port}")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def purge_notes(logger) -> None:
    """Delete expired and exhausted notes once."""
    from quicknote.backend.core.database import Database
    from quicknote.backend.tasks.cleanup import purge_dead_notes

    async def _purge() -> dict:
        database = Database.from_config()
        try:
            await database.create_tables()
            return await purge_dead_notes(database)
        finally:
            await database.dispose()

    try:
        result = asyncio.run(_purge())
    except Exception as e:
        _fail(logger, "Purge failed.", error_type=type(e).__name__)

    click.echo(click.style(f"Deleted {result['deleted']} dead note(s).", fg="green"))


def run_scheduler(logger) -> None:
    """Start the Taskiq scheduler for the cron note sweep."""
    logger.info("Starting task scheduler")

    try:
        from quicknote.backend.tasks.scheduled import scheduled_tasks
        tasks = scheduled_tasks()
    except Exception as e:
        _fail(logger, f"Error loading scheduled tasks: {e}")

    click.echo("Scheduled tasks:")
    for task_name, config in tasks.items():
        click.echo(f"  - {task_name}: {config['schedule'][0]['cron']}")
    click.echo()

    cmd = [
        sys.executable, "-m", "taskiq",
        "scheduler",
        "quicknote.backend.tasks.scheduler:scheduler",
    ]

    click.echo("Starting Taskiq scheduler")
    click.echo("WARNING: Run only ONE scheduler instance to avoid duplicate sweeps")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Scheduler stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Scheduler failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)

def check_health(logger) -> None:
    """Check configuration, application wiring and the note store."""
    click.echo("Checking application health...\n")
    checks: list[tuple[str, bool, str | None]] = []

    try:
        from quicknote.backend.core.config import get_app_config
        app_config = get_app_config()
        checks.append(("YAML configuration", True, f"App: {app_config.application.name}"))
    except Exception as e:
        checks.append(("YAML configuration", False, str(e)))
        logger.error("Configuration failed", extra={"error": str(e)})

    try:
        from quicknote.backend.main import get_app
        app = get_app()
        checks.append(("FastAPI application", True, f"Title: {app.title}"))
    except Exception as e:
        checks.append(("FastAPI application", False, str(e)))
        logger.error("FastAPI app failed", extra={"error": str(e)})

    try:
        from quicknote.crypto import decrypt, encrypt, generate_link_key
        key = generate_link_key()
        ok = decrypt(encrypt("ping", key, password=False), key) == "ping"
        checks.append(("Note encryption", ok, "AES-256-GCM"))
    except Exception as e:
        checks.append(("Note encryption", False, str(e)))
        logger.error("Encryption self-test failed", extra={"error": str(e)})

    try:
        from quicknote.backend.api.health import check_database
        from quicknote.backend.core.database import Database

        async def _check() -> dict:
            database = Database.from_config()
            try:
                return await check_database(database)
            finally:
                await database.dispose()

        result = asyncio.run(_check())
        healthy = result["status"] == "healthy"
        detail = f"latency: {result['latency_ms']}ms" if healthy else result.get("error")
        checks.append(("Note store", healthy, detail))
    except Exception as e:
        checks.append(("Note store", False, str(e)))
        logger.error("Note store check failed", extra={"error": str(e)})

    click.echo("Health Check Results:")
    click.echo("-" * 50)
    for name, passed, detail in checks:
        status = click.style("✓ PASS", fg="green") if passed else click.style("✗ FAIL", fg="red")
        detail_str = f" ({detail})" if detail else ""
        click.echo(f"  {status}  {name}{detail_str}")
    click.echo("-" * 50)

    if all(passed for _, passed, _ in checks):
        click.echo(click.style("\nAll checks passed!", fg="green"))
    else:
        click.echo(click.style("\nSome checks failed. See details above.", fg="yellow"))
        sys.exit(1)


def _echo_section(title: str, values: dict, indent: int = 2) -> None:
    if title:
        click.echo(f"\n{title}:")
        click.echo("-" * 40)
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_section("", value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def show_config(logger) -> None:
    """Display loaded configuration."""
    from quicknote.backend.core.config import get_app_config

    try:
        app_config = get_app_config()
        sections = {
            "Application (application.yaml)": app_config.application,
            "Database (database.yaml)": app_config.database,
            "Logging (logging.yaml)": app_config.logging,
            "Notes (notes.yaml)": app_config.notes,
            "Security (security.yaml)": app_config.security,
        }
    except Exception as e:
        _fail(logger, f"Error loading configuration: {e}")

    click.echo("Application Configuration:")
    for title, schema in sections.items():
        _echo_section(title, schema.model_dump())
    logger.info("Configuration displayed")


def run_tests(logger, test_type: str, coverage: bool) -> None:
    """Run the test suite."""
    logger.info("Running tests", extra={"type": test_type, "coverage": coverage})

    target = {"unit": "tests/unit", "integration": "tests/integration"}.get(test_type, "tests/")
    cmd = [sys.executable, "-m", "pytest", target, "-v"]
    if coverage:
        cmd.extend(["--cov=quicknote", "--cov-report=term-missing"])

    click.echo(f"Running: {' '.join(cmd)}\n")
    result = subprocess.run(cmd)
    sys.exit(result.returncode)


def show_info(logger) -> None:
    """Display application information."""
    from quicknote.backend.core.config import get_app_config

    try:
        application = get_app_config().application
    except Exception as e:
        _fail(logger, "Could not load application.yaml configuration.", error=str(e))

    click.echo(f"{application.name} {application.version}")
    click.echo("=" * 40)
    click.echo(application.description)
    click.echo()
    click.echo("Services (--service):")
    click.echo("  server     FastAPI server (--action start|stop|restart|status)")
    click.echo("  purge      Delete expired and exhausted notes")
    click.echo("  scheduler  Taskiq scheduler for the periodic note sweep")
    click.echo("  health     Check configuration, encryption and note store")
    click.echo("  config     Display configuration")
    click.echo("  test       Run test suite")
    click.echo("  info       Show this information")
    click.echo()
    click.echo("Client:")
    click.echo('  quicknote create "text" [--password] [--expire N --unit minutes|hours|days]')
    click.echo("  quicknote read <link>")

    logger.debug("Info displayed")


if __name__ == "__main__":
    main()
