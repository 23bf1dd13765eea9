"""Invoke tasks for Opsboard application management."""

import sys

from invoke import task
from invoke.context import Context


@task
def start(ctx: Context, host: str = "0.0.0.0", port: int = 8000, reload: bool = False) -> None:
    """Start the Opsboard FastAPI server.

    Args:
        ctx: Invoke context
        host: Host to bind to (default: 0.0.0.0)
        port: Port to bind to (default: 8000)
        reload: Enable auto-reload for development
    """
    cmd = f"uv run uvicorn opsboard.main:app --host {host} --port {port}"
    if reload:
        cmd += " --reload"

    try:
        ctx.run(cmd, pty=True)
    except KeyboardInterrupt:
        print("\nServer stopped")
        sys.exit(0)


@task
def test(ctx: Context, verbose: bool = False, coverage: bool = False) -> None:
    """Run the test suite.

    Args:
        ctx: Invoke context
        verbose: Enable verbose output
        coverage: Run with coverage report
    """
    cmd = "uv run pytest"
    if verbose:
        cmd += " -v"
    if coverage:
        cmd += " --cov=opsboard --cov-report=term-missing"
    ctx.run(cmd, pty=True)


@task
def seed(ctx: Context, dry_run: bool = False) -> None:
    """Seed incident types, criticalities, environments and segments.

    Args:
        ctx: Invoke context
        dry_run: Show what would be seeded without writing
    """
    cmd = "uv run opsboard-seed"
    if dry_run:
        cmd += " --dry-run"
    ctx.run(cmd, pty=True)


@task(name="import")
def import_file(ctx: Context, path: str, created_by: str = "", validate_only: bool = False) -> None:
    """Import incidents from a CSV/XLSX/XLS file.

    Args:
        ctx: Invoke context
        path: Spreadsheet to import
        created_by: Operator name stamped on the incidents
        validate_only: Only report valid and invalid rows
    """
    if validate_only:
        ctx.run(f"uv run opsboard-import validate '{path}'", pty=True)
        return

    cmd = f"uv run opsboard-import run '{path}'"
    if created_by:
        cmd += f" --created-by '{created_by}'"
    ctx.run(cmd, pty=True)


@task
def template(ctx: Context, output: str = "incident_import_template.xlsx", format: str = "xlsx") -> None:
    """Write the example import file.

    Args:
        ctx: Invoke context
        output: Output path
        format: csv or xlsx
    """
    ctx.run(f"uv run opsboard-import template '{output}' --format {format}")


@task
def clean(ctx: Context) -> None:
    """Clean up temporary files."""
    # Clean Python cache
    for pattern in ["__pycache__", "*.pyc", "*.pyo", ".pytest_cache"]:
        ctx.run(f"find . -name '{pattern}' -exec rm -rf {{}} + 2>/dev/null || true", warn=True)

    # Clean build artifacts
    for path in ["build", "dist", "*.egg-info", ".eggs"]:
        ctx.run(f"rm -rf {path} 2>/dev/null || true", warn=True)

    print("Cleanup complete")
