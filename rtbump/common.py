"""
Common utility functions for rtbump: logging, console output and commands.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from rtbump.errors import CommandError, RtBumpError
from rtbump.models import BumpStatus, RunSummary


# Rich consoles for output
console = Console()
err_console = Console(stderr=True)


def setup_logging(
    name: str = "rtbump",
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Set up logging with Rich handler."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


# Default logger
logger = setup_logging()


def print_error(error: RtBumpError) -> None:
    """Print a fatal error, naming the step it happened in."""
    where = f" in {error.step}" if error.step else ""
    line = escape(f"[ERROR{where}]: {error.message}")
    err_console.print(f"[bold red]{line}[/bold red]", highlight=False)
    if isinstance(error, CommandError) and error.stderr.strip():
        err_console.print(error.stderr.rstrip(), markup=False, highlight=False)


def run_command(
    cmd: List[str],
    cwd: Optional[Path] = None,
    timeout: Optional[int] = None,
    capture_output: bool = True,
) -> Tuple[int, str, str]:
    """
    Run an external command.

    Args:
        cmd: Command and arguments as list
        cwd: Working directory
        timeout: Command timeout in seconds
        capture_output: Capture stdout and stderr; when False the output
            goes straight to the terminal

    Returns:
        Tuple of (return_code, stdout, stderr)
    """
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            timeout=timeout,
            capture_output=capture_output,
            text=True,
        )
        return result.returncode, result.stdout or "", result.stderr or ""
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout}s: {' '.join(cmd)}")
        return -1, "", f"Command timed out after {timeout}s"
    except OSError as e:
        return -1, "", str(e)


def run_checked(
    cmd: List[str],
    cwd: Optional[Path] = None,
    timeout: Optional[int] = None,
    verbose: bool = False,
    step: Optional[str] = None,
) -> str:
    """
    Run a command and raise CommandError unless it succeeds.

    In verbose mode the command output is passed through to the terminal.

    Returns:
        Captured stdout (empty in verbose mode)
    """
    returncode, stdout, stderr = run_command(cmd, cwd=cwd, timeout=timeout, capture_output=not verbose)
    if returncode != 0:
        raise CommandError(cmd, returncode, stderr, step=step)
    return stdout


def which(executable: str) -> Optional[str]:
    """Locate an executable on PATH."""
    return shutil.which(executable)


STATUS_STYLES = {
    BumpStatus.PENDING: "dim",
    BumpStatus.UP_TO_DATE: "cyan",
    BumpStatus.WOULD_BUMP: "yellow",
    BumpStatus.BUMPED: "green",
    BumpStatus.ABORTED: "bold red",
}


def render_summary(summary: RunSummary) -> Table:
    """Build a table of per-line results."""
    title = f"rt-sources bump on branch {summary.branch}"
    if summary.dry_run:
        title += " (dry run)"
    table = Table(title=title)
    table.add_column("Kernel", style="bold")
    table.add_column("Latest tag")
    table.add_column("Ebuild")
    table.add_column("Status")

    for result in summary.results:
        style = STATUS_STYLES.get(result.status, "")
        status = f"[{style}]{result.status.value}[/{style}]"
        if result.committed and result.status != BumpStatus.BUMPED:
            status += " (committed)"
        if result.error_message:
            status += f"\n{escape(result.error_message)}"
        table.add_row(
            result.kernel_version,
            result.latest_tag or "-",
            result.ebuild or "-",
            status,
        )
    return table


def print_summary(summary: RunSummary) -> None:
    console.print(render_summary(summary))
