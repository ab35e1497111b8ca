"""
Command-line interface for rtbump.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from rtbump import __version__
from rtbump.bump import BumpWorkflow
from rtbump.common import console, err_console, print_error, print_summary, setup_logging
from rtbump.config import SUPPORTED_KERNELS, BumpConfig
from rtbump.errors import EXIT_FAILURE, ConfigurationError, RtBumpError
from rtbump.models import CommitTool


class RtBumpCommand(click.Command):
    """Command whose usage errors exit with EXIT_FAILURE."""

    def parse_args(self, ctx, args):
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = EXIT_FAILURE
            raise


def print_usage_and_exit(ctx, param, value):
    """Print help to stderr and exit non-zero."""
    if not value or ctx.resilient_parsing:
        return
    click.echo(ctx.get_help(), err=True)
    ctx.exit(EXIT_FAILURE)


@click.command(cls=RtBumpCommand, context_settings={"help_option_names": []})
@click.option("--branch", "-b", help="The branch created (default: rtbump-<random>)")
@click.option("--dry_run", "--dry-run", "-d", "dry_run", is_flag=True,
              help="Dry run: decide, but do not branch, copy, commit or build")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--kernel", "-k", "kernels", multiple=True, type=click.Choice(SUPPORTED_KERNELS),
              help="Only bump this kernel line (repeatable)")
@click.option("--linux-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Linux repository carrying the rt tags (default: ~/git/linux)")
@click.option("--gentoo-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Gentoo repository (default: ~/git/gentoo)")
@click.option("--commit-tool", type=click.Choice([t.value for t in CommitTool]),
              help="Tool used to generate the Manifest and commit (default: repoman)")
@click.option("--no-build", is_flag=True, help="Skip the merge/unmerge smoke test")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path),
              help="Also write the log to this file")
@click.option("--help", "-h", is_flag=True, is_eager=True, expose_value=False,
              callback=print_usage_and_exit, help="Show this help")
@click.version_option(version=__version__)
def main(
    branch: Optional[str],
    dry_run: bool,
    verbose: bool,
    kernels: Tuple[str, ...],
    linux_dir: Optional[Path],
    gentoo_dir: Optional[Path],
    commit_tool: Optional[str],
    no_build: bool,
    log_file: Optional[Path],
):
    """
    Bump the Gentoo rt-sources ebuilds to the latest realtime kernel tags.

    Updates the Linux and Gentoo repositories, creates a work branch and
    adds, commits and test-builds one new ebuild per tracked kernel line.
    """
    workflow = None
    try:
        try:
            setup_logging("rtbump", logging.DEBUG if verbose else logging.INFO, log_file)
        except OSError as e:
            raise ConfigurationError(f"Cannot open log file {log_file}: {e}", step="configuration")

        config = BumpConfig.from_env(
            linux_dir=linux_dir,
            gentoo_dir=gentoo_dir,
            branch=branch,
            dry_run=dry_run,
            verbose=verbose,
            build=not no_build,
            commit_tool=commit_tool,
            log_file=log_file,
        )
        if kernels:
            config = config.with_kernels(kernels)

        workflow = BumpWorkflow(config)
        summary = workflow.run()
    except RtBumpError as e:
        print_error(e)
        if workflow is not None:
            summary = workflow.summary
            print_summary(summary)
            err_console.print(
                f"{len(summary.bumped)} line(s) bumped before the failure, "
                f"{len(summary.pending)} not processed"
            )
        if verbose:
            console.print_exception()
        sys.exit(EXIT_FAILURE)

    print_summary(summary)
    if summary.dry_run:
        console.print("[green]rt-sources dry run completed successfully[/green]")
    else:
        console.print(
            f"[green]rt-sources bump completed successfully, "
            f"{len(summary.bumped)} ebuild(s) added[/green]"
        )


if __name__ == "__main__":
    main()
