"""Tests for the bump workflow."""

from unittest.mock import MagicMock, patch

import pytest

from rtbump.bump import BumpWorkflow
from rtbump.config import BumpConfig, RtBranch
from rtbump.ebuild import EbuildManager
from rtbump.errors import CommandError, ConfigurationError, NoReleaseError, RepositoryError
from rtbump.models import BumpStatus
from rtbump.repo import GentooRepo, LinuxRepo


BRANCHES = (
    RtBranch(version="4.19", ebuild="rt-sources-4.19.206_p87.ebuild"),
    RtBranch(version="5.4", ebuild="rt-sources-5.4.143_p64.ebuild"),
    RtBranch(version="5.10", ebuild="rt-sources-5.10.59_p52.ebuild"),
)

LATEST = {
    "4.19": "v4.19.207-rt88",
    "5.4": "v5.4.143-rt64",  # already packaged
    "5.10": "v5.10.65-rt53",
}


def make_config(tmp_path, **kwargs):
    kwargs.setdefault("gentoo_dir", tmp_path / "gentoo")
    kwargs.setdefault("linux_dir", tmp_path / "linux")
    kwargs.setdefault("branch", "rtbump-1234")
    kwargs.setdefault("rt_branches", BRANCHES)
    return BumpConfig(**kwargs)


def make_overlay(config):
    config.rt_sources_dir.mkdir(parents=True, exist_ok=True)
    for rt_branch in config.rt_branches:
        (config.rt_sources_dir / rt_branch.ebuild).write_text(f"# {rt_branch.version}\n")


def make_workflow(config):
    linux = MagicMock(spec=LinuxRepo)
    linux.latest_rt_release.side_effect = lambda rt_branch: LATEST[rt_branch.version]
    gentoo = MagicMock(spec=GentooRepo)
    return BumpWorkflow(config, linux=linux, gentoo=gentoo, ebuilds=EbuildManager(config))


@pytest.fixture(autouse=True)
def tools_present():
    with patch("rtbump.ebuild.which", return_value="/usr/bin/tool"):
        yield


@pytest.fixture
def mock_run():
    with patch("rtbump.ebuild.run_checked") as mock:
        yield mock


def commands(mock_run):
    return [c.args[0] for c in mock_run.call_args_list]


class TestRun:
    """Tests for a complete run."""

    def test_bumps_outdated_lines(self, tmp_path, mock_run):
        """Test new ebuilds are created, committed and test-built."""
        config = make_config(tmp_path)
        make_overlay(config)
        workflow = make_workflow(config)

        summary = workflow.run()

        workflow.linux.update.assert_called_once_with()
        workflow.gentoo.update.assert_called_once_with("master", "upstream/master")
        workflow.gentoo.create_branch.assert_called_once_with("rtbump-1234")

        new_419 = config.rt_sources_dir / "rt-sources-4.19.207_p88.ebuild"
        new_510 = config.rt_sources_dir / "rt-sources-5.10.65_p53.ebuild"
        assert new_419.read_text() == "# 4.19\n"
        assert new_510.read_text() == "# 5.10\n"

        assert [c.args[0] for c in workflow.gentoo.add.call_args_list] == [
            "sys-kernel/rt-sources/rt-sources-4.19.207_p88.ebuild",
            "sys-kernel/rt-sources/rt-sources-5.10.65_p53.ebuild",
        ]
        assert commands(mock_run) == [
            ["repoman", "ci", "-m", "sys-kernel/rt-sources: Add rt sources v4.19.207-rt88"],
            ["sudo", "ebuild", "rt-sources-4.19.207_p88.ebuild", "clean", "merge"],
            ["sudo", "ebuild", "rt-sources-4.19.207_p88.ebuild", "unmerge"],
            ["repoman", "ci", "-m", "sys-kernel/rt-sources: Add rt sources v5.10.65-rt53"],
            ["sudo", "ebuild", "rt-sources-5.10.65_p53.ebuild", "clean", "merge"],
            ["sudo", "ebuild", "rt-sources-5.10.65_p53.ebuild", "unmerge"],
        ]

        assert [r.status for r in summary.results] == [
            BumpStatus.BUMPED,
            BumpStatus.UP_TO_DATE,
            BumpStatus.BUMPED,
        ]
        assert summary.result_for("5.4").ebuild == "rt-sources-5.4.143_p64.ebuild"

    def test_step_order(self, tmp_path, mock_run):
        """Test repositories are synced before the branch is created."""
        config = make_config(tmp_path)
        make_overlay(config)
        workflow = make_workflow(config)
        order = []
        workflow.linux.update.side_effect = lambda: order.append("linux")
        workflow.gentoo.update.side_effect = lambda *a: order.append("gentoo")
        workflow.gentoo.create_branch.side_effect = lambda name: order.append("branch")
        workflow.linux.latest_rt_release.side_effect = (
            lambda rt_branch: order.append(rt_branch.version) or LATEST[rt_branch.version]
        )

        workflow.run()

        assert order == ["linux", "gentoo", "branch", "4.19", "5.4", "5.10"]

    def test_second_run_is_noop(self, tmp_path, mock_run):
        """Test existing ebuilds are not created or committed again."""
        config = make_config(tmp_path)
        make_overlay(config)
        make_workflow(config).run()
        mock_run.reset_mock()

        workflow = make_workflow(config)
        summary = workflow.run()

        workflow.gentoo.add.assert_not_called()
        mock_run.assert_not_called()
        assert all(r.status == BumpStatus.UP_TO_DATE for r in summary.results)

    def test_no_build(self, tmp_path, mock_run):
        """Test the smoke test can be skipped."""
        config = make_config(tmp_path, build=False, rt_branches=BRANCHES[:1])
        make_overlay(config)

        make_workflow(config).run()

        assert commands(mock_run) == [
            ["repoman", "ci", "-m", "sys-kernel/rt-sources: Add rt sources v4.19.207-rt88"],
        ]

    def test_missing_tools(self, tmp_path, mock_run):
        """Test missing tools abort before the branch is created."""
        config = make_config(tmp_path)
        make_overlay(config)
        workflow = make_workflow(config)

        with patch("rtbump.ebuild.which", return_value=None):
            with pytest.raises(ConfigurationError) as exc_info:
                workflow.run()

        assert exc_info.value.step == "verify_tools"
        workflow.gentoo.create_branch.assert_not_called()
        assert all(r.status == BumpStatus.PENDING for r in workflow.summary.results)


class TestDryRun:
    """Tests for dry runs."""

    def test_dry_run_decides_without_changes(self, tmp_path, mock_run):
        """Test nothing is branched, copied, staged, committed or built."""
        config = make_config(tmp_path, dry_run=True)
        make_overlay(config)
        before = sorted(p.name for p in config.rt_sources_dir.iterdir())
        workflow = make_workflow(config)

        with patch("rtbump.ebuild.which", return_value=None):
            summary = workflow.run()

        workflow.linux.update.assert_called_once_with()
        workflow.gentoo.update.assert_called_once_with("master", "upstream/master")
        assert workflow.linux.latest_rt_release.call_count == 3
        workflow.gentoo.create_branch.assert_not_called()
        workflow.gentoo.add.assert_not_called()
        mock_run.assert_not_called()
        assert sorted(p.name for p in config.rt_sources_dir.iterdir()) == before

        assert [r.status for r in summary.results] == [
            BumpStatus.WOULD_BUMP,
            BumpStatus.UP_TO_DATE,
            BumpStatus.WOULD_BUMP,
        ]
        assert summary.result_for("5.10").ebuild == "rt-sources-5.10.65_p53.ebuild"
        assert summary.dry_run is True


class TestAbort:
    """Tests for failures partway through the run."""

    def test_failure_stops_remaining_lines(self, tmp_path, mock_run):
        """Test earlier commits stay, later lines are not processed."""
        config = make_config(tmp_path)
        make_overlay(config)
        workflow = make_workflow(config)
        workflow.linux.latest_rt_release.side_effect = lambda rt_branch: {
            "4.19": "v4.19.207-rt88",
            "5.4": "v5.4.144-rt65",
            "5.10": "v5.10.65-rt53",
        }[rt_branch.version]

        def fail_merge(cmd, **kwargs):
            if cmd[-1] == "merge" and "rt-sources-5.4.144_p65.ebuild" in cmd:
                raise CommandError(cmd, 1, "build failed", step=kwargs.get("step"))
            return ""

        mock_run.side_effect = fail_merge

        with pytest.raises(CommandError) as exc_info:
            workflow.run()

        assert exc_info.value.step == "merge_ebuild"
        summary = workflow.summary
        assert summary.result_for("4.19").status == BumpStatus.BUMPED
        aborted = summary.result_for("5.4")
        assert aborted.status == BumpStatus.ABORTED
        assert aborted.committed is True
        assert "failed" in aborted.error_message
        assert summary.result_for("5.10").status == BumpStatus.PENDING
        assert summary.pending == [summary.result_for("5.10")]

        assert (config.rt_sources_dir / "rt-sources-4.19.207_p88.ebuild").exists()
        assert (config.rt_sources_dir / "rt-sources-5.4.144_p65.ebuild").exists()
        assert not (config.rt_sources_dir / "rt-sources-5.10.65_p53.ebuild").exists()
        called = [c.args[0].version for c in workflow.linux.latest_rt_release.call_args_list]
        assert called == ["4.19", "5.4"]
        assert not any("unmerge" in cmd and "rt-sources-5.4.144_p65.ebuild" in cmd
                       for cmd in commands(mock_run))

    def test_no_release_aborts(self, tmp_path, mock_run):
        """Test a line without release tags is fatal."""
        config = make_config(tmp_path)
        make_overlay(config)
        workflow = make_workflow(config)
        workflow.linux.latest_rt_release.side_effect = NoReleaseError("4.19")

        with pytest.raises(NoReleaseError) as exc_info:
            workflow.run()

        assert exc_info.value.step == "bump_branch"
        assert workflow.summary.result_for("4.19").status == BumpStatus.ABORTED
        assert workflow.summary.result_for("5.4").status == BumpStatus.PENDING
        mock_run.assert_not_called()

    def test_sync_failure_touches_nothing(self, tmp_path, mock_run):
        """Test a failed fetch stops before any overlay change."""
        config = make_config(tmp_path)
        make_overlay(config)
        workflow = make_workflow(config)
        workflow.linux.update.side_effect = CommandError(
            ["git", "remote", "update"], 1, step="update_linux_repo"
        )

        with pytest.raises(CommandError):
            workflow.run()

        workflow.gentoo.update.assert_not_called()
        workflow.gentoo.create_branch.assert_not_called()
        workflow.linux.latest_rt_release.assert_not_called()


class TestBumpBranch:
    """Tests for bumping a single line."""

    def test_missing_package_dir(self, tmp_path, mock_run):
        """Test missing rt-sources directory is fatal."""
        config = make_config(tmp_path)
        workflow = make_workflow(config)

        with pytest.raises(RepositoryError):
            workflow.bump_branch(BRANCHES[0])

    def test_returns_result(self, tmp_path, mock_run):
        """Test a standalone result is created."""
        config = make_config(tmp_path)
        make_overlay(config)
        workflow = make_workflow(config)

        result = workflow.bump_branch(BRANCHES[1])

        assert result.kernel_version == "5.4"
        assert result.latest_tag == "v5.4.143-rt64"
        assert result.status == BumpStatus.UP_TO_DATE
