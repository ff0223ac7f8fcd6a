"""
Tests for the default bootstrap stages, end to end against mocked commands.
"""

import pytest

from yukoloader.core.engine.pipeline import run_pipeline
from yukoloader.core.engine.stages import default_stages
from yukoloader.core.models.action import Receipt
from yukoloader.core.services.nix import nix_conf_path

NIX_LINE = "experimental-features = nix-command flakes"


def _statuses(report):
    return {r.name: r.status for r in report.results}


class TestStageList:
    def test_order(self):
        assert [s.name for s in default_stages()] == [
            "curl", "nix-profile", "nix", "nix-config", "git",
            "ssh-agent", "repository", "user-env", "home-manager", "session",
        ]

    def test_without_session(self):
        assert "session" not in [s.name for s in default_stages(with_session=False)]

    def test_optional_stages(self):
        optional = {s.name for s in default_stages() if s.optional}
        assert optional == {"nix-profile", "ssh-agent", "home-manager", "session"}


class TestProvisionedHost:
    def test_fast_path(self, runtime, mock_adapter, provisioned):
        report = run_pipeline(default_stages(with_session=False), runtime)

        statuses = _statuses(report)
        assert statuses["curl"] == "skipped"
        assert statuses["nix"] == "skipped"
        assert statuses["git"] == "skipped"
        assert statuses["repository"] == "ok"
        assert statuses["home-manager"] == "ok"
        assert report.exit_code == 0
        assert not any(c.startswith("sudo") for c in mock_adapter.commands)
        assert not mock_adapter.called("git clone")
        assert mock_adapter.called(f"git -C {provisioned} pull --rebase")

    def test_repeat_run_converges(self, runtime, settings, mock_adapter, provisioned):
        first = run_pipeline(default_stages(with_session=False), runtime)
        conf = nix_conf_path(runtime.ctx)
        env_record = provisioned / settings.env_file_name
        conf_after_first = conf.read_text()
        record_after_first = env_record.read_text()

        second = run_pipeline(default_stages(with_session=False), runtime)

        assert _statuses(first) == _statuses(second)
        assert conf.read_text() == conf_after_first
        assert conf.read_text().count(NIX_LINE) == 1
        assert env_record.read_text() == record_after_first

    def test_session_handoff(self, runtime, provisioned, bin_dir):
        report = run_pipeline(default_stages(), runtime)
        assert report.handoff == [str(bin_dir / "tmux"), "new", "-A", "-s", "yuko"]
        assert report.results[-1].name == "session"


class TestMissingTools:
    def test_curl_without_package_manager(self, runtime, mock_adapter):
        report = run_pipeline(default_stages(), runtime)
        assert report.total == 1
        assert report.results[0].status == "failed"
        assert report.results[0].error_kind == "NoRemediationAvailable"
        assert report.exit_code == 1
        assert mock_adapter.call_count == 0

    def test_curl_installed_with_apt(self, runtime, mock_adapter, make_exe, installs, provisioned, bin_dir):
        (bin_dir / "curl").unlink()
        make_exe("apt")
        installs("sudo apt install", "curl")

        report = run_pipeline(default_stages(with_session=False), runtime)

        assert _statuses(report)["curl"] == "ok"
        assert report.results[0].details["installer"] == "apt"

    def test_nix_declined_is_fatal(self, runtime, prompter, provisioned, bin_dir):
        (bin_dir / "nix").unlink()
        prompter.confirm_answer = False
        report = run_pipeline(default_stages(), runtime)
        assert report.failed_stage.name == "nix"
        assert "aborted" in report.failed_stage.message

    def test_ephemeral_git(self, runtime, mock_adapter, provisioned, bin_dir, make_exe, tmp_path):
        (bin_dir / "git").unlink()
        store_bin = tmp_path / "store" / "git" / "bin"
        make_exe("git", store_bin)
        mock_adapter.set_output("nix shell", str(store_bin / "git"))

        report = run_pipeline(default_stages(with_session=False), runtime)

        assert _statuses(report)["git"] == "ok"
        assert runtime.ctx.path.startswith(str(store_bin))
        # later git commands see the ephemeral binary on PATH
        pull = next(c for c in mock_adapter.call_log if c.argv[:2] == ["git", "-C"])
        assert pull.env["PATH"].startswith(str(store_bin))

    def test_git_unavailable_stops_before_repository(self, runtime, mock_adapter, provisioned, bin_dir):
        (bin_dir / "git").unlink()
        mock_adapter.set_failure("nix shell", error="no network")

        report = run_pipeline(default_stages(), runtime)

        assert report.failed_stage.name == "git"
        assert report.failed_stage.error_kind == "MissingRequiredCapability"
        assert not mock_adapter.called("git ")


class TestDegradedRuns:
    def test_diverged_checkout_warns(self, runtime, mock_adapter, provisioned):
        mock_adapter.set_failure("git -C", error="CONFLICT (content): Merge conflict in home.nix")

        report = run_pipeline(default_stages(with_session=False), runtime)

        statuses = _statuses(report)
        assert statuses["repository"] == "warned"
        assert statuses["user-env"] == "ok"
        assert statuses["home-manager"] == "ok"
        assert report.exit_code == 0

    def test_stale_checkout_not_applied_when_disabled(self, runtime, mock_adapter, provisioned):
        runtime.settings = runtime.settings.model_copy(update={"apply_stale_checkout": False})
        mock_adapter.set_failure("git -C")

        report = run_pipeline(default_stages(with_session=False), runtime)

        assert _statuses(report)["home-manager"] == "warned"
        assert not mock_adapter.called("nix run")

    def test_clone_failure_is_fatal(self, runtime, mock_adapter, provisioned):
        (provisioned / ".git").rmdir()
        provisioned.rmdir()
        mock_adapter.set_failure("git clone")

        report = run_pipeline(default_stages(), runtime)

        assert report.failed_stage.name == "repository"
        assert report.failed_stage.error_kind == "CloneFailed"

    def test_session_install_failure_exits_zero(self, runtime, provisioned, bin_dir):
        (bin_dir / "tmux").unlink()
        report = run_pipeline(default_stages(), runtime)
        assert _statuses(report)["session"] == "warned"
        assert report.handoff is None
        assert report.exit_code == 0

    def test_session_declined(self, runtime, prompter, provisioned):
        prompter.confirm_answer = False
        report = run_pipeline(default_stages(), runtime)
        assert _statuses(report)["session"] == "skipped"
        assert report.handoff is None

    def test_home_manager_failure_warns(self, runtime, mock_adapter, provisioned):
        mock_adapter.set_failure("nix --version")
        report = run_pipeline(default_stages(with_session=False), runtime)
        assert _statuses(report)["home-manager"] == "warned"
        assert report.status == "partial"
        assert report.exit_code == 0


class TestFreshHost:
    @pytest.fixture
    def tools(self, make_exe):
        for name in ("curl", "nix", "git", "tmux"):
            make_exe(name)

    def test_clones_once_then_syncs(self, runtime, mock_adapter, tools):
        clone_dir = runtime.clone_dir

        def clone(ctx):
            (clone_dir / ".git").mkdir(parents=True)
            return Receipt.success(adapter="mock", action_id=ctx.action.id)

        mock_adapter.set_handler("git clone", clone)

        first = run_pipeline(default_stages(with_session=False), runtime)
        first_commands = list(mock_adapter.commands)
        second = run_pipeline(default_stages(with_session=False), runtime)
        second_commands = mock_adapter.commands[len(first_commands):]

        assert first.exit_code == 0
        assert second.exit_code == 0
        assert [c for c in first_commands if c.startswith("git clone")] == [
            f"git clone {runtime.settings.repo_ssh} {clone_dir}"
        ]
        assert not any("pull --rebase" in c for c in first_commands)
        assert f"git -C {clone_dir} pull --rebase" in second_commands
        assert not any(c.startswith("git clone") for c in second_commands)
        assert not any(c.startswith("git ls-remote") for c in second_commands)
        assert (clone_dir / runtime.settings.env_file_name).is_file()

    def test_skipped_repository_leaves_clone_dir_free(self, runtime, mock_adapter, tools):
        first = run_pipeline(default_stages(with_session=False), runtime, skip=["repository"])

        assert _statuses(first)["user-env"] == "skipped"
        assert not runtime.clone_dir.exists()

        second = run_pipeline(default_stages(with_session=False), runtime)

        assert _statuses(second)["repository"] == "ok"
        assert mock_adapter.called("git clone")
