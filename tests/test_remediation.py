"""
Tests for the remediation selector.
"""

import pytest

from yukoloader.core.errors import NoRemediationAvailable, RemediationIneffective
from yukoloader.core.services.probe import command_probe
from yukoloader.core.services.remediation import (
    nix_profile_candidate,
    package_manager_candidates,
    remediate,
)


class TestCandidates:
    def test_priority_order(self):
        names = [c.name for c in package_manager_candidates("curl")]
        assert names == ["apt", "dnf", "pacman"]

    def test_apt_refreshes_index_first(self):
        apt = package_manager_candidates("curl")[0]
        assert apt.commands == (("apt", "update"), ("apt", "install", "-y", "curl"))
        assert apt.needs_sudo

    def test_nix_candidate(self):
        candidate = nix_profile_candidate("tmux")
        assert candidate.commands == (("nix", "profile", "install", "nixpkgs#tmux"),)
        assert not candidate.needs_sudo


class TestRemediate:
    def test_first_matching_candidate_wins(self, runtime, mock_adapter, make_exe, installs):
        make_exe("apt")
        make_exe("dnf")
        installs("sudo apt install", "curl")

        used = remediate(runtime, command_probe("curl"), package_manager_candidates("curl"), label="curl")

        assert used == "apt"
        assert mock_adapter.commands == ["sudo apt update", "sudo apt install -y curl"]

    def test_failed_candidate_falls_through(self, runtime, mock_adapter, make_exe, installs):
        make_exe("apt")
        make_exe("dnf")
        mock_adapter.set_failure("sudo apt install", error="E: Unable to locate package")
        installs("sudo dnf install", "curl")

        used = remediate(runtime, command_probe("curl"), package_manager_candidates("curl"), label="curl")

        assert used == "dnf"
        assert mock_adapter.commands == [
            "sudo apt update",
            "sudo apt install -y curl",
            "sudo dnf install -y curl",
        ]

    def test_undetected_candidates_are_skipped(self, runtime, mock_adapter, make_exe, installs):
        make_exe("pacman")
        installs("sudo pacman", "curl")

        used = remediate(runtime, command_probe("curl"), package_manager_candidates("curl"), label="curl")

        assert used == "pacman"
        assert mock_adapter.commands == ["sudo pacman -Sy --noconfirm curl"]

    def test_root_runs_without_sudo(self, runtime, mock_adapter, make_exe, installs):
        runtime.ctx = runtime.ctx.model_copy(update={"uid": 0})
        make_exe("dnf")
        installs("dnf install", "curl")

        remediate(runtime, command_probe("curl"), package_manager_candidates("curl"), label="curl")

        assert mock_adapter.commands == ["dnf install -y curl"]

    def test_installs_run_interactively(self, runtime, mock_adapter, make_exe, installs):
        make_exe("dnf")
        installs("sudo dnf", "curl")
        remediate(runtime, command_probe("curl"), package_manager_candidates("curl"), label="curl")
        assert mock_adapter.call_log[0].action.params["interactive"] is True

    def test_no_candidate_detected(self, runtime, mock_adapter):
        with pytest.raises(NoRemediationAvailable, match="install curl manually"):
            remediate(runtime, command_probe("curl"), package_manager_candidates("curl"), label="curl")
        assert mock_adapter.call_count == 0

    def test_every_candidate_fails(self, runtime, mock_adapter, make_exe):
        make_exe("apt")
        make_exe("dnf")
        mock_adapter.set_failure("sudo apt")
        mock_adapter.set_failure("sudo dnf")

        with pytest.raises(RemediationIneffective, match="apt, dnf"):
            remediate(runtime, command_probe("curl"), package_manager_candidates("curl"), label="curl")

    def test_install_without_effect_tries_next(self, runtime, mock_adapter, make_exe, installs):
        make_exe("apt")
        make_exe("dnf")
        # apt "succeeds" but curl never appears
        installs("sudo dnf install", "curl")

        used = remediate(runtime, command_probe("curl"), package_manager_candidates("curl"), label="curl")

        assert used == "dnf"

    def test_ineffective_when_target_never_appears(self, runtime, make_exe):
        make_exe("nix")
        with pytest.raises(RemediationIneffective):
            remediate(runtime, command_probe("tmux"), [nix_profile_candidate("tmux")], label="tmux")
