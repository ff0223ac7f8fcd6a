"""
Bootstrap settings — every tunable of a run.

Defaults reproduce the stock YukoLoader setup; a YAML file can
override any field (see ``core.config.loader``).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_SSH_KEYS = ["id_ed25519", "id_rsa", "id_ecdsa", "id_ed25519_sk"]


class BootstrapSettings(BaseModel):
    """Resolved configuration for one bootstrap run."""

    model_config = ConfigDict(extra="forbid")

    # ── Repository ───────────────────────────────────────────────
    repo_ssh: str = "git@github.com:trynn-tech/.yuko.git"
    repo_https: str = "https://github.com/trynn-tech/.yuko.git"
    clone_dir_name: str = ".yuko"

    # ── Nix ──────────────────────────────────────────────────────
    nix_install_url: str = "https://nixos.org/nix/install"
    nix_conf_line: str = "experimental-features = nix-command flakes"
    flake_ref: str = ".#yuko-core"
    apply_stale_checkout: bool = True

    # ── User environment record ──────────────────────────────────
    env_file_name: str = ".yuko-env.nix"

    # ── Credentials ──────────────────────────────────────────────
    ssh_keys: list[str] = Field(default_factory=lambda: list(DEFAULT_SSH_KEYS))

    # ── Session ──────────────────────────────────────────────────
    tmux_session: str = "yuko"

    # ── Timeouts (seconds) ───────────────────────────────────────
    probe_timeout: int = 30
    network_timeout: int | None = None

    @field_validator("repo_ssh", "repo_https", "clone_dir_name", "flake_ref", "tmux_session")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("probe_timeout", "network_timeout")
    @classmethod
    def _positive(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError("must be a positive number of seconds")
        return value
