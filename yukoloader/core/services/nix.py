"""
Nix runtime — profile activation and the single-user installer.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from yukoloader.core.context import HostContext
from yukoloader.core.errors import MissingRequiredCapability

if TYPE_CHECKING:
    from yukoloader.core.engine.runtime import StageRuntime

logger = logging.getLogger(__name__)


def profile_bin(ctx: HostContext) -> Path:
    return ctx.home / ".nix-profile" / "bin"


def activate_profile(ctx: HostContext) -> HostContext | None:
    """Fold the per-user Nix profile into PATH.

    Returns the updated context, or None when there is no profile or it
    is already on PATH.
    """
    bin_dir = profile_bin(ctx)
    if not bin_dir.is_dir():
        return None
    if str(bin_dir) in ctx.path.split(os.pathsep):
        return None
    return ctx.with_path_prefix(bin_dir)


def nix_conf_path(ctx: HostContext) -> Path:
    return ctx.config_root / "nix" / "nix.conf"


def install_nix(runtime: StageRuntime) -> HostContext:
    """Download and run the single-user Nix installer.

    Raises:
        MissingRequiredCapability: The operator declined, or the
            download or installer failed.
    """
    url = runtime.settings.nix_install_url
    if not runtime.prompter.confirm(
        f"Proceed to download and run the Nix installer from {url}?"
    ):
        raise MissingRequiredCapability("User aborted Nix installation.")

    with tempfile.TemporaryDirectory(prefix="yukoloader-") as tmp:
        script = Path(tmp) / "install-nix.sh"
        receipt = runtime.run(
            ["curl", "--proto", "=https", "--tlsv1.2", "-sSfL", "-o", str(script), url],
            timeout=runtime.settings.network_timeout,
        )
        if not receipt.ok:
            raise MissingRequiredCapability(f"Could not download the Nix installer: {receipt.error}")

        receipt = runtime.run(["sh", str(script), "--no-daemon"], interactive=True)
        if not receipt.ok:
            raise MissingRequiredCapability(f"Nix installer failed: {receipt.error}")

    logger.info("Nix installer finished.")
    return activate_profile(runtime.ctx) or runtime.ctx
