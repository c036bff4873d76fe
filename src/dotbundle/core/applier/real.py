"""Production bundle applier running setup.sh scripts."""

import logging
import os
import subprocess
from datetime import datetime
from pathlib import Path

from dotbundle.core.applier.abc import ApplyMode, BundleApplier
from dotbundle.core.registry import BundleDescriptor

logger = logging.getLogger(__name__)

SETUP_SCRIPT = "setup.sh"


class RealBundleApplier(BundleApplier):
    """Runs ``<bundle>/setup.sh <mode>`` and maintains the loaded/ links.

    Setup output streams straight to the terminal; scripts can run for a
    long time and their progress is the operator's only feedback.
    """

    def __init__(self, root: Path, state_dir: Path) -> None:
        self._root = root
        self._state_dir = state_dir

    def apply(self, bundle: BundleDescriptor, mode: ApplyMode) -> bool:
        if bundle.path is None:
            return False
        script = bundle.path / SETUP_SCRIPT
        if not script.is_file():
            logger.debug("No %s in %s", SETUP_SCRIPT, bundle.path)
            return False

        env = dict(os.environ)
        env.update(
            {
                "DOTBUNDLE_ROOT": str(self._root),
                "BUNDLE_DIR": str(bundle.path),
                "BUNDLE_NAME": bundle.id,
                "DOTBUNDLE_MODE": mode.value,
            }
        )
        command = ["bash", str(script), mode.value]
        logger.debug("Running %s", command)
        try:
            result = subprocess.run(command, cwd=bundle.path, env=env, check=False)
        except FileNotFoundError as e:
            raise RuntimeError(f"Command not found while running {script}: bash") from e
        if result.returncode != 0:
            raise RuntimeError(f"{script} exited with code {result.returncode}")
        return True

    def finalize(self, bundles: list[BundleDescriptor]) -> None:
        """Point loaded/<id> at every applied bundle directory.

        ``<root>/loaded`` is itself a symlink into the state directory so
        shell configs can glob over the active bundles.
        """
        loaded_dir = self._state_dir / "loaded"
        loaded_dir.mkdir(parents=True, exist_ok=True)
        for entry in loaded_dir.iterdir():
            if entry.is_symlink():
                entry.unlink()
        for bundle in bundles:
            if bundle.path is not None and bundle.path.is_dir():
                (loaded_dir / bundle.id).symlink_to(bundle.path)

        root_link = self._root / "loaded"
        target = Path(os.path.relpath(loaded_dir, self._root))
        if root_link.is_symlink():
            if Path(os.readlink(root_link)) == target:
                return
            root_link.unlink()
        elif root_link.exists():
            backup = root_link.with_name(f"loaded.backup.{datetime.now():%Y%m%d-%H%M%S}")
            logger.warning("Backing up %s to %s", root_link, backup)
            root_link.rename(backup)
        root_link.symlink_to(target)
