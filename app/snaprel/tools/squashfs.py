"""Snap file unpacking and repacking.

Snaps are squashfs images. Files are read with unsquashfs and replaced
by unpacking the whole image, editing the tree and packing it again
with mksquashfs using the options snapd expects.
"""

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path

from snaprel.errors import SquashfsError
from snaprel.utils.shell import run_command

logger = logging.getLogger(__name__)

# mksquashfs options used by snapcraft for snap images
MKSQUASHFS_OPTIONS: tuple[str, ...] = (
    "-noappend",
    "-comp",
    "xz",
    "-all-root",
    "-no-xattrs",
    "-no-fragments",
)


class Squashfs:
    """Extracts from and rewrites snap images."""

    # Unpacking or packing a large snap takes a while
    _TIMEOUT: float = 900.0

    def _run(self, args: list[str], image: Path) -> None:
        try:
            result = run_command(args, timeout=self._TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            msg = f"{args[0]} could not run for {image}: {e}"
            raise SquashfsError(msg) from e
        if not result.success:
            msg = f"{args[0]} failed for {image}: {result.stderr.strip()}"
            raise SquashfsError(msg)

    def extract(self, image: Path, dest: Path, paths: list[str] | None = None) -> Path:
        """Unpack an image, or only some paths of it.

        Paths missing from the image are skipped by unsquashfs, so
        optional files can be requested safely.

        Args:
            image: Snap file.
            dest: Directory to unpack into; removed first if it exists.
            paths: Paths inside the image. None unpacks everything.

        Returns:
            The destination directory.

        Raises:
            SquashfsError: If unsquashfs fails.
        """
        if dest.exists():
            shutil.rmtree(dest)
        args = ["unsquashfs", "-d", str(dest), str(image), *(paths or [])]
        self._run(args, image)
        return dest

    def read_file(self, image: Path, path: str, dest_dir: Path) -> Path:
        """Extract a single file from an image.

        Args:
            image: Snap file.
            path: File path inside the image.
            dest_dir: Scratch directory to unpack into.

        Returns:
            Path of the extracted file.

        Raises:
            SquashfsError: If unsquashfs fails or the file is not in the image.
        """
        root = self.extract(image, dest_dir / "squashfs-root", [path])
        extracted = root / path
        if not extracted.is_file():
            msg = f"{path} not found in {image}"
            raise SquashfsError(msg)
        return extracted

    def replace_files(self, image: Path, replacements: dict[str, Path | None]) -> None:
        """Replace, add or delete files inside an image, in place.

        Args:
            image: Snap file to modify.
            replacements: Path inside the image -> local file with the new
                content, or None to delete the path.

        Raises:
            SquashfsError: If unpacking or packing fails.
        """
        with tempfile.TemporaryDirectory(prefix="snaprel-") as tmp:
            root = self.extract(image, Path(tmp) / "root")
            for inner, source in replacements.items():
                target = root / inner
                if source is None:
                    if target.is_dir() and not target.is_symlink():
                        shutil.rmtree(target)
                    else:
                        target.unlink(missing_ok=True)
                    logger.debug("Removed %s from %s", inner, image.name)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, target)
                logger.debug("Replaced %s in %s", inner, image.name)

            packed = Path(tmp) / image.name
            args = ["mksquashfs", str(root), str(packed), *MKSQUASHFS_OPTIONS]
            self._run(args, image)
            shutil.move(str(packed), str(image))
        logger.info("Updated %s", image.name)
