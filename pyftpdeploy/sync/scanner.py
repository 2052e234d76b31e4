"""Directory scanning utilities that build tree snapshots."""

import logging
import os
import time
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Optional, Union

from ..exceptions import DirectoryNotFoundError, FtpDeployError
from ..utils import calculate_file_hash, now_iso
from .exclusions import ExclusionMatcher
from .snapshot import EntryKind, Snapshot, TreeEntry

logger = logging.getLogger(__name__)


class TreeBuilder:
    """Walks a directory and builds a content-hashed Snapshot.

    Entries are visited pre-order (a directory before its contents). Paths
    matching an exclusion pattern are skipped, and excluded directories are
    not descended into.

    Examples:
        >>> builder = TreeBuilder()
        >>> snapshot = builder.build(Path("/var/www/site"), ["vendor/**"])
        >>> for entry in snapshot.entries:
        ...     print(entry.path, entry.content_hash)

        >>> # The remote generator always hides its own script
        >>> builder = TreeBuilder(forced_exclusions=["ftp-remote-tree.php"])
    """

    def __init__(self, forced_exclusions: Optional[Iterable[str]] = None):
        """Initialize tree builder.

        Args:
            forced_exclusions: Patterns applied on every build, placed before
                the caller's patterns in the snapshot's exclusion list
        """
        self.forced_exclusions = list(forced_exclusions or [])

    def build(
        self,
        root: Union[str, Path],
        exclusions: Optional[Iterable[str]] = None,
    ) -> Snapshot:
        """Scan ``root`` and return its snapshot.

        Args:
            root: Directory to scan
            exclusions: Exclusion patterns (see exclusions module)

        Returns:
            Snapshot with entries sorted by path

        Raises:
            DirectoryNotFoundError: If root is not an existing directory
            FtpDeployError: If a directory or file cannot be read
        """
        root_path = Path(root)
        try:
            real_root = root_path.resolve(strict=True)
        except (OSError, RuntimeError):
            raise DirectoryNotFoundError(str(root)) from None
        if not real_root.is_dir():
            raise DirectoryNotFoundError(str(root))

        patterns = self.forced_exclusions + list(exclusions or [])
        matcher = ExclusionMatcher(patterns)

        scan_start = time.time()
        try:
            entries = list(self._walk(real_root, real_root, matcher))
        except OSError as e:
            raise FtpDeployError(f"Failed to scan directory: {e}") from e

        logger.debug(
            "Scanned %s: %d entries in %.2fs",
            real_root,
            len(entries),
            time.time() - scan_start,
        )

        return Snapshot(
            generated_at=now_iso(),
            base_path=str(real_root),
            exclusions=tuple(patterns),
            entries=tuple(entries),
        )

    def _walk(
        self, directory: Path, base_path: Path, matcher: ExclusionMatcher
    ) -> Iterator[TreeEntry]:
        """Yield entries below ``directory`` in pre-order."""
        with os.scandir(directory) as it:
            items = sorted(it, key=lambda d: d.name)

        for item in items:
            item_path = Path(item.path)
            # as_posix() gives forward slashes on all platforms
            relative_path = item_path.relative_to(base_path).as_posix()

            if matcher.is_excluded(relative_path):
                logger.debug(f"Excluding: {relative_path}")
                continue

            if item.is_dir():
                stat = item.stat()
                yield TreeEntry(
                    path=relative_path,
                    kind=EntryKind.DIRECTORY,
                    size=0,
                    modified_at=int(stat.st_mtime),
                )
                # Symlinked directories are listed but not followed
                if not item.is_symlink():
                    yield from self._walk(item_path, base_path, matcher)
            elif item.is_file():
                stat = item.stat()
                yield TreeEntry(
                    path=relative_path,
                    kind=EntryKind.FILE,
                    size=stat.st_size,
                    modified_at=int(stat.st_mtime),
                    content_hash=calculate_file_hash(item_path),
                )
            else:
                logger.debug(f"Skipping special file: {relative_path}")
