import os
import logging
from pathlib import Path
from typing import Iterator, List, Optional, Set, Tuple, Union

from .. import config


def classify(path: Union[str, Path]) -> str:
    """
    Maps a path to 'photo', 'video' or 'unsupported' by extension.
    Case-insensitive, never raises.
    """
    ext = os.path.splitext(str(path))[1].lower()
    return config.EXT_TO_TYPE.get(ext, 'unsupported')


class DiskScanner:
    """Finds candidate media files under a directory tree."""

    def discover(self, root: Path, skip_dirs: Optional[Set[Path]] = None) -> List[Tuple[Path, str]]:
        """
        Returns (path, media_type) for every supported file under root,
        in stable traversal order. Unsupported files are dropped here.
        """
        found = []
        skipped = 0
        for path in self._iter_files(root, skip_dirs or set()):
            # macOS resource forks ("._IMG_0001.jpg") carry a media extension but no image
            if path.name.startswith("._"):
                skipped += 1
                continue
            kind = classify(path)
            if kind == 'unsupported':
                skipped += 1
                continue
            found.append((path, kind))

        logging.info(f"Discovered {len(found)} media files under {root} ({skipped} skipped)")
        return found

    def _iter_files(self, root: Path, skip_dirs: Set[Path]) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        stack = [root]
        while stack:
            current = stack.pop()
            if skip_dirs and any(sd == current or sd in current.parents for sd in skip_dirs):
                continue

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError:
                logging.warning(f"Cannot read directory: {current}")
                continue

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            files = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file():
                    files.append(Path(e.path))

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

            for f in files:
                yield f
