import os
import shutil
import logging
from datetime import datetime
from pathlib import Path
from typing import Union

from .. import config
from ..exceptions import CopyError


class LibraryWriter:
    """
    Places copies of source files into the managed tree: root/YYYY/MM/name.
    """
    def __init__(self, root: Path):
        self.root = Path(root).expanduser().resolve()

    def folder_for(self, timestamp: int) -> Path:
        dt = datetime.fromtimestamp(timestamp)
        return self.root / config.FOLDER_PATTERN.format(year=dt.year, month=dt.month)

    def place(self, source: Path, timestamp: int) -> Path:
        """
        Copies source into its year/month folder and returns the canonical
        destination. Never overwrites: a taken name gets a _1, _2 ... suffix.
        """
        source = Path(source)
        if not source.is_file() or not os.access(source, os.R_OK):
            raise CopyError(f"Source not readable: {source}")

        try:
            folder = self.folder_for(timestamp)
            folder.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError, OverflowError) as e:
            raise CopyError(f"Cannot create library folder for {source}: {e}") from e

        dest = self._claim_name(folder, source.name)
        try:
            shutil.copy2(str(source), str(dest))
        except OSError as e:
            # Drop the empty placeholder so the name is free again
            try:
                dest.unlink()
            except OSError:
                logging.debug(f"Could not remove placeholder {dest}")
            raise CopyError(f"Failed to copy {source} -> {dest}: {e}") from e

        final = dest.resolve()
        logging.debug(f"Copied {source} -> {final}")
        return final

    def _claim_name(self, folder: Path, filename: str) -> Path:
        """
        Reserves the first free name by exclusive create, so parallel
        workers copying same-named files never collide.
        """
        stem = Path(filename).stem
        ext = Path(filename).suffix
        candidate = filename
        counter = 1

        while True:
            dest = folder / candidate
            try:
                fd = os.open(dest, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                candidate = f"{stem}_{counter}{ext}"
                counter += 1
                continue
            except OSError as e:
                raise CopyError(f"Destination not writable: {dest}: {e}") from e
            os.close(fd)
            return dest

    def contains(self, path: Union[str, Path]) -> bool:
        """True if path lies inside the managed root."""
        p = Path(path).expanduser().resolve()
        return p == self.root or self.root in p.parents

    def remove(self, path: Union[str, Path]) -> bool:
        """
        Unlinks a managed file. Returns False if it was already gone.
        Raises ValueError for paths outside the library root.
        """
        if not self.contains(path):
            raise ValueError(f"Refusing to delete file outside library: {path}")
        try:
            Path(path).unlink()
        except FileNotFoundError:
            return False
        return True
