import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from tqdm import tqdm

from . import config
from .database.store import MetadataStore
from .exceptions import CopyError, InvalidArgument
from .metadata.extract import MetadataExtractor
from .models import IngestFailure, IngestResult, PhotoRecord
from .organization.library import LibraryWriter
from .scanning.filesystem import DiskScanner, classify


class IngestionOrchestrator:
    """
    Runs per-file work (extract, and copy for uploads) on a thread pool,
    then writes all successful records to the store in one batch.
    A failing file ends up in the result's failures, never aborts the batch.
    """
    def __init__(self,
                 store: MetadataStore,
                 writer: LibraryWriter,
                 extractor: Optional[MetadataExtractor] = None,
                 max_workers: int = config.DEFAULT_MAX_WORKERS,
                 show_progress: bool = False):
        self.store = store
        self.writer = writer
        self.extractor = extractor or MetadataExtractor()
        self.scanner = DiskScanner()
        self.max_workers = max(1, max_workers)
        self.show_progress = show_progress

    def scan(self, root: Union[str, Path], persist: bool = False) -> IngestResult:
        """
        Read-only browse of a directory tree: classify + extract, no copy.
        With persist=True the records are also upserted as 'scanned'.
        """
        root = Path(root).expanduser().resolve()
        if not root.is_dir():
            raise InvalidArgument(f"Not a directory: {root}")

        # Managed copies are already catalogued; only a scan of the library itself reads them
        skip_dirs = set() if self.writer.contains(root) else {self.writer.root}

        logging.info(f"Scanning {root} (persist={persist})...")
        candidates = [path for path, _ in self.scanner.discover(root, skip_dirs=skip_dirs)]
        result = self._run_parallel(candidates, self._scan_one, desc="Scanning")

        if persist:
            self.store.insert_or_update(result.records)

        logging.info(f"Scan complete. {len(result.records)} records, {len(result.failures)} failures.")
        return result

    def upload(self, file_paths: Sequence[Union[str, Path]]) -> IngestResult:
        """
        Copies the given files into the managed library and stores their
        records. Returns (records, failures); only store errors raise.
        """
        if not file_paths:
            raise InvalidArgument("No files given to upload")

        logging.info(f"Uploading {len(file_paths)} files into {self.writer.root}...")
        result = self._run_parallel([Path(p) for p in file_paths], self._upload_one, desc="Uploading")

        # One pass, after every worker has finished
        self.store.insert_or_update(result.records)

        for failure in result.failures:
            logging.error(f"Upload failed for {failure.path}: {failure.reason}")
        logging.info(f"Upload complete. {len(result.records)} stored, {len(result.failures)} failed.")
        return result

    # --- Per-file Work ---

    def _scan_one(self, path: Path) -> PhotoRecord:
        meta = self.extractor.extract(path)
        canonical = path.resolve()
        return PhotoRecord(
            path=str(canonical),
            name=canonical.name,
            date_taken=meta.timestamp,
            width=meta.width,
            height=meta.height,
            source_type=config.SOURCE_SCANNED,
        )

    def _upload_one(self, source: Path) -> PhotoRecord:
        if classify(source) == 'unsupported':
            raise InvalidArgument(f"Unsupported file type: {source.name}")
        if not source.is_file():
            raise CopyError(f"Source not readable: {source}")

        meta = self.extractor.extract(source)
        if self.writer.contains(source):
            # Already managed: refresh its record in place
            dest = source.resolve()
        else:
            dest = self.writer.place(source, meta.timestamp)

        logging.debug(f"Uploaded: {source} -> {dest}")
        return PhotoRecord(
            path=str(dest),
            name=dest.name,
            date_taken=meta.timestamp,
            width=meta.width,
            height=meta.height,
            source_type=config.SOURCE_UPLOADED,
            created_at=int(time.time()),
        )

    def _run_parallel(self,
                      paths: List[Path],
                      work: Callable[[Path], PhotoRecord],
                      desc: str) -> IngestResult:
        """Fork-join over paths; results keep the input order."""
        result = IngestResult()
        if not paths:
            return result

        outcomes: dict = {}
        workers = min(self.max_workers, len(paths))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {executor.submit(work, p): i for i, p in enumerate(paths)}
            for future in tqdm(as_completed(future_to_index), total=len(future_to_index),
                               desc=desc, disable=not self.show_progress):
                idx = future_to_index[future]
                try:
                    outcomes[idx] = future.result()
                except Exception as e:
                    outcomes[idx] = IngestFailure(path=os.fspath(paths[idx]), error=e)

        for idx in range(len(paths)):
            outcome = outcomes[idx]
            if isinstance(outcome, IngestFailure):
                result.failures.append(outcome)
            else:
                result.records.append(outcome)
        return result
