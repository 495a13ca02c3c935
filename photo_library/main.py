import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from . import config
from .commands import PhotoLibraryApp
from .exceptions import InvalidArgument, PhotoLibraryError
from .models import IngestResult, PhotoRecord

def setup_logging(log_dir: Path, verbose: bool):
    """Sets up logging to both console and a file next to the database."""
    log_level = logging.DEBUG if verbose else logging.INFO

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "photo_library.log"

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)
    logging.getLogger("PIL").setLevel(logging.WARNING)

def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description="Photo Library: ingest and browse a managed photo library")

    p.add_argument("--db", type=Path, default=None, help=f"SQLite catalog (default: ${config.DB_ENV_VAR} or {config.get_db_path()})")
    p.add_argument("--library", type=Path, default=None, help=f"Managed library root (default: ${config.LIBRARY_ENV_VAR} or {config.get_library_path()})")
    p.add_argument("--workers", type=int, default=config.DEFAULT_MAX_WORKERS, help="Parallel workers for extraction and copy")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("scan", help="Read metadata for every media file under a directory")
    s.add_argument("dir", type=Path)
    s.add_argument("--save", action="store_true", help="Also store the scanned records in the catalog")

    s = sub.add_parser("upload", help="Copy files into the managed library")
    s.add_argument("files", nargs="+", type=Path)

    s = sub.add_parser("list", help="List stored photos, newest first")
    s.add_argument("--album", type=int, default=None, help="Only photos in this album")
    s.add_argument("--favorites", action="store_true", help="Only favorites")
    s.add_argument("--year", type=int, default=None)
    s.add_argument("--month", type=int, default=None, help="Requires --year")

    sub.add_parser("albums", help="List albums")

    s = sub.add_parser("create-album", help="Create an album")
    s.add_argument("name")

    s = sub.add_parser("add-to-album", help="Add photos to an album")
    s.add_argument("album_id", type=int)
    s.add_argument("paths", nargs="+")

    s = sub.add_parser("favorite", help="Mark (or with --off, unmark) a photo as favorite")
    s.add_argument("path")
    s.add_argument("--off", action="store_true")

    s = sub.add_parser("delete", help="Delete photos from the catalog and the managed library")
    s.add_argument("paths", nargs="+")

    sub.add_parser("stats", help="Photo counts per year")

    return p.parse_args(argv)

def _print_records(records: List[PhotoRecord]):
    print("date_taken          | fav | size        | type  | path")
    print("--------------------+-----+-------------+-------+-----")
    for rec in records:
        taken = datetime.fromtimestamp(rec.date_taken).strftime("%Y-%m-%d %H:%M:%S")
        size = f"{rec.width}x{rec.height}"
        fav = " * " if rec.is_favorite else "   "
        print(f"{taken} | {fav} | {size.ljust(11)} | {rec.media_type.ljust(5)} | {rec.path}")

def _print_result(result: IngestResult):
    _print_records(result.records)
    for failure in result.failures:
        print(f"FAILED {failure.path}: {failure.reason}")

def run(args) -> int:
    app = PhotoLibraryApp(
        db_path=args.db,
        library_root=args.library,
        max_workers=args.workers,
        show_progress=True,
    )

    if args.command == "scan":
        result = app.scan_directory(args.dir, save_to_db=args.save)
        _print_result(result)
        return 1 if result.failures else 0

    if args.command == "upload":
        result = app.upload_photos(args.files)
        _print_result(result)
        return 1 if result.failures else 0

    if args.command == "list":
        if args.month is not None and args.year is None:
            raise InvalidArgument("--month requires --year")
        if args.album is not None:
            records = app.get_album_photos(args.album)
        elif args.favorites:
            records = app.get_favorites()
        elif args.year is not None and args.month is not None:
            records = app.get_photos_by_month(args.year, args.month)
        elif args.year is not None:
            records = [r for r in app.get_all_photos()
                       if datetime.fromtimestamp(r.date_taken).year == args.year]
        else:
            records = app.get_all_photos()
        _print_records(records)
        return 0

    if args.command == "albums":
        for album in app.get_albums():
            print(f"{album.id:4d} | {album.name} | {album.count} photos | cover: {album.cover_photo_path or '-'}")
        return 0

    if args.command == "create-album":
        album = app.create_album(args.name)
        print(f"Created album {album.id}: {album.name}")
        return 0

    if args.command == "add-to-album":
        app.add_to_album(args.album_id, args.paths)
        return 0

    if args.command == "favorite":
        app.toggle_favorite(args.path, not args.off)
        return 0

    if args.command == "delete":
        removed = app.delete_photos(args.paths)
        print(f"Deleted {removed} photos")
        return 0

    if args.command == "stats":
        for year, count in app.get_photo_counts_by_year():
            print(f"{year}: {count}")
        return 0

    return 2

def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)

    db_path = args.db if args.db else config.get_db_path()
    setup_logging(db_path.expanduser().resolve().parent, args.verbose)

    try:
        code = run(args)
    except PhotoLibraryError as e:
        logging.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)
    sys.exit(code)

if __name__ == "__main__":
    main()
