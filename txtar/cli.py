"""
txtar CLI - pack, unpack and inspect txtar archives.

Commands:
  txtar create   - Pack files and directories into an archive
  txtar extract  - Unpack an archive into a directory
  txtar list     - List the files in an archive
  txtar apply    - Apply edit sections and write the resulting archive
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from txtar.errors import TxtarError
from txtar.spec import DEFAULT_LINE_WIDTH, EXTENSION, MAX_ARCHIVE_SIZE


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _collect_inputs(paths: list[str]) -> list[tuple[str, Path]]:
    """Expand CLI paths into (archive name, file path) pairs, sorted per directory."""
    entries: list[tuple[str, Path]] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            for child in sorted(p for p in path.rglob("*") if p.is_file()):
                entries.append((child.relative_to(path).as_posix(), child))
        elif path.is_file():
            entries.append((path.name, path))
        else:
            _fail(f"File not found: {raw}")
    return entries


def _safe_target(root: Path, name: str) -> Path:
    """Resolve an archive name under ``root``, refusing escapes."""
    target = (root / name).resolve()
    if root not in target.parents:
        _fail(f"Refusing to extract {name!r} outside {root}")
    return target


def cmd_create(args: argparse.Namespace) -> None:
    """Pack files into a new archive."""
    from txtar.archive import Archive, File
    from txtar.writer import Encoder

    archive = Archive(preamble=args.comment or "")
    try:
        for name, path in _collect_inputs(args.paths):
            archive.add_file(File(name, path.read_bytes()))
        written = Encoder(line_width=args.line_width).write(archive, args.output)
    except (ValueError, OSError) as e:
        _fail(str(e))
    print(f"Wrote {args.output} ({len(archive)} files, {written} bytes)")


def cmd_extract(args: argparse.Namespace) -> None:
    """Unpack an archive into a directory."""
    from txtar.reader import read

    try:
        archive = read(args.archive, max_size=args.max_size)
    except (TxtarError, OSError) as e:
        _fail(str(e))

    root = Path(args.directory).resolve()
    for f in archive.files():
        if f.is_edit and not args.include_edits:
            continue
        target = _safe_target(root, f.name)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(f.content)
        except OSError as e:
            _fail(f"Cannot extract {f.name!r}: {e}")
        print(f"  {f.name}")


def cmd_list(args: argparse.Namespace) -> None:
    """List the files in an archive."""
    from txtar.classify import needs_base64
    from txtar.reader import read

    try:
        archive = read(args.archive, max_size=args.max_size)
    except (TxtarError, OSError) as e:
        _fail(str(e))

    for f in archive.files():
        if f.is_edit:
            kind = "edit"
        else:
            kind = "base64" if needs_base64(f.content) else "plain"
        print(f"{kind:<7} {len(f.content):>10}  {f.name}")
    if archive.has_duplicate_names():
        print(f"warning: duplicate names: {', '.join(archive.duplicate_names())}", file=sys.stderr)


def cmd_apply(args: argparse.Namespace) -> None:
    """Resolve edit sections, loading referenced archives relative to --archive-dir."""
    from txtar.edits import apply_edits
    from txtar.reader import read
    from txtar.writer import Encoder

    archive_path = Path(args.archive)
    base_dir = Path(args.archive_dir) if args.archive_dir else archive_path.parent

    def lookup(ref: str):
        return read(base_dir / ref, max_size=args.max_size)

    try:
        archive = read(archive_path, max_size=args.max_size)
        result = apply_edits(archive, lookup)
        output = args.output or str(archive_path)
        Encoder(line_width=args.line_width).write(result, output)
    except (ValueError, OSError) as e:
        _fail(str(e))
    print(f"Wrote {output} ({len(result)} files)")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="txtar",
        description="Plain-text multi-file archives",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    p_create = sub.add_parser("create", help="Pack files and directories into an archive")
    p_create.add_argument("paths", nargs="+", help="Files or directories to pack")
    p_create.add_argument("-o", "--output", required=True, help=f"Output archive ({EXTENSION})")
    p_create.add_argument("--comment", help="Preamble text placed before the first file")
    p_create.add_argument("--line-width", type=int, default=DEFAULT_LINE_WIDTH,
                          help="Base64 line width")

    p_extract = sub.add_parser("extract", help="Unpack an archive into a directory")
    p_extract.add_argument("archive", help="Archive to unpack")
    p_extract.add_argument("-C", "--directory", default=".", help="Destination directory")
    p_extract.add_argument("--include-edits", action="store_true",
                           help="Also write edit sections as files")

    p_list = sub.add_parser("list", help="List files in an archive")
    p_list.add_argument("archive", help="Archive to inspect")

    p_apply = sub.add_parser("apply", help="Apply edit sections")
    p_apply.add_argument("archive", help="Archive holding edit sections")
    p_apply.add_argument("-o", "--output", help="Output archive (default: overwrite input)")
    p_apply.add_argument("--archive-dir", help="Directory for archives referenced by edits")
    p_apply.add_argument("--line-width", type=int, default=DEFAULT_LINE_WIDTH,
                         help="Base64 line width")

    for p in (p_extract, p_list, p_apply):
        p.add_argument("--max-size", type=int, default=MAX_ARCHIVE_SIZE,
                       help="Maximum archive size in bytes")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(0)

    commands = {
        "create": cmd_create,
        "extract": cmd_extract,
        "list": cmd_list,
        "apply": cmd_apply,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
