from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .codec import decode_record_detailed, read_header
from .config import SaveGameConfig
from .errors import MalformedRecordError
from .logging_config import configure_logging
from .manager import SaveGameManager

log = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="savegame",
        description="Inspect and manage framed save data files.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Enable verbose debug logging.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv).")
    parser.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Path to a JSON save config file.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    info = sub.add_parser("info", help="Show the record header of a save file.")
    info.add_argument("file", type=Path)

    load = sub.add_parser("load", help="Print the payload saved under NAME.")
    load.add_argument("name")
    load.add_argument("--store", type=Path, default=None, help="Store directory.")
    load.add_argument("--raw", action="store_true", help="Write payload bytes unchanged.")

    save = sub.add_parser("save", help="Save text from --file or stdin under NAME.")
    save.add_argument("name")
    save.add_argument("--store", type=Path, default=None, help="Store directory.")
    save.add_argument("--file", dest="input_file", type=Path, default=None)
    save.add_argument("--no-encrypt", dest="encrypt", action="store_false", default=None)
    save.add_argument("--compress", action="store_true", default=None)

    delete = sub.add_parser("delete", help="Delete the save data for NAME.")
    delete.add_argument("name")
    delete.add_argument("--store", type=Path, default=None, help="Store directory.")

    return parser.parse_args(argv)


def _cmd_info(args, config: SaveGameConfig) -> int:
    try:
        raw = args.file.read_bytes()
    except OSError as exc:
        print(f"Can not read {args.file}: {exc}", file=sys.stderr)
        return 1

    print(f"file:       {args.file}")
    print(f"size:       {len(raw)}")
    try:
        header = read_header(raw)
    except MalformedRecordError as exc:
        print(f"header:     malformed ({exc})")
    else:
        print(f"encrypted:  {header.encrypted}")
        print(f"compressed: {header.compressed}")
        print(f"content:    {header.content_length} bytes")

    with SaveGameManager(store_path=args.file.parent, config=config) as mgr:
        result = decode_record_detailed(raw, mgr.crypto_provider, mgr.compression_provider)
    if result.ok:
        print(f"layout:     {result.layout.value}")
        print(f"payload:    {len(result.payload)} bytes")
        return 0
    print(f"layout:     undecodable ({result.error})")
    return 1


def _cmd_load(args, mgr: SaveGameManager) -> int:
    data = mgr.load_game_data(args.name)
    if data is None:
        print(f"No save data for {args.name!r}", file=sys.stderr)
        return 1
    if args.raw:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return 0
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        print(f"Save data for {args.name!r} is not text; use --raw", file=sys.stderr)
        return 1
    print(text)
    return 0


def _cmd_save(args, mgr: SaveGameManager) -> int:
    try:
        if args.input_file is not None:
            text = args.input_file.read_text(encoding="utf-8")
        else:
            text = sys.stdin.read()
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Can not read input: {exc}", file=sys.stderr)
        return 1
    ok = mgr.save_game(args.name, text, encrypt=args.encrypt, compress=args.compress)
    if not ok:
        print(f"Failed to save {args.name!r}", file=sys.stderr)
        return 1
    log.info("Saved %r to %s", args.name, mgr.get_file_path(args.name))
    return 0


def _cmd_delete(args, mgr: SaveGameManager) -> int:
    if not mgr.delete_save_data(args.name):
        print(f"Nothing deleted for {args.name!r}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[list] = None) -> int:
    args = parse_args(argv)
    configure_logging(verbosity=args.verbose, debug=args.debug)
    config = SaveGameConfig.load(args.config_path)

    if args.command == "info":
        return _cmd_info(args, config)

    handlers = {"load": _cmd_load, "save": _cmd_save, "delete": _cmd_delete}
    with SaveGameManager(store_path=args.store, config=config) as mgr:
        return handlers[args.command](args, mgr)
