"""
Board CLI
=========

Works on a file-backed board directly, without the API server.

COMMANDS:
- list:      Print cards in insertion order
- add:       Create a card
- delete:    Delete a card by id
- import:    Replace the board from a JSON file
- export:    Print the collection as pretty JSON
- organize:  Set axis modes and run a layout pass

USAGE:
    python -m instaplot.cli --storage-dir data/board [COMMAND] [ARGS]
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from .contracts.base import AxisAttribute, ErrorCode
from .engine import BoardConfig, PlotBoard
from .storage import StorageConfig

AXIS_CHOICES = [a.value for a in AxisAttribute]


def open_board(storage_dir: str) -> PlotBoard:
    config = BoardConfig(storage=StorageConfig(backend_type="file", storage_dir=storage_dir))
    return PlotBoard(config)


def cmd_list(board: PlotBoard, args) -> int:
    cards = board.cards()
    if not cards:
        print("No cards yet.")
        return 0
    for card in cards:
        flag = "LIE  " if card.is_lie else "TRUTH"
        print(f"{card.id:>16}  {flag}  {card.time}  {card.actor} @ {card.place}"
              f"  ({card.x:.1f}, {card.y:.1f})")
        print(f"{'':>16}  {card.claims}")
    return 0


def cmd_add(board: PlotBoard, args) -> int:
    result = board.create_card({
        "time": args.time,
        "actor": args.actor,
        "place": args.place,
        "claims": args.claims,
        "is_lie": args.lie,
    })
    if result.is_failure:
        print(f"[!] {result.error.message}", file=sys.stderr)
        return 1
    print(f"[+] Created card {result.value.id}")
    return 0


def cmd_delete(board: PlotBoard, args) -> int:
    if not board.delete_card(args.card_id):
        print(f"[!] No card with id {args.card_id}", file=sys.stderr)
        return 1
    print(f"[+] Deleted card {args.card_id}")
    return 0


def cmd_import(board: PlotBoard, args) -> int:
    with open(args.file, 'r', encoding='utf-8') as f:
        text = f.read()

    result = board.import_text(text, confirmed=args.yes)
    if result.is_failure and result.error.code == ErrorCode.CONFIRMATION_REQUIRED:
        print(f"[!] {result.error.message}")
        answer = input("Do you want to continue? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            print("[*] Import cancelled.")
            return 1
        result = board.import_text(text, confirmed=True)

    if result.is_failure:
        print(f"[!] {result.error.message}", file=sys.stderr)
        return 1

    report = result.value
    print(report.summary())
    return 0 if report.replaced or not report.errors else 1


def cmd_export(board: PlotBoard, args) -> int:
    print(board.export_json())
    return 0


def cmd_organize(board: PlotBoard, args) -> int:
    changed = board.set_axes(x=args.x, y=args.y)
    if not changed:
        board.organize()
    print(f"[+] Organized {len(board.records)} cards "
          f"(x={board.x_axis.value}, y={board.y_axis.value})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="InstaPlot board CLI")
    parser.add_argument(
        "--storage-dir",
        default=os.environ.get("INSTAPLOT_STORAGE_DIR", os.path.join("data", "board")),
        help="Directory holding the durable board file"
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List cards").set_defaults(func=cmd_list)

    p_add = sub.add_parser("add", help="Create a card")
    p_add.add_argument("--time", required=True)
    p_add.add_argument("--actor", required=True)
    p_add.add_argument("--place", required=True)
    p_add.add_argument("--claims", required=True)
    p_add.add_argument("--lie", action="store_true")
    p_add.set_defaults(func=cmd_add)

    p_del = sub.add_parser("delete", help="Delete a card")
    p_del.add_argument("card_id")
    p_del.set_defaults(func=cmd_delete)

    p_imp = sub.add_parser("import", help="Replace the board from a JSON file")
    p_imp.add_argument("file")
    p_imp.add_argument("-y", "--yes", action="store_true", help="Skip the replace confirmation")
    p_imp.set_defaults(func=cmd_import)

    sub.add_parser("export", help="Print cards as JSON").set_defaults(func=cmd_export)

    p_org = sub.add_parser("organize", help="Lay cards out along two axes")
    p_org.add_argument("--x", choices=AXIS_CHOICES, default="place")
    p_org.add_argument("--y", choices=AXIS_CHOICES, default="time")
    p_org.set_defaults(func=cmd_organize)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(message)s"
    )
    board = open_board(args.storage_dir)
    return args.func(board, args)


if __name__ == "__main__":
    sys.exit(main())
