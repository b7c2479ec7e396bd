#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import os
import sys
import time

# Allow running this script directly via `python scripts/perft.py`
# without installing the package.
SRC_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from chessai.engine.board import STARTPOS_FEN, parse_fen
from chessai.engine.movegen import all_possible_moves
from chessai.engine.perft import perft


def main() -> None:
    parser = argparse.ArgumentParser(description="Count legal move tree leaves for a FEN")
    parser.add_argument(
        "--fen", type=str, default=STARTPOS_FEN, help="FEN string (default: startpos)"
    )
    parser.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    parser.add_argument(
        "--divide",
        action="store_true",
        help="Print the leaf count below each root child as its FEN",
    )
    args = parser.parse_args()

    board, color = parse_fen(args.fen)
    start = time.perf_counter()
    if args.divide and args.depth > 0:
        nodes = 0
        for child in all_possible_moves(board, color):
            count = perft(child, color.other, args.depth - 1)
            nodes += count
            print(f"{child.to_fen(color.other)}: {count}")
    else:
        nodes = perft(board, color, args.depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")


if __name__ == "__main__":
    main()
