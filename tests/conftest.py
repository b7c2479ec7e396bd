import os
import sys

import pytest


# Ensure the repository's src/ is on sys.path for `import chessai`
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_PATH = os.path.join(REPO_ROOT, "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from chessai.engine.board import Board, initial_board  # noqa: E402


@pytest.fixture
def start_board() -> Board:
    return initial_board()


@pytest.fixture
def empty_board() -> Board:
    return Board()
