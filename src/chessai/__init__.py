"""Chess engine core: packed boards, legal move generation and negamax search."""

__version__ = "0.1.0"
