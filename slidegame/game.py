import logging
import numpy as np
from typing import List, Optional, Tuple

from slidegame.config import BoardConfig

logger = logging.getLogger(__name__)

PRIMITIVE_MOVES = ['up', 'down', 'left', 'right']

# Diagonals are two axis passes, vertical first: no diagonal-adjacency merging.
COMPOSITE_MOVES = {
    'up_left': ('up', 'left'),
    'up_right': ('up', 'right'),
    'down_left': ('down', 'left'),
    'down_right': ('down', 'right'),
}

DIRECTIONS = PRIMITIVE_MOVES + list(COMPOSITE_MOVES)

SPAWN_VALUE = 1


class SlideGame:
    """
    Rule engine for a tile-merging slide game on a rows x columns grid.

    Tiles start at 1 and merge by summing equal neighbours. A move keeps merging
    and compacting each line until nothing more can merge, so [1, 1, 1, 1]
    becomes [4, 0, 0, 0] in a single move. Only state-changing moves spawn a tile.
    """

    def __init__(self, rows: int = 4, columns: int = 4, seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.config = BoardConfig(rows, columns)
        self.reset()

    @property
    def rows(self) -> int:
        return self.config.rows

    @property
    def columns(self) -> int:
        return self.config.columns

    def reset(self, rows: Optional[int] = None, columns: Optional[int] = None,
              seed: Optional[int] = None):
        """Start a new session, optionally with new dimensions, holding a single 1 tile."""
        config = BoardConfig(
            self.config.rows if rows is None else rows,
            self.config.columns if columns is None else columns,
        )
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self.config = config
        self.board = np.zeros(config.shape, dtype=np.int64)
        self.score = 0
        self.move_count = 0
        self._spawn_pending = True
        self.maybe_spawn()
        logger.debug("new %dx%d game\n%s", self.rows, self.columns, self)

    # ---------- Spawning ----------

    def _add_random_tile(self) -> Optional[Tuple[int, int, int]]:
        """Add a 1 tile to a uniformly chosen empty cell; return (row, col, value) or None if full."""
        empty = np.argwhere(self.board == 0)
        if len(empty) == 0:
            return None
        i, j = empty[self.rng.integers(len(empty))]
        self.board[i, j] = SPAWN_VALUE
        return (int(i), int(j), SPAWN_VALUE)

    def maybe_spawn(self) -> Optional[Tuple[int, int, int]]:
        """Spawn a tile if the last move changed the grid and a cell is free."""
        if not self._spawn_pending:
            return None
        placed = self._add_random_tile()
        if placed is None:
            logger.debug("no empty cell, spawn skipped")
            return None
        self._spawn_pending = False
        logger.debug("spawned %d at (%d, %d)", placed[2], placed[0], placed[1])
        return placed

    # ---------- Axis merge ----------

    @staticmethod
    def _transform(arr: np.ndarray, direction: str) -> Tuple[np.ndarray, bool]:
        """Return a view of arr in which `direction` becomes a merge toward column 0."""
        rotated = False
        out = arr
        if direction in ['up', 'down']:
            out = out.T
            rotated = True
        if direction in ['down', 'right']:
            out = np.flip(out, axis=1)
        return out, rotated

    @staticmethod
    def _inverse_transform(arr: np.ndarray, direction: str, rotated: bool) -> np.ndarray:
        out = arr
        if direction in ['down', 'right']:
            out = np.flip(out, axis=1)
        if rotated:
            out = out.T
        return out

    @staticmethod
    def _is_stable(lines: np.ndarray) -> bool:
        """True when no far cell could slide into or merge with its near neighbour."""
        near, far = lines[..., :-1], lines[..., 1:]
        return not bool(np.any((far != 0) & ((near == 0) | (near == far))))

    @staticmethod
    def _merge_pass(line: np.ndarray) -> int:
        """Merge equal neighbours toward index 0 in place, once each; return the value created."""
        gained = 0
        i = 0
        while i < len(line) - 1:
            if line[i] != 0 and line[i] == line[i + 1]:
                line[i] += line[i + 1]
                line[i + 1] = 0
                gained += int(line[i])
                # the emptied cell cannot take part in another merge this pass
                i += 2
            else:
                i += 1
        return gained

    @staticmethod
    def _compact(line: np.ndarray):
        non_zero = line[line != 0]
        line[:] = 0
        line[:len(non_zero)] = non_zero

    @classmethod
    def _cascade_line(cls, line: np.ndarray) -> int:
        """Merge then compact until the line is stable."""
        gained = 0
        while not cls._is_stable(line):
            gained += cls._merge_pass(line)
            cls._compact(line)
        return gained

    @classmethod
    def _slide(cls, board: np.ndarray, direction: str) -> Tuple[np.ndarray, int]:
        """Apply one primitive move to a copy of board; return (new_board, value_created)."""
        vboard, rotated = cls._transform(board.copy(), direction)
        if cls._is_stable(vboard):
            return board.copy(), 0

        total_gain = 0
        for r in range(vboard.shape[0]):
            # vboard[r] is a view, so the merge writes through to the copy
            total_gain += cls._cascade_line(vboard[r])

        return cls._inverse_transform(vboard, direction, rotated).copy(), total_gain

    @classmethod
    def _resolve(cls, board: np.ndarray, direction: str) -> Tuple[np.ndarray, int]:
        if direction in COMPOSITE_MOVES:
            total_gain = 0
            for step in COMPOSITE_MOVES[direction]:
                board, gain = cls._slide(board, step)
                total_gain += gain
            return board, total_gain
        if direction in PRIMITIVE_MOVES:
            return cls._slide(board, direction)
        raise ValueError(f"Unknown direction {direction!r}; expected one of {DIRECTIONS}")

    # ---------- Public moves and queries ----------

    def move(self, direction: str) -> bool:
        """
        Perform a move in one of the eight DIRECTIONS.
        Returns True if the grid changed, in which case one tile has been spawned.
        """
        new_board, gain = self._resolve(self.board, direction)
        if np.array_equal(new_board, self.board):
            return False

        self.board = new_board
        self.score += gain
        self.move_count += 1
        self._spawn_pending = True
        self.maybe_spawn()
        logger.debug("%s\n%s", direction, self)
        return True

    def get_valid_moves(self) -> List[str]:
        """Return the directions that would change the grid, in DIRECTIONS order."""
        return [d for d in DIRECTIONS if self._is_move_possible(d)]

    def get_valid_action_mask(self) -> np.ndarray:
        """Boolean mask aligned with DIRECTIONS."""
        return np.array([self._is_move_possible(d) for d in DIRECTIONS], dtype=bool)

    def _is_move_possible(self, direction: str) -> bool:
        new_board, _ = self._resolve(self.board, direction)
        return not np.array_equal(new_board, self.board)

    def is_terminal(self) -> bool:
        """Check if the grid is full and no two 4-adjacent cells are equal."""
        board = self.board
        if np.any(board == 0):
            return False
        if np.any(board[:, :-1] == board[:, 1:]):
            return False
        return not bool(np.any(board[:-1, :] == board[1:, :]))

    def cell_value(self, row: int, col: int) -> int:
        if not (0 <= row < self.rows and 0 <= col < self.columns):
            raise IndexError(f"cell ({row}, {col}) is outside the {self.rows}x{self.columns} grid")
        return int(self.board[row, col])

    def get_state(self) -> np.ndarray:
        """Get current grid as a numpy array copy."""
        return self.board.copy()

    def max_tile(self) -> int:
        return int(np.max(self.board))

    def dump(self) -> str:
        """Rows of space-separated integers, one row per line."""
        return "\n".join(" ".join(str(v) for v in row) for row in self.board.tolist())

    def __str__(self):
        return self.dump()
