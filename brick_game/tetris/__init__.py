from enum import IntEnum
import random
import numpy as np
from typing import Iterator, Optional, Tuple

Vector2 = Tuple[int, int]

DEFAULT_BOARD_SIZE: Vector2 = (10, 20)
FORM_SIZE = 4


class Color(IntEnum):
    Empty = 0
    Yellow = 1
    Magenta = 2
    Green = 3
    Red = 4
    Cyan = 5
    Blue = 6
    White = 7

    @classmethod
    def random(cls, rand: random.Random) -> 'Color':
        return Color(rand.randint(1, len(Color) - 1))

    def __str__(self):
        return ' YMGRCBW'[self]

    def __format__(self, format_spec):
        return str(self)


class Grid:
    """Playfield cells, row 0 at the top.

    Cells are stored as ``cells[y, x]`` holding a ``Color`` value.
    """
    cells: np.ndarray

    @classmethod
    def by_size(cls, size: Vector2):
        g = cls()
        g.cells = np.zeros((size[1], size[0]), dtype='B')
        return g

    @classmethod
    def by_cells(cls, cells):
        g = cls()
        g.cells = np.array(cells, dtype='B')
        return g

    def __eq__(self, rhs):
        return np.array_equal(self.cells, rhs.cells)

    def width(self) -> int:
        return self.cells.shape[1]

    def height(self) -> int:
        return self.cells.shape[0]

    def is_empty(self) -> bool:
        return not self.cells.any()

    def clear(self):
        self.cells[:] = Color.Empty

    def can_get_cell(self, pos: Vector2) -> bool:
        return 0 <= pos[0] < self.width() and 0 <= pos[1] < self.height()

    def get_cell(self, pos: Vector2) -> Optional[Color]:
        return Color(self.cells[pos[1], pos[0]]) \
            if self.can_get_cell(pos) else None

    def set_cell(self, pos: Vector2, color: Color):
        self.cells[pos[1], pos[0]] = color

    def can_put(self, pos: Vector2, form: np.ndarray) -> bool:
        """Checks whether ``form`` anchored at ``pos`` fits in the grid.

        Cells above the top edge never collide, so a piece may stick out
        of the board while it is being spawned.
        """
        for x, y in occupied_cells(form, pos):
            if x < 0 or x >= self.width() or y >= self.height():
                return False
            if y >= 0 and self.cells[y, x] != Color.Empty:
                return False
        return True

    def put(self, pos: Vector2, form: np.ndarray, color: Color):
        for x, y in occupied_cells(form, pos):
            if y < 0:
                continue
            assert 0 <= x < self.width()
            assert y < self.height()
            self.set_cell((x, y), color)

    def is_row_filled(self, y: int) -> bool:
        return bool(self.cells[y].all())

    def drop_filled_rows(self) -> int:
        n = 0
        y = 0
        while y < self.height():
            if not self.is_row_filled(y):
                y += 1
                continue
            # shift everything above down by one, then look at y again
            self.cells[1:y + 1] = self.cells[0:y].copy()
            self.cells[0] = Color.Empty
            n += 1
        return n


def occupied_cells(form: np.ndarray, pos: Vector2 = (0, 0)) \
        -> Iterator[Vector2]:
    for fy, fx in zip(*np.nonzero(form)):
        yield pos[0] + int(fx), pos[1] + int(fy)


def gen_form(rows):
    form = np.zeros((FORM_SIZE, FORM_SIZE), dtype='B')
    cells = np.array(rows, dtype='B')
    form[:cells.shape[0], :cells.shape[1]] = cells
    return form


SHAPE_FORMS = [
    # I
    gen_form([
        [0, 0, 0, 0],
        [1, 1, 1, 1],
    ]),
    # T
    gen_form([
        [0, 1, 0],
        [1, 1, 1],
    ]),
    # O
    gen_form([
        [0, 0, 0],
        [0, 1, 1],
        [0, 1, 1],
    ]),
    # Z
    gen_form([
        [1, 1, 0],
        [0, 1, 1],
    ]),
    # S
    gen_form([
        [0, 1, 1],
        [1, 1, 0],
    ]),
    # L
    gen_form([
        [1, 0, 0],
        [1, 1, 1],
    ]),
    # J
    gen_form([
        [0, 0, 1],
        [1, 1, 1],
    ]),
]


class Shape(IntEnum):
    I = 0  # noqa: E741
    T = 1
    O = 2  # noqa: E741
    Z = 3
    S = 4
    L = 5
    J = 6

    def form(self) -> np.ndarray:
        return SHAPE_FORMS[self].copy()

    def rotation_size(self) -> int:
        # I and O turn inside the whole 4x4 block, the rest inside 3x3.
        if self is Shape.I or self is Shape.O:
            return FORM_SIZE
        return FORM_SIZE - 1

    @classmethod
    def random(cls, rand: random.Random) -> 'Shape':
        return Shape(rand.randrange(len(Shape)))

    def __str__(self):
        return 'ITOZSLJ'[self]

    def __format__(self, format_spec):
        return str(self)


def rotate_form(form: np.ndarray, shape: Shape) -> np.ndarray:
    """Rotates ``form`` 90 degrees clockwise.

    Only the active ``n x n`` block of the shape is turned:
    ``new[x][y] = old[n - 1 - y][x]``.
    """
    n = shape.rotation_size()
    rotated = np.zeros_like(form)
    rotated[:n, :n] = np.rot90(form[:n, :n], -1)
    return rotated


KICK_OFFSETS = (-1, 1, -2, 2)


class Piece:
    shape: Shape
    color: Color
    form: np.ndarray
    pos: Vector2

    def __init__(self, shape: Shape, color: Color, pos: Vector2 = (0, 0),
                 form: Optional[np.ndarray] = None):
        self.shape = shape
        self.color = color
        self.pos = pos
        self.form = shape.form() if form is None else form

    def move(self, dx=0, dy=0) -> 'Piece':
        self.pos = (self.pos[0] + dx, self.pos[1] + dy)
        return self

    def collides(self, grid: Grid, dx=0, dy=0) -> bool:
        return not grid.can_put((self.pos[0] + dx, self.pos[1] + dy),
                                self.form)

    def shift(self, grid: Grid, dx=0, dy=0) -> bool:
        if self.collides(grid, dx, dy):
            return False
        self.move(dx, dy)
        return True

    def rotate(self, grid: Grid) -> bool:
        """Rotates clockwise, nudging sideways if the turn is blocked.

        Returns False and leaves the piece untouched when no kick fits.
        """
        backup = self.form
        self.form = rotate_form(self.form, self.shape)
        if not self.collides(grid):
            return True
        for dx in KICK_OFFSETS:
            if self.shift(grid, dx):
                return True
        self.form = backup
        return False

    def merge_into(self, grid: Grid):
        grid.put(self.pos, self.form, self.color)

    def __str__(self):
        return '{}:{}:{},{}'.format(
            self.shape, self.color.name, self.pos[0], self.pos[1])

    def __format__(self, format_spec):
        return str(self)


class PieceGenerator:
    rand: random.Random

    def __init__(self, rand: Optional[random.Random] = None):
        self.rand = random.Random() if rand is None else rand

    def generate(self) -> Piece:
        shape = Shape.random(self.rand)
        return Piece(shape, Color.random(self.rand))


SCORE_TABLE = {1: 100, 2: 300, 3: 700, 4: 1500}
POINTS_PER_LEVEL = 600
MAX_LEVEL = 10
INITIAL_SPEED = 22


def score_for(num_cleared_lines: int) -> int:
    return SCORE_TABLE.get(num_cleared_lines, 0)


def level_for(score: int) -> int:
    return min(MAX_LEVEL, score // POINTS_PER_LEVEL + 1)


def speed_for(level: int) -> int:
    """Number of ticks between two automatic falls."""
    return INITIAL_SPEED - 2 * level
