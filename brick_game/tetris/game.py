from enum import IntEnum
from logging import getLogger
import random
import time
from typing import Any, Callable, Dict, NamedTuple, Optional
import numpy as np
from brick_game.tetris import (
    Color, DEFAULT_BOARD_SIZE, FORM_SIZE, INITIAL_SPEED, Grid, Piece,
    PieceGenerator, Vector2, level_for, score_for, speed_for,
)
from brick_game.tetris.highscore import HighScoreStore, MemoryHighScoreStore

logger = getLogger(__name__)

DEFAULT_HOLD_DELAY = 2
DEFAULT_GAME_OVER_GRACE_PERIOD = 5.0
DEFAULT_TICK_INTERVAL = 0.08


def check_number(name: str, value, types: tuple):
    # bool is a subclass of int but never a valid setting
    if isinstance(value, bool) or not isinstance(value, types):
        raise ValueError('{} must be {}: {!r}'.format(
            name, ' or '.join(t.__name__ for t in types), value))


class Config(NamedTuple):
    width: int = DEFAULT_BOARD_SIZE[0]
    height: int = DEFAULT_BOARD_SIZE[1]
    hold_delay: int = DEFAULT_HOLD_DELAY
    game_over_grace_period: float = DEFAULT_GAME_OVER_GRACE_PERIOD
    tick_interval: float = DEFAULT_TICK_INTERVAL  # seconds per tick

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Config':
        if not isinstance(d, dict):
            raise ValueError('config must be an object: {!r}'.format(d))
        unknown = set(d) - set(cls._fields)
        if len(unknown) > 0:
            raise ValueError('unknown config keys: {}'.format(
                ', '.join(sorted(unknown))))
        c = cls(**d)
        for k in ('width', 'height', 'hold_delay'):
            check_number(k, getattr(c, k), (int,))
        for k in ('game_over_grace_period', 'tick_interval'):
            check_number(k, getattr(c, k), (int, float))
        if c.width < FORM_SIZE or c.height < FORM_SIZE:
            raise ValueError('board must be at least {0}x{0}: {1}x{2}'.format(
                FORM_SIZE, c.width, c.height))
        if c.hold_delay < 1:
            raise ValueError('hold_delay must be positive: {}'.format(
                c.hold_delay))
        if c.game_over_grace_period < 0 or c.tick_interval < 0:
            raise ValueError('time values must not be negative')
        return c


class PlayState(IntEnum):
    START = 0
    PLAY = 1
    PAUSE = 2
    GAME_OVER = 3


class UserAction(IntEnum):
    NONE = 0
    START = 1
    PAUSE = 2
    TERMINATE = 3
    LEFT = 4
    RIGHT = 5
    DOWN = 6
    DROP = 7
    ACTION = 8
    MUTE = 9


# Actions repeated while their key is held, throttled by the input gate.
# DROP is left out on purpose: holding it switches on fast fall instead.
REPEATABLE_ACTIONS = (UserAction.LEFT, UserAction.RIGHT, UserAction.DOWN,
                      UserAction.ACTION)


class GameState:
    grid: Grid
    current_piece: Optional[Piece] = None
    next_piece: Optional[Piece] = None
    score: int = 0
    high_score: int = 0
    level: int = 1
    speed: int = INITIAL_SPEED
    lines_cleared: int = 0
    play_state: PlayState = PlayState.START
    game_over_time: Optional[float] = None
    fall_timer: int = 0
    hold_timer: int = 0
    drop_held: bool = False
    muted: bool = False

    def __init__(self, grid: Grid, high_score=0):
        self.grid = grid
        self.high_score = high_score


class Snapshot(NamedTuple):
    cells: np.ndarray
    piece_form: np.ndarray
    piece_color: Color
    piece_pos: Vector2
    next_form: np.ndarray
    next_color: Color
    score: int
    high_score: int
    level: int
    lines_cleared: int
    play_state: PlayState

    def __str__(self):
        h, w = self.cells.shape
        overlay = self.cells.copy()
        for fy, fx in zip(*np.nonzero(self.piece_form)):
            x = self.piece_pos[0] + fx
            y = self.piece_pos[1] + fy
            if 0 <= x < w and 0 <= y < h:
                overlay[y, x] = self.piece_color
        lines = []
        lines.append('{} SCORE:{} HI:{} LV:{} LINES:{}'.format(
            self.play_state.name, self.score, self.high_score, self.level,
            self.lines_cleared))
        lines.append('+{}+'.format('-' * w))
        for y in range(h):
            row = ''.join(str(Color(c)) for c in overlay[y])
            lines.append('|{}|{:02}'.format(row, y))
        lines.append('+{}+'.format('-' * w))
        for fy in range(FORM_SIZE):
            row = ''.join(str(self.next_color) if c else ' '
                          for c in self.next_form[fy])
            lines.append(' {}'.format(row))
        return '\n'.join(lines)


def read_only(a: np.ndarray) -> np.ndarray:
    a = a.copy()
    a.setflags(write=False)
    return a


class Game:
    """Owns the GameState and drives it by user actions and ticks."""
    state: GameState

    def __init__(self, config: Config = Config(),
                 rand: Optional[random.Random] = None,
                 store: Optional[HighScoreStore] = None,
                 clock: Callable[[], float] = time.time,
                 on_mute: Optional[Callable[[bool], None]] = None):
        self.config = config
        self.generator = PieceGenerator(rand)
        self.store = MemoryHighScoreStore() if store is None else store
        self.clock = clock
        self.on_mute = on_mute
        grid = Grid.by_size((config.width, config.height))
        self.state = GameState(grid, high_score=self.store.load())
        self.spawn()

    def __str__(self):
        return str(self.snapshot())

    def spawn_pos(self) -> Vector2:
        return (self.config.width - FORM_SIZE) // 2, 0

    def collides(self, dx=0, dy=0) -> bool:
        return self.state.current_piece.collides(self.state.grid, dx, dy)

    def spawn(self):
        s = self.state
        if s.next_piece is not None:
            s.current_piece = s.next_piece
        else:
            s.current_piece = self.generator.generate()
        s.next_piece = self.generator.generate()
        s.current_piece.pos = self.spawn_pos()
        s.fall_timer = 0
        s.hold_timer = 0
        s.drop_held = False
        if self.collides():
            self.game_over()

    def reset(self):
        s = self.state
        s.grid.clear()
        s.score = 0
        s.level = 1
        s.speed = INITIAL_SPEED
        s.lines_cleared = 0
        s.game_over_time = None
        s.fall_timer = 0
        s.hold_timer = 0
        s.drop_held = False

    def update_high_score(self):
        s = self.state
        if s.score > s.high_score:
            s.high_score = s.score
            self.store.save(s.high_score)

    def apply_clear(self, num_cleared_lines: int):
        s = self.state
        s.lines_cleared += num_cleared_lines
        s.score += score_for(num_cleared_lines)
        self.update_high_score()

    def update_level_and_speed(self):
        s = self.state
        s.level = level_for(s.score)
        s.speed = speed_for(s.level)

    def land(self):
        s = self.state
        s.current_piece.merge_into(s.grid)
        n = s.grid.drop_filled_rows()
        if n > 0:
            logger.debug('{} line(s) cleared by {}'.format(
                n, s.current_piece))
        self.apply_clear(n)
        self.update_level_and_speed()
        self.spawn()
        logger.debug('game:\n{}'.format(self))

    def fall(self):
        s = self.state
        if not s.current_piece.shift(s.grid, 0, 1):
            self.land()

    def game_over(self):
        s = self.state
        s.play_state = PlayState.GAME_OVER
        s.game_over_time = self.clock()
        self.update_high_score()
        logger.info('game over: score: {}, level: {}, lines: {}'.format(
            s.score, s.level, s.lines_cleared))

    def toggle_pause(self):
        s = self.state
        if s.play_state is PlayState.PLAY:
            s.play_state = PlayState.PAUSE
        elif s.play_state is PlayState.PAUSE:
            s.play_state = PlayState.PLAY

    def toggle_mute(self):
        s = self.state
        s.muted = not s.muted
        if self.on_mute is not None:
            self.on_mute(s.muted)

    def should_repeat(self, held: bool) -> bool:
        s = self.state
        if not held:
            s.hold_timer = 0
            return True
        s.hold_timer += 1
        if s.hold_timer < self.config.hold_delay:
            return False
        s.hold_timer = 0
        return True

    def apply_action(self, action, held=False):
        try:
            action = UserAction(action)
        except ValueError:
            return
        s = self.state

        if action is UserAction.START:
            if s.play_state in (PlayState.START, PlayState.GAME_OVER):
                if s.play_state is PlayState.GAME_OVER:
                    self.reset()
                s.play_state = PlayState.PLAY
                self.spawn()
        elif action is UserAction.PAUSE:
            self.toggle_pause()
        elif action is UserAction.TERMINATE:
            self.game_over()
        elif action is UserAction.MUTE:
            self.toggle_mute()

        if s.play_state is not PlayState.PLAY:
            return

        if action in REPEATABLE_ACTIONS and not self.should_repeat(held):
            return
        if action is UserAction.LEFT:
            s.current_piece.shift(s.grid, -1, 0)
        elif action is UserAction.RIGHT:
            s.current_piece.shift(s.grid, 1, 0)
        elif action is UserAction.DOWN:
            s.current_piece.shift(s.grid, 0, 1)
        elif action is UserAction.DROP:
            s.drop_held = held
            self.fall()
        elif action is UserAction.ACTION:
            s.current_piece.rotate(s.grid)

    def advance(self) -> GameState:
        s = self.state
        if s.play_state is not PlayState.PLAY:
            return s
        s.fall_timer += 1
        speed = 0 if s.drop_held else s.speed
        if s.fall_timer >= speed:
            s.fall_timer = 0
            self.fall()
        return s

    def snapshot(self) -> Snapshot:
        s = self.state
        return Snapshot(
            read_only(s.grid.cells),
            read_only(s.current_piece.form),
            s.current_piece.color,
            s.current_piece.pos,
            read_only(s.next_piece.form),
            s.next_piece.color,
            s.score,
            s.high_score,
            s.level,
            s.lines_cleared,
            s.play_state,
        )


class Session:
    """The outer loop: one step per tick until the game asks to stop."""

    def __init__(self, game: Game):
        self.game = game
        self.running = True
        self.num_ticks = 0

    def step(self, action=UserAction.NONE, held=False) -> bool:
        if not self.running:
            return False
        game = self.game
        was_game_over = game.state.play_state is PlayState.GAME_OVER
        game.apply_action(action, held)
        game.advance()
        self.num_ticks += 1
        if game.state.play_state is PlayState.GAME_OVER:
            self.check_exit(action, was_game_over)
        return self.running

    def check_exit(self, action, was_game_over: bool):
        game = self.game
        elapsed = game.clock() - game.state.game_over_time
        if elapsed >= game.config.game_over_grace_period:
            self.running = False
        elif was_game_over and action == UserAction.TERMINATE:
            self.running = False
