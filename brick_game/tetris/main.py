import argparse
import os
import json
import logging
import random
import sys
import time
from typing import Any, Dict, List, Optional, Tuple
from brick_game.tetris.game import Config, Game, Session, UserAction
from brick_game.tetris.highscore import FileHighScoreStore

logger = logging.getLogger(__name__)


def setup_logger(level: str = 'INFO', file: Optional[str] = None):
    log_format = '%(asctime)s %(levelname)s [%(name)s] %(message)s'
    logging.basicConfig(level=level.upper(), format=log_format,
                        filename=file)


CONFIG_FILE = 'config.json'
HIGHSCORE_FILE = 'highscore.txt'

DEFAULT_PROJECT_DIR = 'tmp/brick_game'
DEFAULT_MAX_TICKS = 10000


def load_json(file: str) -> Dict[str, Any]:
    with open(file, 'r') as fp:
        return json.load(fp)


def save_json(file: str, data: Dict[str, Any]):
    with open(file, 'w') as fp:
        json.dump(data, fp, indent=2)


def load_config(project_dir: str) -> Config:
    config_file = os.path.join(project_dir, CONFIG_FILE)
    if not os.path.exists(config_file):
        return Config()
    return Config.from_dict(load_json(config_file))


def highscore_file_of(args) -> str:
    if len(args.highscore_file) > 0:
        return args.highscore_file
    return os.path.join(args.project_dir, HIGHSCORE_FILE)


class SimulatedClock:
    """Clock advanced by hand, one tick interval per simulated frame."""

    def __init__(self, tick_interval: float, now=0.0):
        self.tick_interval = tick_interval
        self.now = now

    def __call__(self) -> float:
        return self.now

    def tick(self):
        self.now += self.tick_interval


POLICY_ACTIONS = [
    UserAction.NONE,
    UserAction.LEFT,
    UserAction.RIGHT,
    UserAction.DOWN,
    UserAction.ACTION,
    UserAction.DROP,
]


def random_policy(rand: random.Random) -> Tuple[UserAction, bool]:
    action = rand.choice(POLICY_ACTIONS)
    held = action is UserAction.DROP and rand.random() < 0.5
    return action, held


# --- init ---

def init(args):
    os.makedirs(args.project_dir, exist_ok=True)

    config_file = os.path.join(args.project_dir, CONFIG_FILE)
    if not args.force and os.path.exists(config_file):
        logger.fatal('%s already exists', config_file)
        sys.exit(1)

    try:
        config = Config.from_dict({
            'width': args.width,
            'height': args.height,
            'hold_delay': args.hold_delay,
        })
    except ValueError as e:
        logger.fatal('invalid config: %s', e)
        sys.exit(1)

    logger.info('Initialize %s.', config_file)
    save_json(config_file, config._asdict())
    logger.info('Done!')


# --- simulate ---

def simulate(args) -> Game:
    try:
        config = load_config(args.project_dir)
    except ValueError as e:
        logger.fatal('invalid config: %s', e)
        sys.exit(1)

    seed = args.seed if args.seed is not None else int(time.time())
    logger.info('seed: {}'.format(seed))
    rand = random.Random(seed)
    clock = SimulatedClock(config.tick_interval)
    store = FileHighScoreStore(highscore_file_of(args))
    game = Game(config, rand=rand, store=store, clock=clock)

    session = Session(game)
    session.step(UserAction.START)
    clock.tick()
    while session.running and session.num_ticks < args.max_ticks:
        action, held = random_policy(rand)
        session.step(action, held)
        clock.tick()

    s = game.state
    logger.info('ticks: {}, score: {}, level: {}, lines: {}, state: {}'
                .format(session.num_ticks, s.score, s.level,
                        s.lines_cleared, s.play_state.name))
    logger.debug('game:\n{}'.format(game))
    return game


# --- highscore ---

def highscore(args):
    store = FileHighScoreStore(highscore_file_of(args))
    if args.op == 'reset':
        store.save(0)
    print(store.load())


# --- main ---

def main(arg_list: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(prog='brick-game')
    parser.add_argument('--log_level', default='INFO')
    parser.add_argument('--log_file', default='')
    sub_parser = parser.add_subparsers(dest='command', required=True)

    p = sub_parser.add_parser('init')
    p.add_argument('--project_dir', default=DEFAULT_PROJECT_DIR)
    p.add_argument('--force', action='store_true')
    p.add_argument('--width', type=int, default=Config().width)
    p.add_argument('--height', type=int, default=Config().height)
    p.add_argument('--hold_delay', type=int, default=Config().hold_delay)
    p.set_defaults(func=init)

    p = sub_parser.add_parser('simulate')
    p.add_argument('--project_dir', default=DEFAULT_PROJECT_DIR)
    p.add_argument('--highscore_file', default='')
    p.add_argument('--seed', type=int, default=None)
    p.add_argument('--max_ticks', type=int, default=DEFAULT_MAX_TICKS)
    p.set_defaults(func=simulate)

    p = sub_parser.add_parser('highscore')
    p.add_argument('op', choices=['show', 'reset'])
    p.add_argument('--project_dir', default=DEFAULT_PROJECT_DIR)
    p.add_argument('--highscore_file', default='')
    p.set_defaults(func=highscore)

    args = parser.parse_args(arg_list)
    log_file = None if len(args.log_file) == 0 else args.log_file
    setup_logger(args.log_level, log_file)
    args.func(args)
