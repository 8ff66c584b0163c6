import os
import re
from logging import getLogger

logger = getLogger(__name__)

# Returned by FileHighScoreStore.load() when the record exists but cannot be
# read as an integer. Kept apart from 0, which means "no record".
UNPARSABLE_SCORE = -1

SCORE_PATTERN = re.compile(r'\s*([+-]?\d+)')


class HighScoreStore:
    def load(self) -> int:
        raise NotImplementedError()

    def save(self, score: int):
        raise NotImplementedError()


class MemoryHighScoreStore(HighScoreStore):
    def __init__(self, score=0):
        self.score = score
        self.num_saves = 0

    def load(self) -> int:
        return self.score

    def save(self, score: int):
        self.score = score
        self.num_saves += 1


class FileHighScoreStore(HighScoreStore):
    """Keeps the best score as a single decimal line in ``path``.

    The directory and the file are created on first use with an initial
    value of 0. I/O errors are logged and swallowed.
    """

    def __init__(self, path: str):
        self.path = path

    def ensure(self) -> bool:
        try:
            dirname = os.path.dirname(self.path)
            if len(dirname) > 0:
                os.makedirs(dirname, exist_ok=True)
            if not os.path.exists(self.path):
                with open(self.path, 'w') as fp:
                    fp.write('0\n')
        except OSError as e:
            logger.warning('cannot create %s: %s', self.path, e)
            return False
        return True

    def load(self) -> int:
        if not self.ensure():
            return 0
        try:
            with open(self.path, 'r') as fp:
                text = fp.read()
        except OSError as e:
            logger.warning('cannot read %s: %s', self.path, e)
            return 0
        m = SCORE_PATTERN.match(text)
        if m is None:
            logger.warning('%s does not hold a score', self.path)
            return UNPARSABLE_SCORE
        return int(m.group(1))

    def save(self, score: int):
        if not self.ensure():
            return
        try:
            with open(self.path, 'w') as fp:
                fp.write('{}\n'.format(score))
        except OSError as e:
            logger.warning('cannot write %s: %s', self.path, e)
            return
        logger.info('high score %d was saved to %s', score, self.path)
