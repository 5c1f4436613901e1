import sys
import logging
import re

LOG_FORMAT = '{GREEN}%(asctime)-15s{RESET}' \
             ' [%(levelname)s] [%(processName)s] [%(name)-16s:%(lineno)d] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

RESET = "\033[0m"
RED, GREEN, YELLOW, BLUE, WHITE = ["\033[1;%dm" % i for i in (31, 32, 33, 34, 37)]

# markup allowed in formats and messages, e.g. '{GREEN}converged{RESET}'
PALLETE = {
    'RESET': RESET,
    'GREEN': GREEN,
    'RED': RED,
}

COLORS = {
    'WARNING': YELLOW,
    'INFO': WHITE,
    'DEBUG': BLUE,
    'CRITICAL': RED,
    'ERROR': RED
}

FORMAT_PATTERN = re.compile('|'.join('{%s}' % k for k in PALLETE))


def formatter_message(message, use_color=True):
    if use_color:
        return FORMAT_PATTERN.sub(
            lambda m: PALLETE[m.group(0)[1:-1]],
            message
        )

    return FORMAT_PATTERN.sub('', message)


class ColoredFormatter(logging.Formatter):
    def __init__(self, fmt=None, datefmt=None, use_color=True):
        if fmt:
            fmt = formatter_message(fmt, use_color)

        logging.Formatter.__init__(self, fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record):
        record = logging.makeLogRecord(record.__dict__)
        levelname = record.levelname
        if self.use_color and levelname in COLORS:
            record.levelname = COLORS[levelname] + levelname + RESET

        if isinstance(record.msg, str):
            record.msg = formatter_message(record.msg, self.use_color)
        return logging.Formatter.format(self, record)


USE_UTF8 = getattr(sys.stderr, 'encoding', None) in ('UTF-8', 'utf-8')

ASCII_BAR = ('[ ', ' ]', '#', '-', '-\\|/-\\|')
UNICODE_BAR = ('[ ', ' ]', '\u2589', '-', '-\u258F\u258E\u258D\u258C\u258B\u258A')


def make_progress_bar(ratio, width=10):
    """Bar of finished tasks, e.g. `[ ####/----- ]` for 0.45."""
    L, R, B, E, F = UNICODE_BAR if USE_UTF8 else ASCII_BAR
    p = width * ratio
    blocks = int(p)
    if p > blocks:
        C = F[int((p - blocks) * 7)]
        blanks = width - blocks - 1
    else:
        C = ''
        blanks = width - blocks
    return ''.join([L, B * blocks, C, E * blanks, R])


def init_dkmeans_logger(log_level, use_color=None):
    logger = get_logger('dkmeans')
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    if use_color is None:
        use_color = getattr(sys.stderr, 'isatty', lambda: False)()

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT, use_color))

    handler.setLevel(log_level)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


def get_logger(name):
    """ Always use logging.Logger class.

    The user code may change the loggerClass (e.g. pyinotify),
    and will cause exception when format log message.
    """
    old_class = logging.getLoggerClass()
    logging.setLoggerClass(logging.Logger)
    logger = logging.getLogger(name)
    logging.setLoggerClass(old_class)
    return logger
