import logging
import optparse
import sys
import time

from dkmeans.context import KMeansContext
from dkmeans.driver import KMeansDriver
from dkmeans.errors import KMeansError
from dkmeans.kmeans import check_params
from dkmeans.point import format_centroid
from dkmeans.utils.log import init_dkmeans_logger, get_logger

logger = get_logger(__name__)

USAGE = ('Usage: %prog [options] <k> <d> <n> <threshold> <max_iterations> '
         '<reducers> <input> <output>')

ARGS = [
    ('k', int),
    ('d', int),
    ('n', int),
    ('threshold', float),
    ('max_iterations', int),
    ('reducers', int),
    ('input', str),
    ('output', str),
]


def create_parser():
    parser = optparse.OptionParser(usage=USAGE)

    group = optparse.OptionGroup(parser, "DKMeans Options")
    group.add_option("-m", "--master", type="string", default="local",
                     help="where tasks run: local or process")
    group.add_option("-p", "--parallel", type="int", default=0,
                     help="number of processes, default is the cpu count")
    group.add_option("--splits", type="int", default=0,
                     help="number of input splits, default is the parallelism")
    group.add_option("--seed", type="int", default=None,
                     help="seed of the random choice of initial centroids")
    group.add_option("--workdir", type="string", default=None,
                     help="dir for centroid snapshots and shuffle files")

    group.add_option("--color", action="store_true")
    group.add_option("--no-color", action="store_false", dest='color')
    parser.add_option_group(group)

    parser.add_option("-q", "--quiet", action="store_true")
    parser.add_option("-v", "--verbose", action="store_true")
    return parser


def parse_args(argv=None):
    parser = create_parser()
    options, args = parser.parse_args(argv)
    if len(args) != len(ARGS):
        parser.error('expect %d arguments, got %d' % (len(ARGS), len(args)))

    params = {}
    for (name, type_), value in zip(ARGS, args):
        try:
            params[name] = type_(value)
        except ValueError:
            parser.error('bad <%s>: %r' % (name, value))

    options.logLevel = (options.quiet and logging.ERROR
                        or options.verbose and logging.DEBUG or logging.INFO)
    init_dkmeans_logger(options.logLevel, use_color=options.color)
    for name, _ in ARGS:
        logger.info('<%s>=%s', name, params[name])
    return options, params


def run(options, params):
    k, d, n = params['k'], params['d'], params['n']
    check_params(k, d, n, params['threshold'], params['max_iterations'], params['reducers'])

    ctx = KMeansContext(options.master, options.parallel, options.workdir)
    try:
        dataset = ctx.textFile(params['input'], numSplits=options.splits or None)
        store = ctx.centroidStore(k, d)
        runner = ctx.rounds(dataset, store, k, d, params['reducers'], params['output'])
        driver = KMeansDriver(dataset, store, runner, k, d, n, params['threshold'],
                              params['max_iterations'], seed=options.seed)
        return driver.run()
    finally:
        ctx.stop()


def main(argv=None):
    options, params = parse_args(argv)
    start = time.time()
    try:
        result = run(options, params)
    except KMeansError as e:
        logger.error('%s: %s', e.__class__.__name__, e)
        return 1
    except (IOError, OSError) as e:
        logger.error('%s', e)
        return 1

    for c in result.centroids:
        print(format_centroid(c))
    if result.converged:
        msg = '{GREEN}converged{RESET} after %d iterations in %.3f s'
    else:
        msg = '{RED}stopped{RESET} after %d iterations in %.3f s'
    logger.info(msg, result.iterations, time.time() - start)
    return 0


if __name__ == '__main__':
    sys.exit(main())
