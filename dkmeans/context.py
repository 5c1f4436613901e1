import atexit
import os
import shutil
import time

from addict import Dict

import dkmeans.conf as conf
from dkmeans.dataset import TextFileDataset, ParallelCollection
from dkmeans.dependency import HashPartitioner
from dkmeans.env import WorkDir
from dkmeans.errors import InvalidArgument, KMeansError, RoundFailure
from dkmeans.schedule import LocalScheduler, MultiProcessScheduler
from dkmeans.shuffle import LocalFileShuffle
from dkmeans.store import FileCentroidStore, read_centroids
from dkmeans.task import AssignTask, AggregateTask
from dkmeans.utils import mkdir_p
from dkmeans.utils.log import get_logger

logger = get_logger(__name__)


class KMeansContext(object):
    """Owns the scheduler and the work dir of a run, and runs its rounds."""

    def __init__(self, master='local', parallel=0, workdir=None):
        self.master = master
        self.parallel = parallel
        self.workdir = WorkDir(workdir)
        self.scheduler = None
        self.initialized = False
        self.started = False

    def init(self):
        if self.initialized:
            return

        if self.master == 'local':
            self.scheduler = LocalScheduler()
        elif self.master == 'process':
            self.scheduler = MultiProcessScheduler(self.parallel)
        else:
            raise InvalidArgument('unknown master %r, use local or process' % (self.master,))
        logger.info('use %s scheduler, parallelism %d',
                    self.master, self.scheduler.defaultParallelism())
        self.initialized = True

    @property
    def defaultParallelism(self):
        self.init()
        return self.scheduler.defaultParallelism()

    def start(self):
        if self.started:
            return

        self.init()
        self.workdir.init()
        self.scheduler.start()
        self.started = True
        atexit.register(self.stop)

    def stop(self):
        if not self.started:
            return

        self.scheduler.stop()
        self.workdir.clean_up()
        self.started = False
        atexit.unregister(self.stop)

    def textFile(self, path, numSplits=None, splitSize=None):
        if numSplits is None and splitSize is None:
            numSplits = self.defaultParallelism
        return TextFileDataset(os.path.realpath(path), numSplits, splitSize)

    def parallelize(self, seq, numSlices=None):
        if numSlices is None:
            numSlices = max(self.defaultParallelism, 2)
        return ParallelCollection(seq, numSlices)

    def centroidStore(self, k, d):
        self.start()
        return FileCentroidStore(self.workdir.get_path(conf.CENTROIDS_FILE), k, d)

    def rounds(self, dataset, store, k, d, reducers=1, output=None):
        if reducers <= 0:
            raise InvalidArgument('reducers must be positive, got %r' % (reducers,))
        self.start()
        if output is None:
            output = self.workdir.get_path('output')
        return RoundRunner(self, dataset, store, k, d, reducers, output)

    def __getstate__(self):
        raise ValueError("should not pickle ctx")


def prepare_output_dir(path):
    if os.path.exists(path):
        if not os.path.isdir(path):
            raise IOError("output must be dir: %s" % path)
        for n in os.listdir(path):
            p = os.path.join(path, n)
            if os.path.isdir(p):
                shutil.rmtree(p)
            else:
                os.remove(p)
    else:
        mkdir_p(path)


def read_round_output(output_dir, k, d, reducers):
    """Collect the k centroids of a round from every part file, ordered by index."""
    found = {}
    for i in range(reducers):
        path = os.path.join(output_dir, conf.OUTPUT_PART_FORMAT % i)
        for c in read_centroids(path, d):
            if c.index in found or not 0 <= c.index < k:
                raise IOError('unexpected centroid %d in %s' % (c.index, path))
            found[c.index] = c
    missing = [i for i in range(k) if i not in found]
    if missing:
        raise IOError('no output for centroids %s in %s' % (missing, output_dir))
    return [found[i] for i in range(k)]


class RoundRunner(object):
    """One assignment + aggregation pass over the dataset per call.

    Assign tasks (one per split) read the published snapshot and shuffle
    their k Aggregates to `reducers` aggregate tasks; the new centroids are
    written to <output>_<iteration>/ and read back from there.
    """

    def __init__(self, ctx, dataset, store, k, d, reducers, output):
        self.ctx = ctx
        self.dataset = dataset
        self.store = store
        self.k = k
        self.d = d
        self.reducers = reducers
        self.output = output
        self.stats = {}

    def runRound(self, iteration):
        ctx = self.ctx
        workdir = ctx.workdir.main
        output_dir = '%s_%d' % (self.output, iteration)
        partitioner = HashPartitioner(self.reducers)
        map_tasks = [AssignTask(iteration, self.dataset, split, self.store, self.d,
                                partitioner, workdir)
                     for split in self.dataset.splits]
        reduce_tasks = [AggregateTask(iteration, i, len(map_tasks), self.d, workdir, output_dir)
                        for i in range(partitioner.numPartitions)]

        stats = Dict()
        stats.tasks.assign = len(map_tasks)
        stats.tasks.aggregate = len(reduce_tasks)
        try:
            prepare_output_dir(output_dir)
            t0 = time.time()
            map_results = ctx.scheduler.runJob(map_tasks)
            t1 = time.time()
            reduce_results = ctx.scheduler.runJob(reduce_tasks)
            stats.secs.assign = t1 - t0
            stats.secs.aggregate = time.time() - t1
            centroids = read_round_output(output_dir, self.k, self.d, self.reducers)
        except KMeansError:
            raise
        except Exception as e:
            raise RoundFailure('round failed', iteration, e)
        finally:
            LocalFileShuffle.clear(workdir, iteration)

        all_stats = [s for _, s in map_results + reduce_results]
        stats.num_points = sum(s.get('num_points', 0) for s in all_stats)
        stats.bytes.shuffle = sum(s.get('bytes_shuffle', 0) for s in all_stats)
        stats.bytes.max_rss = max(s['bytes_max_rss'] for s in all_stats)
        self.stats[iteration] = stats
        logger.info('round %d: %d points, %d assign tasks in %.2fs, '
                    '%d aggregate tasks in %.2fs, shuffle %d bytes, max rss %d MB',
                    iteration, stats.num_points,
                    stats.tasks.assign, stats.secs.assign,
                    stats.tasks.aggregate, stats.secs.aggregate,
                    stats.bytes.shuffle, stats.bytes.max_rss >> 20)
        return centroids
