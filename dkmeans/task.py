import os
import resource
import time

import psutil

import dkmeans.conf as conf
from dkmeans.dependency import GroupByAggregator
from dkmeans.errors import MalformedInput
from dkmeans.kmeans import assign, aggregate
from dkmeans.shuffle import LocalFileShuffle, ShuffleFetcher, Merger
from dkmeans.store import write_centroids
from dkmeans.utils import atomic_file
from dkmeans.utils.log import get_logger

logger = get_logger(__name__)


class TaskEndReason:
    success = 'FINISHED_SUCCESS'
    malformed_input = 'FAILED_MALFORMED_INPUT'
    other_failure = 'FAILED_OTHER_FAILURE'


class Task(object):
    """One unit of work of a round, shipped to a worker by pickle."""

    def __init__(self, shuffle_id, partition):
        self.shuffle_id = shuffle_id
        self.partition = partition
        self.id = '%s_%s' % (shuffle_id, partition)

    def run(self, attempt_id):
        logger.debug('run task %s (attempt %s): %s', self.id, attempt_id, self)
        t0 = time.time()
        result, stats = self._run()
        stats['secs'] = time.time() - t0
        stats['bytes_rss'] = psutil.Process().memory_info().rss
        stats['bytes_max_rss'] = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss * 1024
        return result, stats

    def _run(self):
        raise NotImplementedError


class AssignTask(Task):
    """Assign every point of one split, emit k Aggregates into the shuffle."""

    def __init__(self, shuffle_id, dataset, split, store, d, partitioner, workdir):
        Task.__init__(self, shuffle_id, split.index)
        self.dataset = dataset
        self.split = split
        self.store = store
        self.d = d
        self.partitioner = partitioner
        self.workdir = workdir

    def _run(self):
        # one snapshot for the whole split
        centroids = self.store.readAll()
        try:
            aggregates = assign(self.dataset.iterator(self.split), centroids, self.d)
        except MalformedInput as e:
            e.split = self.split.index
            e.iteration = self.shuffle_id
            raise

        buckets = [[] for _ in range(self.partitioner.numPartitions)]
        for index, agg in enumerate(aggregates):
            buckets[self.partitioner.getPartition(index)].append((index, agg))
        written = LocalFileShuffle.write(self.workdir, self.shuffle_id, self.split.index, buckets)
        return self.split.index, {
            'bytes_shuffle': written,
            'num_points': sum(agg.count for agg in aggregates),
        }

    def __repr__(self):
        return '<AssignTask(%s) of %s>' % (self.partition, self.dataset)


class AggregateTask(Task):
    """Merge the Aggregates routed to one reducer into new centroids.

    Writes them as <output_dir>/part-r-NNNNN, one line per centroid index.
    """

    def __init__(self, shuffle_id, reduce_id, num_maps, d, workdir, output_dir):
        Task.__init__(self, shuffle_id, reduce_id)
        self.reduce_id = reduce_id
        self.num_maps = num_maps
        self.d = d
        self.workdir = workdir
        self.output_dir = output_dir

    def _run(self):
        merger = Merger(GroupByAggregator())
        fetched = ShuffleFetcher().fetch(self.workdir, self.shuffle_id, self.num_maps,
                                         self.reduce_id, merger.merge)
        centroids = [aggregate(index, aggregates, self.d) for index, aggregates in merger]

        path = os.path.join(self.output_dir, conf.OUTPUT_PART_FORMAT % self.reduce_id)
        with atomic_file(path) as f:
            write_centroids(f, centroids)
        return centroids, {'bytes_fetch': fetched}

    def __repr__(self):
        return '<AggregateTask(%s) of shuffle %s>' % (self.reduce_id, self.shuffle_id)
