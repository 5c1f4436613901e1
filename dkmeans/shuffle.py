import os
import os.path
import shutil

import msgpack

from dkmeans.point import Aggregate
from dkmeans.utils import compress, decompress, mkdir_p, atomic_file
from dkmeans.utils.log import get_logger

logger = get_logger(__name__)


class LocalFileShuffle:
    """Map outputs on the local filesystem.

    One file per (shuffle, map task, reduce task), under the work dir of the
    run: <workdir>/<shuffle_id>/<map_id>/<reduce_id>.
    """

    @classmethod
    def getPath(cls, workdir, shuffle_id, input_id, output_id):
        return os.path.join(workdir, str(shuffle_id), str(input_id), str(output_id))

    @classmethod
    def getOutputFile(cls, workdir, shuffle_id, input_id, output_id):
        path = cls.getPath(workdir, shuffle_id, input_id, output_id)
        mkdir_p(os.path.dirname(path))
        return path

    @classmethod
    def write(cls, workdir, shuffle_id, input_id, buckets):
        """Dump buckets[reduce_id] = [(index, Aggregate)], return bytes written."""
        written = 0
        for output_id, items in enumerate(buckets):
            path = cls.getOutputFile(workdir, shuffle_id, input_id, output_id)
            data = msgpack.packb([[index, agg.toList()] for index, agg in items])
            buf = compress(data)
            with atomic_file(path) as f:
                f.write(buf)
            written += len(buf)
        return written

    @classmethod
    def read(cls, path):
        with open(path, 'rb') as f:
            buf = f.read()
        for index, data in msgpack.unpackb(decompress(buf)):
            yield index, Aggregate.fromList(data)

    @classmethod
    def clear(cls, workdir, shuffle_id):
        path = os.path.join(workdir, str(shuffle_id))
        if os.path.isdir(path):
            shutil.rmtree(path)


class ShuffleFetcher(object):

    def fetch(self, workdir, shuffle_id, num_maps, reduce_id, merge_func):
        fetched = 0
        for map_id in range(num_maps):
            path = LocalFileShuffle.getPath(workdir, shuffle_id, map_id, reduce_id)
            if not os.path.exists(path):
                raise IOError('missing output of map %d for reduce %d in shuffle %s'
                              % (map_id, reduce_id, shuffle_id))
            fetched += os.path.getsize(path)
            merge_func(LocalFileShuffle.read(path))
        logger.debug('fetched %d bytes from %d maps for reduce %d',
                     fetched, num_maps, reduce_id)
        return fetched


class Merger(object):
    """Fold fetched (index, Aggregate) items into one combiner per index."""

    def __init__(self, aggregator):
        self.aggregator = aggregator
        self.combined = {}

    def merge(self, items):
        combined = self.combined
        createCombiner = self.aggregator.createCombiner
        mergeValue = self.aggregator.mergeValue
        for k, v in items:
            o = combined.get(k)
            combined[k] = mergeValue(o, v) if o is not None else createCombiner(v)

    def __iter__(self):
        return iter(sorted(self.combined.items()))
