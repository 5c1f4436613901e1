import os

from dkmeans.point import format_centroid, parse_centroid
from dkmeans.utils import atomic_file
from dkmeans.utils.log import get_logger

logger = get_logger(__name__)


class CentroidStore(object):
    """The centroids every assign task of one iteration reads.

    The driver is the only writer; publish() must be complete before the
    first assign task of the round starts, and nobody writes while a round
    runs.
    """

    def publish(self, centroids):
        raise NotImplementedError

    def readAll(self):
        raise NotImplementedError


def write_centroids(f, centroids):
    for c in centroids:
        f.write((format_centroid(c) + '\n').encode('utf-8'))


def read_centroids(path, d):
    with open(path) as f:
        return [parse_centroid(line, d) for line in f if line.strip()]


class FileCentroidStore(CentroidStore):
    """Centroids in one text file, `index<TAB>coords` per line.

    publish() writes a temp file and renames it into place, so a reader sees
    either the old snapshot or the new one, never a partial one.
    """

    def __init__(self, path, k, d):
        self.path = path
        self.k = k
        self.d = d

    def publish(self, centroids):
        if len(centroids) != self.k:
            raise ValueError('expect %d centroids, got %d' % (self.k, len(centroids)))
        with atomic_file(self.path) as f:
            write_centroids(f, sorted(centroids, key=lambda c: c.index))
        logger.debug('published %d centroids to %s', self.k, self.path)

    def readAll(self):
        if not os.path.exists(self.path):
            raise IOError('no centroids published at %s' % self.path)
        centroids = read_centroids(self.path, self.d)
        indexes = [c.index for c in centroids]
        if indexes != list(range(self.k)):
            raise IOError('bad centroid snapshot %s: indexes %s' % (self.path, indexes))
        return centroids

    def __repr__(self):
        return '<FileCentroidStore %s>' % self.path
