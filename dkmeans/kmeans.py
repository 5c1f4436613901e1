import random

from dkmeans.dependency import AggregateCombiner
from dkmeans.errors import InvalidArgument
from dkmeans.point import Aggregate, Centroid, parse_point, squared_distance, is_finite
from dkmeans.utils.log import get_logger

logger = get_logger(__name__)


def check_params(k, d, n, threshold=0.0, max_iterations=1, reducers=1):
    if k <= 0:
        raise InvalidArgument('k must be positive, got %r' % (k,))
    if d <= 0:
        raise InvalidArgument('d must be positive, got %r' % (d,))
    if n <= 0:
        raise InvalidArgument('n must be positive, got %r' % (n,))
    if k > n:
        raise InvalidArgument('can not pick %d distinct centroids from %d points' % (k, n))
    if not threshold >= 0:
        raise InvalidArgument('threshold must be non-negative, got %r' % (threshold,))
    if max_iterations <= 0:
        raise InvalidArgument('max_iterations must be positive, got %r' % (max_iterations,))
    if reducers <= 0:
        raise InvalidArgument('reducers must be positive, got %r' % (reducers,))


def generate_index(k, n, rnd=None):
    """k distinct positions in [0, n), ascending."""
    rnd = rnd or random
    return sorted(rnd.sample(range(n), k))


def seed_centroids(records, k, d, n, rnd=None):
    """Pick k distinct records of the dataset as the initial centroids.

    The positions are drawn first and sorted, then the records are scanned
    once: centroid 0 is the record at the smallest drawn position, and so
    on. Nothing is loaded but the chosen records.
    """
    if d <= 0:
        raise InvalidArgument('d must be positive, got %r' % (d,))
    if k <= 0 or n <= 0 or k > n:
        raise InvalidArgument('can not pick %d distinct centroids from %d points' % (k, n))

    indexes = generate_index(k, n, rnd)
    logger.debug('seed centroids from positions %s', indexes)
    centroids = []
    for pos, record in enumerate(records):
        if pos == indexes[len(centroids)]:
            centroids.append(Centroid(len(centroids), parse_point(record, d)))
            if len(centroids) == k:
                break

    if len(centroids) < k:
        raise InvalidArgument('dataset has less than %d points, can not reach position %d'
                              % (n, indexes[len(centroids)]))
    return centroids


def nearest_index(point, centroids):
    """Index of the closest centroid, the lowest index wins a tie."""
    best = 0
    best_dist = squared_distance(point, centroids[0].coords)
    for i in range(1, len(centroids)):
        dist = squared_distance(point, centroids[i].coords)
        if dist < best_dist:
            best_dist = dist
            best = i
    return best


def assign(records, centroids, d):
    """Fold every record into the Aggregate of its nearest centroid.

    Returns all k Aggregates, the empty ones included, so that every
    centroid index shows up downstream whatever the partition holds.
    """
    aggregates = [Aggregate.zero(d) for _ in centroids]
    for record in records:
        point = parse_point(record, d)
        aggregates[nearest_index(point, centroids)].add(point)
    return aggregates


def merge_aggregates(aggregates, d):
    combiner = AggregateCombiner()
    merged = Aggregate.zero(d)
    for agg in aggregates:
        merged = combiner.mergeCombiners(merged, agg)
    return merged


def aggregate(index, aggregates, d):
    """New centroid at `index`: the mean of every point assigned to it.

    An index that got no points comes out with NaN coordinates.
    """
    merged = merge_aggregates(aggregates, d)
    if merged.count == 0:
        logger.warning('centroid %d got no points', index)
    return Centroid(index, merged.average())


def find_degenerate(centroids):
    """Index of the first centroid with a non-finite coordinate, or None."""
    for c in centroids:
        if not is_finite(c.coords):
            return c.index
    return None


def max_displacement(old_centroids, new_centroids):
    return max(squared_distance(o.coords, n.coords)
               for o, n in zip(old_centroids, new_centroids))


def check_threshold(old_centroids, new_centroids, threshold):
    """True when no centroid moved more than threshold (squared distance)."""
    for o, n in zip(old_centroids, new_centroids):
        if squared_distance(o.coords, n.coords) > threshold:
            return False
    return True

