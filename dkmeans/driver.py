import random
import time
from collections import namedtuple

from dkmeans.errors import DegenerateCluster, KMeansError, InvalidArgument, RoundFailure
from dkmeans.kmeans import (check_params, seed_centroids, find_degenerate,
                            check_threshold, max_displacement)
from dkmeans.point import Centroid, format_coords
from dkmeans.utils.log import get_logger

logger = get_logger(__name__)


KMeansResult = namedtuple('KMeansResult', ['centroids', 'iterations', 'converged'])


class DriverState:
    seeding = 'SEEDING'
    publishing = 'PUBLISHING'
    running = 'RUNNING'
    evaluating = 'EVALUATING'

    # terminal states
    terminated = 'TERMINATED'
    failed = 'FAILED'


class KMeansDriver(object):
    """Iterate rounds until the centroids stop moving.

    seeding -> publishing -> running -> evaluating, then back to publishing,
    or terminated when converged or out of iterations. Any error moves to
    failed and is raised; nothing is retried at this level.

    `runner.runRound(iteration)` runs one full round over the dataset and
    returns the k new centroids ordered by index; `store` is the
    CentroidStore the round's assign tasks read.
    """

    def __init__(self, dataset, store, runner, k, d, n, threshold,
                 max_iterations, seed=None):
        check_params(k, d, n, threshold, max_iterations)
        self.dataset = dataset
        self.store = store
        self.runner = runner
        self.k = k
        self.d = d
        self.n = n
        self.threshold = threshold
        self.max_iterations = max_iterations
        self.random = random.Random(seed)
        self.state = None
        self.iteration = 0
        self.centroids = None
        self.history = []

    def _transit(self, state):
        logger.debug('iteration %d: %s -> %s', self.iteration, self.state, state)
        self.state = state
        self.history.append(state)

    def seed(self, initial=None):
        self._transit(DriverState.seeding)
        if initial is None:
            centroids = seed_centroids(self.dataset.scan(), self.k, self.d, self.n, self.random)
        else:
            centroids = [Centroid(i, tuple(float(v) for v in coords))
                         for i, coords in enumerate(initial)]
            if len(centroids) != self.k or any(len(c.coords) != self.d for c in centroids):
                raise InvalidArgument('expect %d initial centroids of dimension %d'
                                      % (self.k, self.d))
        self.centroids = centroids
        self._log_centroids('initial')
        return centroids

    def run(self, initial=None):
        start = time.time()
        try:
            self.seed(initial)
            while True:
                self.iteration += 1
                self._transit(DriverState.publishing)
                self.store.publish(self.centroids)

                self._transit(DriverState.running)
                new_centroids = self._run_round()
                logger.info('iteration %d completed', self.iteration)

                self._transit(DriverState.evaluating)
                converged = self.evaluate(self.centroids, new_centroids)
                self.centroids = new_centroids
                self._log_centroids('iteration %d' % self.iteration)

                if converged or self.iteration >= self.max_iterations:
                    self._transit(DriverState.terminated)
                    break
        except Exception:
            self._transit(DriverState.failed)
            raise

        if not converged:
            logger.warning('not converged after %d iterations', self.iteration)
        logger.info('execution time: %.3f s', time.time() - start)
        return KMeansResult(self.centroids, self.iteration, converged)

    def _run_round(self):
        try:
            centroids = self.runner.runRound(self.iteration)
        except KMeansError:
            raise
        except Exception as e:
            raise RoundFailure('round failed', self.iteration, e)

        if len(centroids) != self.k:
            raise RoundFailure('expect %d centroids, got %d' % (self.k, len(centroids)),
                               self.iteration)
        return centroids

    def evaluate(self, old_centroids, new_centroids):
        index = find_degenerate(new_centroids)
        if index is not None:
            raise DegenerateCluster(self.iteration, index)

        if check_threshold(old_centroids, new_centroids, self.threshold):
            return True

        logger.info('iteration %d: max squared displacement %g > %g',
                    self.iteration, max_displacement(old_centroids, new_centroids),
                    self.threshold)
        return False

    def _log_centroids(self, title):
        logger.info('%s centroids:', title)
        for c in self.centroids:
            logger.info('  %d\t%s', c.index, format_coords(c.coords))
