import math
import random
import unittest
import logging

from dkmeans.errors import InvalidArgument, MalformedInput
from dkmeans.kmeans import (check_params, seed_centroids, nearest_index, assign,
                            aggregate, find_degenerate, check_threshold,
                            max_displacement)
from dkmeans.point import Aggregate, Centroid

logging.getLogger('dkmeans').setLevel(logging.ERROR)


def centroids_of(*coords):
    return [Centroid(i, tuple(float(v) for v in c)) for i, c in enumerate(coords)]


class TestCheckParams(unittest.TestCase):

    def test_valid(self):
        check_params(2, 2, 4, 0.0, 10, 1)

    def test_invalid(self):
        for args in [(0, 2, 4), (-1, 2, 4), (2, 0, 4), (2, 2, 0), (5, 2, 4)]:
            self.assertRaises(InvalidArgument, check_params, *args)
        self.assertRaises(InvalidArgument, check_params, 2, 2, 4, -0.1)
        self.assertRaises(InvalidArgument, check_params, 2, 2, 4, float('nan'))
        self.assertRaises(InvalidArgument, check_params, 2, 2, 4, 0.0, 0)
        self.assertRaises(InvalidArgument, check_params, 2, 2, 4, 0.0, 1, 0)


class TestSeeding(unittest.TestCase):

    lines = ['0,0', '1,1', '2,2', '3,3', '4,4']

    def test_distinct_points(self):
        for seed in range(20):
            centroids = seed_centroids(iter(self.lines), 3, 2, 5, random.Random(seed))
            self.assertEqual([c.index for c in centroids], [0, 1, 2])
            coords = [c.coords for c in centroids]
            self.assertEqual(len(set(coords)), 3)
            for c in coords:
                self.assertIn('%d,%d' % c, self.lines)

    def test_ascending_positions(self):
        centroids = seed_centroids(iter(self.lines), 3, 2, 5, random.Random(7))
        xs = [c.coords[0] for c in centroids]
        self.assertEqual(xs, sorted(xs))

    def test_all_points(self):
        centroids = seed_centroids(iter(self.lines), 5, 2, 5)
        self.assertEqual([c.coords for c in centroids],
                         [(float(i), float(i)) for i in range(5)])

    def test_reproducible(self):
        a = seed_centroids(iter(self.lines), 2, 2, 5, random.Random(1))
        b = seed_centroids(iter(self.lines), 2, 2, 5, random.Random(1))
        self.assertEqual(a, b)

    def test_invalid(self):
        self.assertRaises(InvalidArgument, seed_centroids, iter(self.lines), 6, 2, 5)
        self.assertRaises(InvalidArgument, seed_centroids, iter(self.lines), 0, 2, 5)
        self.assertRaises(InvalidArgument, seed_centroids, iter(self.lines), 2, 0, 5)

    def test_dataset_shorter_than_n(self):
        self.assertRaises(InvalidArgument, seed_centroids,
                          iter(self.lines[:2]), 3, 2, 10, random.Random(0))

    def test_malformed_seed(self):
        self.assertRaises(MalformedInput, seed_centroids, iter(['a,b', '1,1']), 2, 2, 2)


class TestAssign(unittest.TestCase):

    def test_tie_goes_to_lowest_index(self):
        centroids = centroids_of((1, 0), (-1, 0))
        self.assertEqual(nearest_index((0.0, 0.0), centroids), 0)
        centroids = centroids_of((-1, 0), (1, 0), (0, 1))
        self.assertEqual(nearest_index((0.0, 0.0), centroids), 0)

    def test_nearest(self):
        centroids = centroids_of((0, 0), (10, 0), (5, 5))
        self.assertEqual(nearest_index((9.0, 1.0), centroids), 1)
        self.assertEqual(nearest_index((4.0, 4.0), centroids), 2)
        self.assertEqual(nearest_index((-3.0, 1.0), centroids), 0)

    def test_emit_all_k(self):
        centroids = centroids_of((0, 0), (10, 0), (100, 100))
        aggs = assign(['0,0', '0,1', '10,0'], centroids, 2)
        self.assertEqual(len(aggs), 3)
        self.assertEqual(aggs[0], Aggregate([0.0, 1.0], 2))
        self.assertEqual(aggs[1], Aggregate([10.0, 0.0], 1))
        self.assertEqual(aggs[2], Aggregate.zero(2))

    def test_empty_partition(self):
        aggs = assign([], centroids_of((0, 0), (1, 1)), 2)
        self.assertEqual(aggs, [Aggregate.zero(2), Aggregate.zero(2)])

    def test_malformed_aborts(self):
        centroids = centroids_of((0, 0), (1, 1))
        self.assertRaises(MalformedInput, assign, ['0,0', '1,nan', '1,1'], centroids, 2)
        self.assertRaises(MalformedInput, assign, ['0,0', 'x,1'], centroids, 2)

    def test_partitioning_does_not_matter(self):
        rnd = random.Random(3)
        lines = ['%f,%f' % (rnd.uniform(-5, 5), rnd.uniform(-5, 5)) for _ in range(100)]
        centroids = centroids_of((-2, -2), (2, 2), (0, 3))
        whole = assign(lines, centroids, 2)
        parts = [assign(lines[i:i + 17], centroids, 2) for i in range(0, 100, 17)]
        for index in range(3):
            merged = aggregate(index, [p[index] for p in parts], 2)
            expected = aggregate(index, [whole[index]], 2)
            self.assertEqual(merged.index, index)
            for x, y in zip(merged.coords, expected.coords):
                self.assertAlmostEqual(x, y, places=9)


class TestAggregate(unittest.TestCase):

    def test_mean(self):
        c = aggregate(1, [Aggregate([0.0, 1.0], 2), Aggregate([0.0, 0.0], 0),
                          Aggregate([0.0, 2.0], 2)], 2)
        self.assertEqual(c, Centroid(1, (0.0, 0.75)))

    def test_does_not_mutate_inputs(self):
        a = Aggregate([1.0, 1.0], 1)
        aggregate(0, [a, Aggregate([3.0, 3.0], 1)], 2)
        self.assertEqual(a, Aggregate([1.0, 1.0], 1))

    def test_empty_cluster(self):
        c = aggregate(2, [Aggregate.zero(2), Aggregate.zero(2)], 2)
        self.assertEqual(c.index, 2)
        self.assertTrue(all(math.isnan(v) for v in c.coords))
        self.assertEqual(find_degenerate(centroids_of((0, 0), (1, 1)) + [c]), 2)
        self.assertIsNone(find_degenerate(centroids_of((0, 0), (1, 1))))


class TestThreshold(unittest.TestCase):

    def test_identical_converges(self):
        centroids = centroids_of((0, 0), (1, 2))
        for threshold in [0.0, 1e-12, 1.0]:
            self.assertTrue(check_threshold(centroids, list(centroids), threshold))

    def test_boundary(self):
        old = centroids_of((0, 0), (10, 0))
        new = centroids_of((0, 0.5), (10, 0.5))
        self.assertTrue(check_threshold(old, new, 0.25))
        self.assertFalse(check_threshold(old, new, 0.2499))
        self.assertEqual(max_displacement(old, new), 0.25)

    def test_any_index_breaks(self):
        old = centroids_of((0, 0), (10, 0))
        new = centroids_of((0, 0), (13, 4))
        self.assertFalse(check_threshold(old, new, 24.9))
        self.assertTrue(check_threshold(old, new, 25.0))
