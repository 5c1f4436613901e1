import logging
import unittest

from flaky import flaky

from dkmeans.errors import MalformedInput
from dkmeans.schedule import LocalScheduler, MultiProcessScheduler
from dkmeans.task import Task

logging.getLogger('dkmeans').setLevel(logging.CRITICAL)


class SquareTask(Task):

    def __init__(self, i):
        Task.__init__(self, 0, i)
        self.i = i

    def _run(self):
        return self.i * self.i, {}

    def __repr__(self):
        return '<SquareTask %d>' % self.i


class BadInputTask(SquareTask):

    def _run(self):
        raise MalformedInput('bad coordinate', 'x,1', self.i, 3)


class BrokenTask(SquareTask):

    def _run(self):
        raise ZeroDivisionError('boom')


class TestLocalScheduler(unittest.TestCase):

    def setUp(self):
        self.sched = LocalScheduler()
        self.sched.start()

    def tearDown(self):
        self.sched.stop()

    def test_results_in_task_order(self):
        results = self.sched.runJob([SquareTask(i) for i in range(5)])
        self.assertEqual([r for r, _ in results], [0, 1, 4, 9, 16])
        for _, stats in results:
            self.assertIn('secs', stats)
            self.assertTrue(stats['bytes_rss'] > 0)
            self.assertTrue(stats['bytes_max_rss'] >= stats['bytes_rss'])

    def test_empty(self):
        self.assertEqual(self.sched.runJob([]), [])

    def test_failure(self):
        tasks = [SquareTask(0), BrokenTask(1), SquareTask(2)]
        with self.assertRaises(ZeroDivisionError) as cm:
            self.sched.runJob(tasks)
        self.assertEqual(cm.exception.task_id, '0_1')

    def test_malformed_input(self):
        with self.assertRaises(MalformedInput) as cm:
            self.sched.runJob([SquareTask(0), BadInputTask(1)])
        self.assertEqual(cm.exception.split, 1)
        self.assertEqual(cm.exception.iteration, 3)
        self.assertEqual(cm.exception.record, 'x,1')


@flaky
class TestMultiProcessScheduler(unittest.TestCase):

    def setUp(self):
        self.sched = MultiProcessScheduler(2)
        self.sched.start()

    def tearDown(self):
        self.sched.stop()

    def test_results_in_task_order(self):
        results = self.sched.runJob([SquareTask(i) for i in range(10)])
        self.assertEqual([r for r, _ in results], [i * i for i in range(10)])

    def test_malformed_input_keeps_type(self):
        with self.assertRaises(MalformedInput) as cm:
            self.sched.runJob([SquareTask(0), BadInputTask(1), SquareTask(2)])
        self.assertEqual(cm.exception.split, 1)
        self.assertEqual(cm.exception.record, 'x,1')

    def test_other_failure(self):
        with self.assertRaises(RuntimeError) as cm:
            self.sched.runJob([BrokenTask(0)])
        self.assertIn('ZeroDivisionError', str(cm.exception))
        self.assertEqual(cm.exception.task_id, '0_0')

    def test_parallelism(self):
        self.assertEqual(self.sched.defaultParallelism(), 2)
