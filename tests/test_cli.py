import io
import logging
import os
import shutil
import sys
import tempfile
import unittest

from dkmeans.cli import main, parse_args

POINTS = ['0,0', '0,1', '10,0', '10,1']


class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self.dir = tempfile.mkdtemp()
        self.input = os.path.join(self.dir, 'points.txt')
        with open(self.input, 'w') as f:
            f.write('\n'.join(POINTS) + '\n')
        self.opts = ['-q', '--no-color', '--seed', '3',
                     '--workdir', os.path.join(self.dir, 'work')]
        self.stdout = sys.stdout
        sys.stdout = io.StringIO()

    def tearDown(self):
        sys.stdout = self.stdout
        shutil.rmtree(self.dir)
        logging.getLogger('dkmeans').setLevel(logging.CRITICAL)

    def args(self, k, n=4):
        return self.opts + [str(k), '2', str(n), '0.0001', '10', '2',
                            self.input, os.path.join(self.dir, 'out')]

    def test_run(self):
        self.assertEqual(main(self.args(2)), 0)
        lines = sys.stdout.getvalue().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertEqual([line.split('\t')[0] for line in lines], ['0', '1'])
        self.assertTrue(os.path.isdir(os.path.join(self.dir, 'out_1')))

    def test_invalid_argument(self):
        self.assertEqual(main(self.args(5)), 1)
        self.assertEqual(sys.stdout.getvalue(), '')

    def test_missing_input(self):
        args = self.args(2)
        args[-2] = os.path.join(self.dir, 'nothing.txt')
        self.assertEqual(main(args), 1)

    def test_malformed_input(self):
        with open(self.input, 'a') as f:
            f.write('1,2,3\n')
        self.assertEqual(main(self.args(2, n=5)), 1)

    def test_invalid_utf8(self):
        with open(self.input, 'wb') as f:
            f.write(b'0,0\n0,1\n10,\xff\n10,1\n')
        self.assertEqual(main(self.args(2)), 1)
        self.assertEqual(sys.stdout.getvalue(), '')

    def test_usage(self):
        self.assertRaises(SystemExit, parse_args, ['-q', '2', '2'])
        self.assertRaises(SystemExit, parse_args, self.opts + ['two'] + self.args(2)[len(self.opts) + 1:])

    def test_options(self):
        options, params = parse_args(['-m', 'process', '-p', '3', '--splits', '4'] + self.args(2))
        self.assertEqual(options.master, 'process')
        self.assertEqual(options.parallel, 3)
        self.assertEqual(options.splits, 4)
        self.assertEqual(options.seed, 3)
        self.assertEqual(params['k'], 2)
        self.assertEqual(params['threshold'], 0.0001)
        self.assertEqual(params['reducers'], 2)
