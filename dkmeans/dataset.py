import os

import dkmeans.conf as conf
from dkmeans.errors import MalformedInput
from dkmeans.utils import chain
from dkmeans.utils.log import get_logger

logger = get_logger(__name__)


class Split(object):
    def __init__(self, idx):
        self.index = idx

    def __repr__(self):
        return '<%s %d>' % (self.__class__.__name__, self.index)


class Dataset(object):
    """A finite, restartable source of raw point records.

    Every split is read by exactly one assign task; scan() walks all splits
    in order and is what seeding uses.
    """

    @property
    def splits(self):
        return self._splits

    def __len__(self):
        if hasattr(self, '_split_size'):
            return self._split_size
        return len(self._splits)

    def __getstate__(self):
        # a task carries its own split
        d = dict(self.__dict__)
        d.pop('_splits', None)
        d['_split_size'] = len(self)
        return d

    def iterator(self, split):
        return self.compute(split)

    def compute(self, split):
        raise NotImplementedError

    def scan(self):
        return chain(self.iterator(split) for split in self.splits)

    def __iter__(self):
        return self.scan()

    def __repr__(self):
        return self.repr_name


class ParallelCollectionSplit(Split):
    def __init__(self, index, values):
        self.index = index
        self.values = values


class ParallelCollection(Dataset):
    def __init__(self, data, numSlices=2):
        self.size = len(data)
        slices = self.slice(data, max(1, min(self.size, numSlices)))
        self._splits = [ParallelCollectionSplit(i, slices[i])
                        for i in range(len(slices))]
        self.repr_name = '<ParallelCollection %d>' % self.size

    def compute(self, split):
        return iter(split.values)

    @classmethod
    def slice(cls, data, numSlices):
        if numSlices <= 0:
            raise ValueError("invalid numSlices %d" % numSlices)
        m = len(data)
        if not m:
            return [[]]
        n = m // numSlices
        if m % numSlices != 0:
            n += 1
        if not isinstance(data, list):
            data = list(data)
        return [data[i * n: i * n + n] for i in range(numSlices)]


class PartialSplit(Split):
    def __init__(self, index, begin, end):
        self.index = index
        self.begin = begin
        self.end = end

    def __repr__(self):
        return '<PartialSplit %d [%d, %d)>' % (self.index, self.begin, self.end)


class TextFileDataset(Dataset):
    """Lines of a text file, cut into byte ranges.

    A line belongs to the split its first byte falls in, so every line is
    read exactly once whatever the split size.
    """

    def __init__(self, path, numSplits=None, splitSize=None):
        self.path = path
        self.size = size = os.path.getsize(path)

        if splitSize is None:
            if numSplits is None:
                splitSize = conf.DEFAULT_SPLIT_SIZE
            else:
                splitSize = (size + numSplits - 1) // numSplits or conf.DEFAULT_SPLIT_SIZE
        numSplits = size // splitSize
        if size % splitSize > 0:
            numSplits += 1
        self.splitSize = splitSize
        self._splits = [PartialSplit(i, i * splitSize, min(size, (i + 1) * splitSize))
                        for i in range(numSplits)]
        self.repr_name = '<%s %s>' % (self.__class__.__name__, path)
        logger.debug('%s: %d bytes in %d splits', self, size, numSplits)

    def open_file(self):
        return open(self.path, 'rb', 4096 * 1024)

    def compute(self, split):
        f = self.open_file()
        start = split.begin
        end = split.end
        if start > 0:
            f.seek(start - 1)
            byte = f.read(1)
            while byte != b'\n':
                byte = f.read(1)
                if not byte:
                    f.close()
                    return iter([])
                start += 1

        if start >= end:
            f.close()
            return iter([])

        return self.read(f, start, end)

    def read(self, f, start, end):
        with f:
            for line in f:
                start += len(line)
                if line.endswith(b'\n'):
                    line = line[:-1]
                try:
                    record = line.decode('utf-8')
                except UnicodeDecodeError as e:
                    raise MalformedInput('invalid utf-8 at byte %d' % e.start,
                                         line.decode('utf-8', 'backslashreplace'))
                yield record
                if start >= end:
                    break
