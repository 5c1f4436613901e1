import math
from collections import namedtuple

from dkmeans.errors import MalformedInput


Centroid = namedtuple('Centroid', ['index', 'coords'])


def parse_point(record, d):
    """Parse one record of comma separated coordinates into a tuple of d floats.

    Empty records, a wrong number of fields, non numeric tokens, NaN and
    infinities all raise MalformedInput: dropping such a record would change
    the point counts without anyone noticing.
    """
    if isinstance(record, (tuple, list)):
        fields = record
    else:
        record = record.strip()
        if not record:
            raise MalformedInput('empty record', record)
        fields = record.split(',')

    if len(fields) != d:
        raise MalformedInput('expect %d coordinates, got %d' % (d, len(fields)), record)

    point = []
    for field in fields:
        try:
            if isinstance(field, str) and '_' in field:
                # float() takes digit separators, plain decimal text does not
                raise ValueError(field)
            v = float(field)
        except (TypeError, ValueError):
            raise MalformedInput('bad coordinate %r' % (field,), record)
        if not math.isfinite(v):
            raise MalformedInput('non-finite coordinate %r' % (field,), record)
        point.append(v)
    return tuple(point)


def squared_distance(p, q):
    s = 0.0
    for a, b in zip(p, q):
        diff = a - b
        s += diff * diff
    return s


def is_finite(coords):
    return all(math.isfinite(v) for v in coords)


def format_coords(coords):
    # repr() of a float reads back to the same float
    return ','.join(repr(float(v)) for v in coords)


def format_centroid(centroid):
    return '%d\t%s' % (centroid.index, format_coords(centroid.coords))


def parse_centroid(line, d):
    """Read back one `index<TAB>coords` line written by format_centroid.

    Non-finite coordinates are kept, the driver decides what they mean.
    """
    index, _, coords = line.rstrip('\n').partition('\t')
    fields = coords.split(',')
    if len(fields) != d:
        raise ValueError('bad centroid line: %r' % line)
    return Centroid(int(index), tuple(float(v) for v in fields))


class Aggregate(object):
    """Sum of the coordinates of some points and how many they are.

    Aggregates form a commutative monoid under merge(), the zero aggregate
    of the same dimension is the identity.
    """
    __slots__ = ('coords', 'count')

    def __init__(self, coords, count=1):
        if count < 0:
            raise ValueError('negative count: %d' % count)
        coords = [float(v) for v in coords]
        if count == 0 and any(coords):
            raise ValueError('empty aggregate with non-zero coordinates')
        self.coords = coords
        self.count = count

    @classmethod
    def zero(cls, d):
        return cls([0.0] * d, 0)

    @property
    def dimension(self):
        return len(self.coords)

    def add(self, point):
        coords = self.coords
        for i, v in enumerate(point):
            coords[i] += v
        self.count += 1
        return self

    def mergeInPlace(self, other):
        if other.dimension != self.dimension:
            raise ValueError('dimension mismatch: %d != %d'
                             % (self.dimension, other.dimension))
        coords = self.coords
        for i, v in enumerate(other.coords):
            coords[i] += v
        self.count += other.count
        return self

    def merge(self, other):
        return self.copy().mergeInPlace(other)

    __add__ = merge

    def copy(self):
        return Aggregate(self.coords, self.count)

    def average(self):
        """The mean of the folded points.

        An empty aggregate has no mean; it gives NaN coordinates instead of
        raising, and the driver reports the degenerate cluster.
        """
        if self.count == 0:
            return tuple(float('nan') for _ in self.coords)
        n = float(self.count)
        return tuple(v / n for v in self.coords)

    def toList(self):
        return [self.count, self.coords]

    @classmethod
    def fromList(cls, data):
        count, coords = data
        return cls(coords, count)

    def __eq__(self, other):
        return (isinstance(other, Aggregate) and self.count == other.count
                and self.coords == other.coords)

    def __ne__(self, other):
        return not self.__eq__(other)

    __hash__ = None

    def __repr__(self):
        return '<Aggregate count=%d sum=[%s]>' % (
            self.count, ','.join('%.3f' % v for v in self.coords))
