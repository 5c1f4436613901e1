class AggregatorBase(object):

    def createCombiner(self, x):
        raise NotImplementedError(self.__class__.__name__)

    def mergeValue(self, s, x):
        raise NotImplementedError(self.__class__.__name__)

    def mergeCombiners(self, x, y):
        raise NotImplementedError(self.__class__.__name__)


class AggregateCombiner(AggregatorBase):
    """Combine Aggregates of the same centroid index.

    createCombiner copies, so merging never touches an Aggregate that came
    from a map output.
    """

    def createCombiner(self, x):
        return x.copy()

    def mergeValue(self, s, x):
        return s.mergeInPlace(x)

    def mergeCombiners(self, x, y):
        return x.mergeInPlace(y)


class GroupByAggregator(AggregatorBase):

    def createCombiner(self, x):
        return [x]

    def mergeValue(self, c, x):
        c.append(x)
        return c

    def mergeCombiners(self, x, y):
        x.extend(y)
        return x


class Partitioner:
    @property
    def numPartitions(self):
        raise NotImplementedError

    def getPartition(self, key):
        raise NotImplementedError


class HashPartitioner(Partitioner):
    def __init__(self, partitions):
        self.partitions = max(1, int(partitions))

    @property
    def numPartitions(self):
        return self.partitions

    def getPartition(self, key):
        # keys are centroid indexes, hash(int) is the int itself in every process
        return hash(key) % self.partitions

    def __eq__(self, other):
        if isinstance(other, HashPartitioner):
            return other.numPartitions == self.numPartitions
        return False

    def __hash__(self):
        return self.partitions
