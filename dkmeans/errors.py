class KMeansError(Exception):
    """Base of every fatal condition of a k-means run.

    Subclasses keep their context as attributes and rebuild themselves from
    ``__reduce__``, so an error raised inside a worker process arrives in the
    driver with the same type and context.
    """

    def __init__(self, message):
        Exception.__init__(self, message)
        self.message = message

    def __reduce__(self):
        return self.__class__, (self.message,)

    def __str__(self):
        return self.message


class InvalidArgument(KMeansError):
    pass


class MalformedInput(KMeansError):

    def __init__(self, message, record=None, split=None, iteration=None):
        KMeansError.__init__(self, message)
        self.record = record
        self.split = split
        self.iteration = iteration

    def __reduce__(self):
        return self.__class__, (self.message, self.record, self.split, self.iteration)

    def __str__(self):
        where = []
        if self.iteration is not None:
            where.append('iteration %d' % self.iteration)
        if self.split is not None:
            where.append('split %d' % self.split)
        if self.record is not None:
            where.append('record %r' % (self.record,))
        if where:
            return '%s (%s)' % (self.message, ', '.join(where))
        return self.message


class DegenerateCluster(KMeansError):

    def __init__(self, iteration, index):
        KMeansError.__init__(
            self,
            'centroid %d got no points in iteration %d, '
            'restart with a different seed or a smaller k' % (index, iteration))
        self.iteration = iteration
        self.index = index

    def __reduce__(self):
        return self.__class__, (self.iteration, self.index)


class RoundFailure(KMeansError):

    def __init__(self, message, iteration=None, cause=None):
        KMeansError.__init__(self, message)
        self.iteration = iteration
        self.cause = cause

    def __reduce__(self):
        return self.__class__, (self.message, self.iteration, self.cause)

    def __str__(self):
        msg = self.message
        if self.iteration is not None:
            msg = 'iteration %d: %s' % (self.iteration, msg)
        if self.cause is not None:
            msg = '%s: %s' % (msg, self.cause)
        return msg
