# utils
import os
import errno
import uuid
import tempfile
import os.path
from contextlib import contextmanager

import lz4.frame

import dkmeans.conf as conf


def compress(s):
    return lz4.frame.compress(s, compression_level=conf.SHUFFLE_COMPRESS_LEVEL)


def decompress(s):
    return lz4.frame.decompress(s)


# similar to itertools.chain.from_iterable, but faster in PyPy
def chain(it):
    for v in it:
        for vv in v:
            yield vv


def mkdir_p(path):
    """like `mkdir -p`"""
    try:
        os.makedirs(path)
    except OSError as exc:
        if exc.errno == errno.EEXIST and os.path.isdir(path):
            pass
        else:
            raise


@contextmanager
def atomic_file(filename, mode='w+b', bufsize=-1):
    path, name = os.path.split(filename)
    path = path or None
    prefix = '.%s.' % (name,) if name else '.'
    suffix = '.%s.tmp' % (uuid.uuid4().hex,)
    tempname = None
    try:
        if path:
            mkdir_p(path)

        with tempfile.NamedTemporaryFile(
                mode=mode, buffering=bufsize, suffix=suffix, prefix=prefix,
                dir=path, delete=False) as f:
            tempname = f.name
            yield f

        os.chmod(tempname, 0o644)
        os.rename(tempname, filename)
    finally:
        try:
            if tempname:
                os.remove(tempname)
        except OSError:
            pass
