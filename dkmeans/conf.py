import os
from dkmeans.utils.log import get_logger

# override configs use python file at path given by env var $DKMEANS_CONF, see the end of this file

logger = get_logger(__name__)

# workdir for centroid snapshots and shuffle files, one subdir per run
WORK_DIR = '/tmp/dkmeans'
if os.path.exists('/dev/shm'):
    WORK_DIR = '/dev/shm/dkmeans'

# byte size of one input split of a text file
DEFAULT_SPLIT_SIZE = 64 * 1024 * 1024

# number of worker processes of the process scheduler, 0 means cpu count
DEFAULT_PARALLELISM = 0

# name of the published centroid snapshot inside the run workdir
CENTROIDS_FILE = 'centroids.txt'

# one file per aggregation task inside <output>_<iteration>/
OUTPUT_PART_FORMAT = 'part-r-%05d'

# lz4 level of shuffle files, 0 is the fast default
SHUFFLE_COMPRESS_LEVEL = 0


def load_conf(path):
    if not os.path.exists(path):
        logger.debug("conf %s do not exists, use default config", path)
        return

    try:
        with open(path) as f:
            data = f.read()
            exec(data, globals(), globals())
    except Exception as e:
        logger.error("error while load conf from %s: %s", path, e)
        raise


load_conf(os.environ.get('DKMEANS_CONF', '/etc/dkmeans.conf'))
