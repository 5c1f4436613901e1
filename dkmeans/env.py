import os
import shutil
import socket
import uuid as uuid_pkg

from dkmeans import utils
from dkmeans.utils.log import get_logger
import dkmeans.conf as conf

logger = get_logger(__name__)


class WorkDir(object):
    """Private directory of one run: the centroid snapshot and the shuffle files."""

    def __init__(self, root=None):
        self.root = root
        self.path = None
        self.inited = False

    @property
    def main(self):
        return self.path

    def init(self, run_id=None):
        if self.inited:
            return
        root = self.root or conf.WORK_DIR
        if not os.path.exists(root):
            utils.mkdir_p(root)
            os.chmod(root, 0o777)  # because umask
        run_id = run_id or '%s-%s-%s' % (socket.gethostname(), os.getpid(),
                                         uuid_pkg.uuid4().hex[:8])
        self.path = os.path.join(root, run_id)
        utils.mkdir_p(self.path)
        self.inited = True
        logger.debug('use workdir %s', self.path)

    def get_path(self, subpath):
        return os.path.join(self.main, subpath)

    def clean_up(self):
        if not self.inited:
            return
        try:
            shutil.rmtree(self.path)
        except OSError as e:
            logger.warning('failed to remove workdir %s: %s', self.path, e)
        self.inited = False
