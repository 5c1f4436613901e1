import multiprocessing
import pickle
import signal
import sys
import time

import psutil

import dkmeans.conf as conf
from dkmeans.errors import MalformedInput
from dkmeans.task import TaskEndReason
from dkmeans.utils.log import get_logger, make_progress_bar

logger = get_logger(__name__)

# signals a worker ignores, the driver cleans up on them
_signals = [signal.SIGINT, signal.SIGQUIT, signal.SIGHUP]


class Scheduler:
    """Run the tasks of one phase of a round.

    runJob() blocks until every task has ended, and returns the
    (result, stats) of each task in task order, or raises the error of the
    first failed task. Nothing is retried here.
    """

    def start(self):
        pass

    def runJob(self, tasks):
        raise NotImplementedError

    def stop(self):
        pass

    def defaultParallelism(self):
        return conf.DEFAULT_PARALLELISM or psutil.cpu_count() or 2


def run_task(task, aid):
    logger.debug('Running task %r', task)
    try:
        result, stats = task.run(aid)
        return task.id, result, stats
    except MalformedInput as e:
        logger.error('bad input in task %s: %s', task, e)
        raise
    except Exception:
        logger.exception('error in task %s', task)
        raise


class LocalScheduler(Scheduler):
    attemptId = 0

    def nextAttempId(self):
        self.attemptId += 1
        return self.attemptId

    def defaultParallelism(self):
        return 1

    def runJob(self, tasks):
        logger.debug('submit tasks %s in LocalScheduler', tasks)
        results = []
        for task in tasks:
            try:
                # same path as a remote task: whatever is not picklable fails here
                task_copy = pickle.loads(pickle.dumps(task, -1))
                _, result, stats = run_task(task_copy, self.nextAttempId())
            except Exception as e:
                e.task_id = task.id
                raise
            results.append((result, stats))
        return results


def _init_worker():
    # when called on subprocess of multiprocessing's Pool,
    # default sighandler of SIGTERM will be called to quit gracefully,
    # and we ignore other signals to prevent dead lock.
    signal.signal(signal.SIGTERM, signal.SIG_DFL)
    for sig in _signals:
        signal.signal(sig, signal.SIG_IGN)


def run_task_in_process(task, aid):
    try:
        return TaskEndReason.success, run_task(task, aid)
    except KeyboardInterrupt:
        sys.exit(0)
    except MalformedInput as e:
        return TaskEndReason.malformed_input, e
    except Exception as e:
        # the exception may not survive pickle, send its text
        return TaskEndReason.other_failure, '%s: %s' % (e.__class__.__name__, e)


class MultiProcessScheduler(LocalScheduler):

    def __init__(self, threads=0):
        LocalScheduler.__init__(self)
        self.threads = threads
        self.pool = None

    def defaultParallelism(self):
        return self.threads or Scheduler.defaultParallelism(self)

    def start(self):
        if not self.pool:
            self.pool = multiprocessing.Pool(self.defaultParallelism(),
                                             initializer=_init_worker)
            logger.debug('process pool started with %d workers', self.defaultParallelism())

    def runJob(self, tasks):
        if not tasks:
            return []

        self.start()
        logger.info('Got a taskset with %d tasks: %s', len(tasks), tasks[0])
        total, start = len(tasks), time.time()
        finished = [0]

        def callback(args):
            state, data = args
            if state != TaskEndReason.success:
                logger.warning('task failed: %s', data)
                return
            finished[0] += 1
            logger.info('Task %s finished (%d/%d) %s',
                        data[0], finished[0], total,
                        make_progress_bar(float(finished[0]) / total))

        pending = []
        for task in tasks:
            logger.debug('put task async: %s', task)
            pending.append(self.pool.apply_async(run_task_in_process,
                                                 [task, self.nextAttempId()],
                                                 callback=callback))

        results = []
        failure = None
        for task, r in zip(tasks, pending):
            try:
                state, data = r.get()
            except Exception as e:
                state, data = TaskEndReason.other_failure, '%s: %s' % (e.__class__.__name__, e)

            if state == TaskEndReason.success:
                _, result, stats = data
                results.append((result, stats))
            elif failure is None:
                failure = (task, state, data)

        if failure is not None:
            task, state, data = failure
            e = data if isinstance(data, Exception) else RuntimeError(data)
            e.task_id = task.id
            raise e

        logger.info('TaskSet finished in %.1f seconds', time.time() - start)
        return results

    def stop(self):
        if self.pool:
            self.pool.terminate()
            self.pool.join()
            self.pool = None
        logger.debug('process pool stopped')
