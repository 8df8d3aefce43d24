"""Running trio coroutines as tasks, and waiting for tasks from trio code.
"""

import inspect
import logging

import trio

from .scheduler import TrioScheduler
from .task import Task, CANCELLED


logger = logging.getLogger(__name__)


class Loop:
    """Runs trio coroutines as ``Task`` objects.

    Starting background work in trio can only be done within the context
    of a nursery, so the loop needs access to one. Cancelling a task
    created here cancels the trio cancel scope its coroutine runs in.
    """
    def __init__(self, nursery, scheduler=None):
        self.nursery = nursery
        if scheduler is None:
            scheduler = TrioScheduler()
        self.scheduler = scheduler

    def stop(self):
        """Cancel the nursery the loop is bound to; running tasks are rejected
        with CANCELLED.
        """
        self.nursery.cancel_scope.cancel()

    def call_later(self, seconds, func, *args) -> Task:
        """Call `func` after `seconds`. The returned task resolves with
        whatever `func` returns; cancelling it before then means `func` is
        never called.
        """
        async def sleep_then_call():
            await trio.sleep(seconds)
            return func(*args)
        return self.create_task(sleep_then_call)

    def create_task(self, async_func) -> Task:
        """Spawn `async_func` (a coroutine function, or a coroutine) as a
        background task in the loop nursery, and return a `Task` for it.
        """
        def starter(resolve, reject):
            scope = trio.CancelScope()

            async def task_wrapper():
                try:
                    with scope:
                        if inspect.iscoroutine(async_func):
                            result = await async_func
                        else:
                            result = await async_func()
                except Exception as e:
                    logger.debug('Coroutine %r raised %r', async_func, e)
                    reject(e)
                    return
                except trio.Cancelled:
                    # Cancelled from outside, e.g. by stop().
                    reject(CANCELLED)
                    raise

                if scope.cancelled_caught:
                    reject(CANCELLED)
                else:
                    resolve(result)

            self.nursery.start_soon(task_wrapper)
            return scope.cancel

        return Task.start(starter, self.scheduler)


async def wait(task: Task):
    """Wait for `task` to finish and return its `Outcome`.

    This takes up the task's one listener, so it cannot be combined with
    `then_do()` or `finally_()` on the same task.
    """
    finished = trio.Event()
    task._set_listener(lambda outcome: finished.set())
    await finished.wait()
    return task.outcome
