"""Chaining one task into the next; this is what backs ``Task.then_do()``.
"""

import logging

from .task import Task, CANCELLED


logger = logging.getLogger(__name__)


class _Chain:
    """The state the composite task shares with its abort function.

    ``current`` is the task that cancelling the composite has to cancel:
    first the task we chain from, then the one the continuation returned.
    It is ``None`` in between, and once the subsequent task has finished.
    """

    def __init__(self, first_task):
        self.current = first_task
        self.cancelled = False

    def abort(self):
        self.cancelled = True
        current = self.current
        if current is not None:
            current.cancel()


def compose(first_task: Task, on_resolve=None, on_reject=None) -> Task:
    """Create a composite task, which uses the outcome of ``first_task`` to
    create a subsequent task, and represents the two tasks together.

    Only meant to be used through ``Task.then_do()``.
    """
    chain = _Chain(first_task)
    scheduler = first_task.scheduler

    def start_composite(resolve, reject):
        return chain.abort
    composite = Task.start(start_composite, scheduler)

    def on_sub_task_finished(outcome):
        chain.current = None
        composite._finish(outcome)

    def continue_chain(first_outcome):
        if chain.cancelled or first_outcome.is_cancelled:
            composite._reject(CANCELLED)
            return

        if first_outcome.is_error:
            factory, arg = on_reject, first_outcome.error
        else:
            factory, arg = on_resolve, first_outcome.value

        # Nothing to chain; pass the outcome along as is.
        if factory is None:
            composite._finish(first_outcome)
            return

        try:
            sub_task = factory(arg)
        except Exception as exc:
            logger.debug('Continuation %r raised %r', factory, exc)
            composite._reject(exc)
            return

        if sub_task is None:
            composite._resolve(None)
            return

        if not isinstance(sub_task, Task):
            logger.debug('Continuation %r returned a non-task: %r', factory, sub_task)
            composite._reject(TypeError(
                f'continuation must return a Task or None, not {type(sub_task).__name__}'))
            return

        chain.current = sub_task
        sub_task._set_listener(on_sub_task_finished)

    def on_first_task_finished(first_outcome):
        chain.current = None
        # The continuation must never run inline.
        scheduler.schedule(lambda: continue_chain(first_outcome))

    first_task._set_listener(on_first_task_finished)
    return composite
