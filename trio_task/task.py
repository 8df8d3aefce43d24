"""A cancellable, one-shot asynchronous task.

This is deliberately much smaller than a Promise or an ``asyncio.Future``:

- A task finishes exactly once, with either a value or an error. The first
  completion wins, everything after that is ignored.
- Errors are plain values. Anything can be passed to ``reject``.
- A task can be cancelled. The outcome is then fixed to the error
  ``CANCELLED``, and the task's abort function (if the starter returned one)
  gets a chance to release whatever the work was holding on to.
- ``then_do()`` and ``finally_()`` share a single listener slot, so only one
  of them may be called, once, per task.
- Continuations run asynchronously, through the task's scheduler, even if
  the task finished while it was still being constructed.
- Plain values returned from a continuation are not promoted to tasks.
"""

import collections
import enum
import logging
import threading

from .scheduler import TrioScheduler


logger = logging.getLogger(__name__)


CANCELLED = 'cancelled'


class InvalidStateError(RuntimeError):
    """Raised when a task is used in a way its state does not allow, i.e.
    a second listener is attached to it.
    """


class TaskState(enum.Enum):
    RUNNING = 'running'
    FINISHED = 'finished'


class Outcome:
    """The final result of a task: either ``Ok`` or ``Err``.

    An outcome unpacks to the pair ``(error, value)``.
    """

    __slots__ = ()

    is_error = False

    @property
    def is_cancelled(self) -> bool:
        return self.is_error and self.error == CANCELLED

    def __iter__(self):
        return iter((self.error, self.value))

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.error == other.error and self.value == other.value

    __hash__ = None


class Ok(Outcome):
    __slots__ = ('value',)

    error = None

    def __init__(self, value=None):
        self.value = value

    def __repr__(self):
        return f'Ok({self.value!r})'


class Err(Outcome):
    __slots__ = ('error',)

    is_error = True
    value = None

    def __init__(self, error):
        self.error = error

    def __repr__(self):
        return f'Err({self.error!r})'


class _Calls(threading.local):
    """Listener and abort calls waiting to be made.

    A call made while another one is in progress is queued and made after
    it returns, so finishing or cancelling a long chain of tasks does not
    nest one stack frame per link.
    """

    def __init__(self):
        self.queue = collections.deque()
        self.running = False

    def run(self, fn, *args):
        self.queue.append((fn, args))
        if self.running:
            return
        self.running = True
        try:
            while self.queue:
                fn, args = self.queue.popleft()
                fn(*args)
        finally:
            self.running = False


_calls = _Calls()


class Task:
    """Use ``Task.start()`` or ``Task.with_value()`` to create one.
    """

    def __init__(self, scheduler=None):
        if scheduler is None:
            scheduler = TrioScheduler()
        self._scheduler = scheduler
        self._state = TaskState.RUNNING
        self._outcome = None
        self._abort = None
        self._listener = None

    @classmethod
    def start(cls, starter, scheduler=None) -> 'Task':
        """Create a task, calling ``starter(resolve, reject)`` right away so
        it can start the actual work.

        The starter reports the result by calling one of the two functions.
        It may return an abort function, which is called if the task is
        cancelled before it finishes. If the starter raises, the task is
        rejected with the exception.
        """
        task = cls(scheduler)
        try:
            abort = starter(task._resolve, task._reject)
        except Exception as exc:
            logger.debug('Task starter %r raised %r', starter, exc)
            task._finish(Err(exc))
        else:
            if task._state is TaskState.RUNNING:
                task._abort = abort
        return task

    @classmethod
    def with_value(cls, value, scheduler=None) -> 'Task':
        return cls.start(lambda resolve, reject: resolve(value), scheduler)

    @classmethod
    def with_error(cls, error, scheduler=None) -> 'Task':
        return cls.start(lambda resolve, reject: reject(error), scheduler)

    @property
    def scheduler(self):
        return self._scheduler

    @property
    def state(self) -> TaskState:
        return self._state

    @property
    def outcome(self):
        """The ``Outcome`` of the task, or ``None`` while it is running.
        """
        return self._outcome

    def done(self) -> bool:
        return self._state is TaskState.FINISHED

    def _resolve(self, value=None):
        self._finish(Ok(value))

    def _reject(self, error):
        self._finish(Err(error))

    def _finish(self, outcome):
        if self._state is TaskState.FINISHED:
            return
        self._state = TaskState.FINISHED
        self._outcome = outcome
        self._abort = None
        if self._listener is not None:
            _calls.run(self._listener, outcome)

    def cancel(self):
        """Cancel the task, unless it already finished, in which case this
        does nothing.

        A listener attached through ``then_do()`` sees ``Err(CANCELLED)``.
        """
        if self._state is TaskState.FINISHED:
            return
        abort = self._abort
        logger.debug('Cancelling %r', self)
        self._finish(Err(CANCELLED))
        if abort is not None:
            _calls.run(abort)

    def _set_listener(self, callback):
        """Set the function that is called with the ``Outcome`` of this task.

        Only one listener can ever be set. If the task already finished, the
        callback is called immediately.
        """
        if self._listener is not None:
            raise InvalidStateError('then_do/finally_ called more than once')
        self._listener = callback
        if self._state is TaskState.FINISHED:
            callback(self._outcome)

    def then_do(self, on_resolve=None, on_reject=None) -> 'Task':
        """Return a composite task made of this task and a subsequent one.

        Once this task finishes, ``on_resolve(value)`` or ``on_reject(error)``
        is called on a later turn of the scheduler and should return the
        subsequent ``Task``, or ``None``. When the matching function was not
        given, the composite simply finishes with this task's outcome.

        Cancelling the composite cancels either this task or the subsequent
        one, depending on which of the two is running.
        """
        from .sequence import compose
        return compose(self, on_resolve, on_reject)

    def finally_(self, cleanup) -> 'Task':
        """Run ``cleanup()`` on a later turn once the task finishes, no
        matter how it finishes. Returns the task itself.
        """
        scheduler = self._scheduler
        self._set_listener(lambda outcome: scheduler.schedule(cleanup))
        return self

    def __repr__(self):
        if self._state is TaskState.RUNNING:
            return '<Task running>'
        return f'<Task finished {self._outcome!r}>'
