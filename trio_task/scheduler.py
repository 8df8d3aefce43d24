"""Deferred-callback schedulers.

A task never runs its continuations inline with the completion that
triggered them; it hands them to a scheduler instead. The scheduler is
injected, so the same code can run on trio, on asyncio, or be driven
turn by turn from a unit test.
"""

import collections

import trio


class Scheduler:
    """The interface: ``schedule(fn)`` must run ``fn()`` on a later turn,
    never before ``schedule`` returns, and in the order it was called.
    """

    def schedule(self, fn):
        raise NotImplementedError()


class ManualScheduler(Scheduler):
    """Queues callbacks until somebody explicitly runs them.

    A turn only runs the callbacks that were queued before it started;
    anything scheduled during a turn waits for the next one.
    """

    def __init__(self):
        self._queue = collections.deque()

    @property
    def pending(self) -> int:
        return len(self._queue)

    def schedule(self, fn):
        self._queue.append(fn)

    def run_once(self) -> int:
        """Run a single turn. Returns the number of callbacks run.
        """
        count = len(self._queue)
        for _ in range(count):
            fn = self._queue.popleft()
            fn()
        return count

    def run_until_idle(self, max_turns=1000) -> int:
        """Run turns until nothing is queued any more.
        """
        total = 0
        turns = 0
        while self._queue:
            if turns >= max_turns:
                raise RuntimeError(
                    f'still {len(self._queue)} callbacks pending after {turns} turns')
            total += self.run_once()
            turns += 1
        return total


class TrioScheduler(Scheduler):
    """Schedules on a trio run via ``TrioToken.run_sync_soon``, which runs
    callbacks in FIFO order on a later pass of the run loop.

    If no token is given, the one of the current trio run is used, looked
    up the first time something is scheduled. Callbacks must not raise;
    trio treats an exception escaping ``run_sync_soon`` as fatal.
    """

    def __init__(self, token=None):
        self._token = token

    @property
    def token(self):
        if self._token is None:
            self._token = trio.lowlevel.current_trio_token()
        return self._token

    def schedule(self, fn):
        self.token.run_sync_soon(fn)


class AsyncioScheduler(Scheduler):
    """For hosts that run on asyncio; ``loop.call_soon`` is FIFO as well.
    """

    def __init__(self, loop):
        self.loop = loop

    def schedule(self, fn):
        self.loop.call_soon(fn)
