from .scheduler import Scheduler, ManualScheduler, TrioScheduler, AsyncioScheduler
from .task import Task, TaskState, Outcome, Ok, Err, CANCELLED, InvalidStateError
from .loop import Loop, wait


__all__ = [
    'Task', 'TaskState', 'Outcome', 'Ok', 'Err', 'CANCELLED',
    'InvalidStateError', 'Scheduler', 'ManualScheduler', 'TrioScheduler',
    'AsyncioScheduler', 'Loop', 'wait',
]
