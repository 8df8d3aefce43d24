import pytest

from trio_task import Task, TaskState, Ok, Err, CANCELLED, InvalidStateError


def test_starter_is_called_synchronously(scheduler):
    calls = []

    def starter(resolve, reject):
        calls.append('started')
    task = Task.start(starter, scheduler)

    assert calls == ['started']
    assert task.state is TaskState.RUNNING
    assert task.outcome is None
    assert not task.done()


def test_first_completion_wins(scheduler):
    callbacks = {}

    def starter(resolve, reject):
        callbacks['resolve'] = resolve
        callbacks['reject'] = reject
    task = Task.start(starter, scheduler)

    callbacks['resolve'](1)
    callbacks['resolve'](2)
    callbacks['reject']('E')

    assert task.done()
    assert task.outcome == Ok(1)


def test_reject_then_resolve_keeps_error(scheduler):
    callbacks = {}
    task = Task.start(lambda resolve, reject: callbacks.update(resolve=resolve, reject=reject),
                      scheduler)

    callbacks['reject']('E')
    callbacks['resolve'](5)

    assert task.outcome == Err('E')


def test_starter_exception_rejects(scheduler):
    def starter(resolve, reject):
        raise ValueError('boom')
    task = Task.start(starter, scheduler)

    error, value = task.outcome
    assert isinstance(error, ValueError)
    assert str(error) == 'boom'
    assert value is None


def test_starter_exception_reaches_listener(scheduler):
    def starter(resolve, reject):
        raise RuntimeError('boom')
    seen = []
    Task.start(starter, scheduler)._set_listener(seen.append)

    assert len(seen) == 1
    assert seen[0].is_error
    assert seen[0].error.args == ('boom',)


def test_with_value(scheduler):
    task = Task.with_value(5, scheduler)
    assert task.outcome == Ok(5)


def test_with_error(scheduler):
    task = Task.with_error('E', scheduler)
    assert task.outcome == Err('E')
    assert not task.outcome.is_cancelled


def test_cancel_calls_abort_once(scheduler):
    aborted = []
    task = Task.start(lambda resolve, reject: lambda: aborted.append(True), scheduler)

    task.cancel()
    task.cancel()

    assert aborted == [True]
    assert task.outcome == Err(CANCELLED)
    assert task.outcome.is_cancelled


def test_cancel_without_abort(scheduler):
    task = Task.start(lambda resolve, reject: None, scheduler)
    task.cancel()
    assert task.outcome.error == 'cancelled'


def test_cancel_after_finish_is_noop(scheduler):
    aborted = []
    callbacks = {}

    def starter(resolve, reject):
        callbacks['resolve'] = resolve
        return lambda: aborted.append(True)
    task = Task.start(starter, scheduler)

    callbacks['resolve']('done')
    task.cancel()

    assert aborted == []
    assert task.outcome == Ok('done')


def test_completion_after_cancel_is_ignored(scheduler):
    callbacks = {}

    def starter(resolve, reject):
        callbacks['resolve'] = resolve
        return lambda: None
    task = Task.start(starter, scheduler)

    task.cancel()
    callbacks['resolve']('late')

    assert task.outcome == Err(CANCELLED)


def test_abort_returned_after_synchronous_resolve_is_never_called(scheduler):
    aborted = []

    def starter(resolve, reject):
        resolve(1)
        return lambda: aborted.append(True)
    task = Task.start(starter, scheduler)

    task.cancel()
    assert aborted == []
    assert task.outcome == Ok(1)


def test_listener_called_on_finish(scheduler):
    callbacks = {}
    seen = []
    task = Task.start(lambda resolve, reject: callbacks.update(resolve=resolve), scheduler)
    task._set_listener(seen.append)
    assert seen == []

    callbacks['resolve']('x')
    callbacks['resolve']('y')

    assert seen == [Ok('x')]


def test_listener_called_immediately_if_finished(scheduler):
    seen = []
    Task.with_value(3, scheduler)._set_listener(seen.append)
    assert seen == [Ok(3)]
    assert scheduler.pending == 0


def test_listener_sees_cancellation_before_abort(scheduler):
    events = []
    task = Task.start(lambda resolve, reject: lambda: events.append('abort'), scheduler)
    task._set_listener(lambda outcome: events.append(outcome))

    task.cancel()

    assert events == [Err(CANCELLED), 'abort']


def test_second_listener_fails_fast(scheduler):
    callbacks = {}
    first = []
    task = Task.start(lambda resolve, reject: callbacks.update(resolve=resolve), scheduler)
    task._set_listener(first.append)

    with pytest.raises(InvalidStateError):
        task._set_listener(lambda outcome: None)

    callbacks['resolve'](1)
    assert first == [Ok(1)]


def test_then_do_after_finally_fails(scheduler):
    task = Task.with_value(1, scheduler).finally_(lambda: None)
    with pytest.raises(InvalidStateError):
        task.then_do(lambda value: None)


def test_finally_is_deferred_and_returns_same_task(scheduler):
    ran = []
    task = Task.with_value(1, scheduler)

    assert task.finally_(lambda: ran.append(True)) is task
    assert ran == []

    scheduler.run_until_idle()
    assert ran == [True]


@pytest.mark.parametrize('finish', ['resolve', 'reject', 'cancel'])
def test_finally_runs_however_the_task_ends(scheduler, finish):
    callbacks = {}
    ran = []
    task = Task.start(lambda resolve, reject: callbacks.update(resolve=resolve, reject=reject),
                      scheduler)
    task.finally_(lambda: ran.append(True))

    if finish == 'cancel':
        task.cancel()
    else:
        callbacks[finish]('x')
    assert ran == []

    scheduler.run_until_idle()
    assert ran == [True]


def test_outcome_unpacks_to_error_value_pair():
    assert tuple(Ok(1)) == (None, 1)
    assert tuple(Err('E')) == ('E', None)
    assert Ok(None) != Err(None)


def test_resolve_without_value(scheduler):
    task = Task.start(lambda resolve, reject: resolve(), scheduler)
    assert task.outcome == Ok(None)


def test_listener_finishing_another_task_does_not_nest(scheduler):
    events = []
    second_callbacks = {}
    first_callbacks = {}
    first = Task.start(lambda resolve, reject: first_callbacks.update(resolve=resolve), scheduler)
    second = Task.start(lambda resolve, reject: second_callbacks.update(resolve=resolve), scheduler)

    def on_first(outcome):
        second_callbacks['resolve']('second')
        events.append('first listener done')
    first._set_listener(on_first)
    second._set_listener(lambda outcome: events.append(outcome))

    first_callbacks['resolve']('first')

    assert events == ['first listener done', Ok('second')]
    assert second.done()


def test_raising_listener_does_not_block_later_listeners(scheduler):
    callbacks = {}
    broken = Task.start(lambda resolve, reject: callbacks.update(broken=resolve), scheduler)
    broken._set_listener(lambda outcome: 1 / 0)

    with pytest.raises(ZeroDivisionError):
        callbacks['broken'](1)

    seen = []
    task = Task.start(lambda resolve, reject: callbacks.update(ok=resolve), scheduler)
    task._set_listener(seen.append)
    callbacks['ok'](2)
    assert seen == [Ok(2)]
