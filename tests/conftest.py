import pytest

from trio_task import ManualScheduler


@pytest.fixture
def scheduler():
    return ManualScheduler()
