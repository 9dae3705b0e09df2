import pytest

from example_scenarios import FixtureShop


class ContextPool:
    """Context factory that records every context it hands out"""

    def __init__(self, title="Shop", fail_on=()):
        self.title = title
        self.fail_on = set(fail_on)
        self.opened = []

    async def __call__(self):
        if len(self.opened) + 1 in self.fail_on:
            self.opened.append(None)
            raise ConnectionError("browser crashed")
        context = FixtureShop(self.title)
        self.opened.append(context)
        return context


@pytest.fixture
def shop():
    return FixtureShop()


@pytest.fixture
def pool():
    return ContextPool()
