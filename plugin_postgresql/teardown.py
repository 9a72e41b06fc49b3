from .errors import TeardownError

from typing import Awaitable, Callable, List, Sequence, Tuple

import logging

logger = logging.getLogger(__name__)

Teardown = Callable[[], Awaitable[None]]


async def noop_teardown() -> None:
    return None


def _name(action) -> str:
    return getattr(action, "__qualname__", None) or repr(action)


class TeardownErrors(object):
    """Collects the failures of individual teardown actions.

    Every action gets its chance to release its resource; the errors are
    only raised once all of them ran.
    """

    def __init__(self):
        self.errors: List[Tuple[str, BaseException]] = []

    def add_error(self, action, exc):
        self.errors.append((_name(action), exc))

    def __str__(self):
        errors = [" - {}: {!r}".format(*e) for e in self.errors]
        return "\n".join(["Teardown errors:"] + errors)

    def has_errors(self):
        return len(self.errors) > 0


def build_teardown(teardowns: Sequence[Teardown]) -> Teardown:
    """Compose teardown actions into one, run front-to-back.

    A failing action is logged and does not stop the ones after it. If any
    failed, a single `TeardownError` listing all of them is raised at the
    end.

    """
    actions = list(teardowns)

    async def teardown() -> None:
        errors = TeardownErrors()
        for action in actions:
            try:
                await action()
            except Exception as e:
                logger.warning("Teardown action {} failed: {!r}".format(_name(action), e))
                errors.add_error(action, e)

        if errors.has_errors():
            raise TeardownError(str(errors), errors.errors)

    return teardown
