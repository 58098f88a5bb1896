import logging
from functools import wraps
from typing import Callable
from typing import TypeVar
from typing import cast

from vsaudit.stats import get_stats_client

logger = logging.getLogger(__name__)

AnyCallable = TypeVar("AnyCallable", bound=Callable)

STATUS_PASS = 0
STATUS_FAIL = 1
STATUS_USAGE = 2
STATUS_UNKNOWN = 3
STATUS_FATAL = 4
STATUS_INTERRUPTED = 130


def timeit(method: AnyCallable) -> AnyCallable:
    """
    Time a function with statsd when a stats client is installed. The metric
    name is `<module>.<function>`.
    """

    @wraps(method)
    def timed(*args, **kwargs):  # type: ignore
        stats_client = get_stats_client(method.__module__)
        if stats_client.is_enabled():
            timer = stats_client.timer(method.__name__)
            timer.start()
            result = method(*args, **kwargs)
            timer.stop()
            return result
        return method(*args, **kwargs)

    return cast(AnyCallable, timed)
