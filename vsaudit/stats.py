from typing import Optional

from statsd import StatsClient


class ScopedStatsClient:
    """
    A statsd client wrapper that prefixes every metric with a scope name,
    e.g. `vsaudit.rules.runners.control.fail`. When no underlying client is
    set (statsd disabled), every call is a no-op.
    """

    _client: Optional[StatsClient] = None

    def __init__(self, prefix: Optional[str] = None):
        self._scope_prefix = prefix

    def get_stats_client(self, scope: str) -> "ScopedStatsClient":
        if not self._scope_prefix:
            prefixed_scope = scope
        else:
            prefixed_scope = f"{self._scope_prefix}.{scope}"
        return ScopedStatsClient(prefix=prefixed_scope)

    @staticmethod
    def is_enabled() -> bool:
        return ScopedStatsClient._client is not None

    def _name(self, stat: str) -> str:
        return f"{self._scope_prefix}.{stat}" if self._scope_prefix else stat

    def incr(self, stat: str, count: int = 1, rate: float = 1.0) -> None:
        if self.is_enabled():
            self._client.incr(self._name(stat), count, rate)

    def timer(self, stat: str, rate: float = 1.0):
        if self.is_enabled():
            return self._client.timer(self._name(stat), rate)
        return None

    def gauge(self, stat: str, value: int, rate: float = 1.0, delta: bool = False) -> None:
        if self.is_enabled():
            self._client.gauge(self._name(stat), value, rate, delta)


_scoped_stats_client = ScopedStatsClient()


def set_stats_client(stats_client: Optional[StatsClient]) -> None:
    """Install (or with None, remove) the process-wide statsd client."""
    ScopedStatsClient._client = stats_client


def get_stats_client(prefix: str) -> ScopedStatsClient:
    return _scoped_stats_client.get_stats_client(prefix)
