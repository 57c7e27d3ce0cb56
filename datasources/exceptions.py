# datasources/exceptions.py

class StatsServiceError(Exception):
    pass


class StatsServiceUnavailable(StatsServiceError):
    pass


class StatsServiceTimeout(StatsServiceError):
    pass


class InvalidStatsResponse(StatsServiceError):
    pass


class CircuitOpenError(StatsServiceUnavailable):
    pass


class InvalidBaselineWindow(ValueError):
    pass


class UnknownCache(KeyError):
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown cache"
