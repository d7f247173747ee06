from tickprint.runtime.ticker import TickerDriver, start
from tickprint.utils.timer import LOGS_PER_SECOND

__all__ = ["LOGS_PER_SECOND", "TickerDriver", "start"]
