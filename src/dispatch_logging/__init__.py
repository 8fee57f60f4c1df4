from .context import log_context, log_driver_context, log_ride_context
from .setup import setup_logging

__all__ = ["setup_logging", "log_context", "log_ride_context", "log_driver_context"]
