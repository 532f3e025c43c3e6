import time
import uuid
import logging
from functools import wraps
from typing import Optional

from core.prometheus_metrics import prometheus_collector

logger = logging.getLogger(__name__)


def track_performance(service_name: Optional[str] = None):
    """
    Decorator to automatically track method performance

    Usage:
    @track_performance(service_name="InspectionService")
    async def my_method(self, param1, param2):
        # method implementation
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            # Generate correlation ID
            correlation_id = str(uuid.uuid4())

            # Extract service name and method name
            actual_service_name = service_name or (args[0].__class__.__name__ if args else "Unknown")
            method_name = func.__name__

            # Extract user_id if available
            user = getattr(args[0], 'user', None) if args else None
            user_id = getattr(user, 'user_id', None)

            # Start timing
            start_time = time.time()
            success = False

            try:
                result = await func(*args, **kwargs)
                success = True
                return result

            except Exception as e:
                logger.error(f"Error in {actual_service_name}.{method_name}: {e}")
                raise

            finally:
                duration_ms = (time.time() - start_time) * 1000

                prometheus_collector.record_operation(
                    service_name=actual_service_name,
                    method_name=method_name,
                    duration_seconds=duration_ms / 1000,
                    success=success,
                )

                # Log structured metrics
                logger.info(
                    f"Method executed: {actual_service_name}.{method_name}",
                    extra={
                        'correlation_id': correlation_id,
                        'service_name': actual_service_name,
                        'method_name': method_name,
                        'duration_ms': duration_ms,
                        'success': success,
                        'user_id': user_id
                    }
                )

        return wrapper
    return decorator
