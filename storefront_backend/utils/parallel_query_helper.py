"""
Parallel Query Helper for the Storefront Backend
Runs independent read-only collection fetches concurrently for multi-collection reports
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging
import time

logger = logging.getLogger(__name__)


def fetch_collections_parallel(fetch_functions, max_workers=4, timeout=30):
    """
    Execute multiple database fetch functions in parallel using ThreadPoolExecutor.

    PyMongo clients are thread-safe and every fetch here is an independent read,
    so running them side by side returns the same data as running them in turn.
    Unlike a best-effort fan-out, a failing fetch fails the whole call: the
    first exception is re-raised and the call returns without waiting on
    fetches still in flight. Logging the failure is left to the caller.

    Args:
        fetch_functions: Dict of {name: callable} where callable returns query results
        max_workers: Maximum number of concurrent threads (default: 4)
        timeout: Maximum seconds to wait for all queries (default: 30)

    Returns:
        Dict of {name: results}

    Raises:
        Whatever the first failing fetch raised, or
        concurrent.futures.TimeoutError when the timeout elapses.

    Example:
        results = fetch_collections_parallel({
            'orders': lambda: list(db.orders.find(order_query)),
            'expenses': lambda: list(db.expenses.find(expense_query)),
        })
    """
    if not fetch_functions:
        return {}

    results = {}
    workers = max(1, min(int(max_workers or 1), len(fetch_functions)))

    # Fetches still running after a failure or timeout are abandoned, not joined
    executor = ThreadPoolExecutor(max_workers=workers)
    try:
        future_to_name = {
            executor.submit(func): name
            for name, func in fetch_functions.items()
        }

        for future in as_completed(future_to_name, timeout=timeout):
            results[future_to_name[future]] = future.result()
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    return results


def fetch_with_timing(fetch_function, label="Query"):
    """
    Wrapper to measure query execution time (logged at debug level).

    Args:
        fetch_function: Callable that executes the query
        label: Label for logging

    Returns:
        Query results
    """
    start_time = time.time()
    results = fetch_function()
    elapsed = time.time() - start_time
    logger.debug(f"{label} took {elapsed:.3f}s")
    return results
