"""Splits the calls across threads, runs them and reports the results."""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Tuple

from .config import RunConfig
from .console import BOLD, CYAN, GREEN, RED, RESET, YELLOW, Sink
from .transport import Transport
from .worker import ResponseTimes, run_worker


def partition_calls(total_calls: int, num_threads: int) -> List[Tuple[int, int]]:
    """
    Split total_calls into per-thread counts.

    The first total_calls % num_threads threads get one extra call.

    Returns:
        List of (worker_id, call_count) tuples
    """
    if num_threads < 1:
        raise ValueError("num_threads must be at least 1")
    if total_calls < 0:
        raise ValueError("total_calls must be 0 or greater")

    base, remainder = divmod(total_calls, num_threads)
    return [(i, base + 1 if i < remainder else base) for i in range(num_threads)]


def calculate_statistics(response_times: List[float], total_calls: int, duration_seconds: float) -> Dict:
    """
    Reduce the recorded response times into the run summary.

    Failed calls are counted like successful ones.
    """
    return {
        "total_calls": total_calls,
        "completed_calls": len(response_times),
        "duration_seconds": duration_seconds,
        "avg_response_ms": sum(response_times) / len(response_times) if response_times else None,
        "requests_per_second": total_calls / duration_seconds if duration_seconds > 0 else 0,
    }


def print_banner(config: RunConfig, sink: Sink) -> None:
    sink(f"\n{BOLD}Starting load test...{RESET}")
    sink(f"Target: {CYAN}{config.url}{RESET}")
    sink(f"Calls: {config.total_calls} | Threads: {config.num_threads} | Sleep: {config.sleep_time_ms} ms")
    sink(f"Timeouts: request {config.request_timeout_ms} ms | idle connection {config.connect_timeout_ms} ms")
    sink(f"Keep-Alive: {GREEN if config.reuse_connections else YELLOW}"
         f"{'enabled' if config.reuse_connections else 'disabled'}{RESET}")
    if config.keep_connections_open:
        sink(f"{YELLOW}Keep connections open: response bodies will not be read{RESET}")
    if config.is_https:
        sink(f"{YELLOW}Warning: TLS certificate verification is disabled{RESET}")
    sink("-" * 60)


def print_summary(stats: Dict, sink: Sink) -> None:
    sink(f"Total test time: {stats['duration_seconds']:.2f} s")
    if stats["avg_response_ms"] is None:
        sink("Average response time: N/A")
    else:
        sink(f"Average response time: {stats['avg_response_ms']:.2f} ms")
    sink(f"Average requests per second: {stats['requests_per_second']:.2f}")


def run_load_test(config: RunConfig, sink: Sink = print, transport: Optional[Transport] = None) -> Dict:
    """
    Run a complete load test.

    Args:
        config: Run configuration
        sink: Where every output line goes
        transport: Transport to use (default: one built from config)

    Returns:
        Statistics dictionary, with the raw "response_times" list included
    """
    if transport is None:
        transport = Transport(config)

    response_times = ResponseTimes(sink)
    assignments = partition_calls(config.total_calls, config.num_threads)

    print_banner(config, sink)

    start_time = time.perf_counter()
    with ThreadPoolExecutor(max_workers=config.num_threads) as executor:
        futures = [
            (worker_id, executor.submit(run_worker, worker_id, call_count, transport, response_times, config))
            for worker_id, call_count in assignments
        ]
    end_time = time.perf_counter()

    # A crashed worker must not take the others down; report it and carry on
    for worker_id, future in futures:
        error = future.exception()
        if error is not None:
            sink(f"{RED}Error: thread {worker_id:2d} stopped: {error}{RESET}")

    transport.close_idle_connections()

    times = response_times.values()
    stats = calculate_statistics(times, config.total_calls, end_time - start_time)
    print_summary(stats, sink)
    sink("All threads have finished.")

    stats["response_times"] = times
    return stats
