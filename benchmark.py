import asyncio
import random
import time
import statistics
import tracemalloc
from httpx import AsyncClient, ASGITransport
from main import app, app_state, DEFAULT_QUEUE_CONFIG
from indexed_pq import IndexedMinHeap


class PerformanceBenchmark:
    def __init__(self, seed: int = 0):
        self.latencies = []
        self.successful_ops = 0
        self.failed_ops = 0
        self.rng = random.Random(seed)

    def _timed(self, op, *args):
        start_time = time.perf_counter()
        result = op(*args)
        self.latencies.append((time.perf_counter() - start_time) * 1_000_000)
        self.successful_ops += 1
        return result

    def _report_metrics(self, test_name: str, duration: float, num_ops: int, unit: str = "us"):
        throughput = num_ops / duration
        avg_latency = statistics.mean(self.latencies)
        p50 = statistics.median(self.latencies)
        p95 = statistics.quantiles(self.latencies, n=20)[18] if len(self.latencies) >= 20 else max(self.latencies)
        p99 = statistics.quantiles(self.latencies, n=100)[98] if len(self.latencies) >= 100 else max(self.latencies)

        print(f"\n{'=' * 60}")
        print(f"  {test_name}")
        print(f"{'=' * 60}")
        print(f"  Operations:  {num_ops}")
        print(f"  Duration:    {duration:.2f}s")
        print(f"  Throughput:  {throughput:,.0f} ops/s")
        print(f"  Succeeded:   {self.successful_ops}")
        print(f"  Failed:      {self.failed_ops}")
        print(f"  Avg Latency: {avg_latency:.2f}{unit}")
        print(f"  p50 Latency: {p50:.2f}{unit}")
        print(f"  p95 Latency: {p95:.2f}{unit}")
        print(f"  p99 Latency: {p99:.2f}{unit}")
        print(f"{'=' * 60}")

        return {
            "throughput": throughput,
            "avg_latency": avg_latency,
            "p50": p50,
            "p95": p95,
            "p99": p99,
        }

    def _reset(self):
        self.latencies.clear()
        self.successful_ops = 0
        self.failed_ops = 0

    def run_insert_test(self, queue: IndexedMinHeap, num_items: int):
        start_time = time.perf_counter()
        handles = [self._timed(queue.insert, self.rng.randrange(1 << 32), i) for i in range(num_items)]
        duration = time.perf_counter() - start_time
        return handles, self._report_metrics(f"Insert ({num_items} items)", duration, num_items)

    def run_update_test(self, queue: IndexedMinHeap, handles):
        self._reset()
        start_time = time.perf_counter()
        for handle in handles:
            current = queue.priority_of(handle)
            if self.rng.random() < 0.5:
                self._timed(queue.decrease_priority, handle, self.rng.randrange(current + 1))
            else:
                self._timed(queue.increase_priority, handle, self.rng.randrange(current, 1 << 32))
        duration = time.perf_counter() - start_time
        return self._report_metrics(f"Decrease/Increase ({len(handles)} updates)", duration, len(handles))

    def run_extract_test(self, queue: IndexedMinHeap):
        self._reset()
        num_items = queue.size()
        start_time = time.perf_counter()
        previous = -1
        while not queue.is_empty():
            item = self._timed(queue.extract_min_item)
            if item.priority < previous:
                self.failed_ops += 1
            previous = item.priority
        duration = time.perf_counter() - start_time
        return self._report_metrics(f"Extract ({num_items} items)", duration, num_items)

    async def run_http_test(self, num_requests: int = 2000, concurrency: int = 50):
        self._reset()

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            await client.put(
                "/v1/queues/config",
                json={"name": "benchmark_queue", "capacity": num_requests}
            )

            semaphore = asyncio.Semaphore(concurrency)

            async def bounded_request(i):
                async with semaphore:
                    start = time.perf_counter()
                    response = await client.post(
                        "/v1/queues/benchmark_queue/insert",
                        json={"priority": self.rng.randrange(1000), "value": {"id": i}}
                    )
                    self.latencies.append((time.perf_counter() - start) * 1000)
                    if response.status_code == 200:
                        self.successful_ops += 1
                    else:
                        self.failed_ops += 1

            start_time = time.time()
            await asyncio.gather(*[bounded_request(i) for i in range(num_requests)])
            duration = time.time() - start_time

        return self._report_metrics("HTTP Insert", duration, num_requests, unit="ms")

    async def run_all_benchmarks(self, num_items: int = 100000):
        print("\n" + "#" * 60)
        print("  INDEXED PRIORITY QUEUE — PERFORMANCE BENCHMARK")
        print("#" * 60)

        tracemalloc.start()

        results = {}
        queue = IndexedMinHeap()
        handles, results["insert"] = self.run_insert_test(queue, num_items)
        results["update"] = self.run_update_test(queue, handles)
        results["extract"] = self.run_extract_test(queue)
        ordering_ok = self.failed_ops == 0
        results["http"] = await self.run_http_test()

        peak_memory = tracemalloc.get_traced_memory()[1]
        tracemalloc.stop()

        print(f"\n{'=' * 60}")
        print(f"  MEMORY")
        print(f"{'=' * 60}")
        print(f"  Peak Memory Usage: {peak_memory / 1024:.1f} KB ({peak_memory / (1024*1024):.2f} MB)")
        print(f"{'=' * 60}")

        print(f"\n{'#' * 60}")
        print(f"  SUMMARY")
        print(f"{'#' * 60}")
        print(f"  Insert p99:  {results['insert']['p99']:.2f}us")
        print(f"  Update p99:  {results['update']['p99']:.2f}us")
        print(f"  Extract p99: {results['extract']['p99']:.2f}us")
        print(f"  Ordering:    {'PASS' if ordering_ok else 'FAIL'}")
        print(f"  HTTP p95:    {results['http']['p95']:.2f}ms")
        print(f"  Peak Memory: {peak_memory / 1024:.1f} KB")
        print(f"{'#' * 60}\n")

        return results


async def main():
    app_state["default_queue_config"] = dict(DEFAULT_QUEUE_CONFIG)

    benchmark = PerformanceBenchmark()
    await benchmark.run_all_benchmarks()


if __name__ == "__main__":
    asyncio.run(main())
