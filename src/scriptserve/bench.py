"""
Concurrent load bench for a running scriptserve instance.

Fires GET requests from many concurrent workers, then reports throughput,
a status-code histogram and latency statistics. With --plot the latency
distribution is saved as a histogram.
"""

import argparse
import asyncio
import statistics
import time
from collections import Counter
from typing import Dict, List

import httpx
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from pydantic import BaseModel  # noqa: E402


class BenchSummary(BaseModel):
    total: int
    elapsed: float
    throughput: float
    codes: Dict[int, int]
    mean: float
    median: float
    p95: float
    p99: float
    latencies: List[float] = []


def percentile(values: List[float], pct: float) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    idx = min(len(ordered) - 1, max(0, int(round(pct / 100.0 * len(ordered))) - 1))
    return ordered[idx]


def summarize(codes: List[int], latencies: List[float], elapsed: float) -> BenchSummary:
    total = len(codes)
    return BenchSummary(
        total=total,
        elapsed=elapsed,
        throughput=total / elapsed if elapsed > 0 else 0.0,
        codes=dict(Counter(codes)),
        mean=statistics.mean(latencies) if latencies else 0.0,
        median=statistics.median(latencies) if latencies else 0.0,
        p95=percentile(latencies, 95),
        p99=percentile(latencies, 99),
        latencies=list(latencies),
    )


async def do_get(client: httpx.AsyncClient, url: str, codes: List[int], latencies: List[float]) -> None:
    start = time.perf_counter()
    try:
        response = await client.get(url)
        codes.append(response.status_code)
    except httpx.HTTPError:
        codes.append(0)
    latencies.append(time.perf_counter() - start)


async def run_bench(url: str, concurrency: int = 10, per_worker: int = 1, timeout: float = 5.0) -> BenchSummary:
    codes: List[int] = []
    latencies: List[float] = []

    async with httpx.AsyncClient(timeout=timeout) as client:
        async def worker():
            for _ in range(per_worker):
                await do_get(client, url, codes, latencies)

        t0 = time.perf_counter()
        await asyncio.gather(*(worker() for _ in range(concurrency)))
        elapsed = time.perf_counter() - t0

    return summarize(codes, latencies, elapsed)


def plot_latencies(latencies: List[float], output: str) -> None:
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.hist([lat * 1000 for lat in latencies], bins=30, color="steelblue", edgecolor="black")
    ax.set_xlabel("Latency (ms)")
    ax.set_ylabel("Requests")
    ax.set_title("Request latency distribution")
    fig.tight_layout()
    fig.savefig(output, dpi=150)
    plt.close(fig)


def print_summary(summary: BenchSummary) -> None:
    print(f"Requests: {summary.total} in {summary.elapsed:.3f}s -> {summary.throughput:.2f} req/s")
    for code in sorted(summary.codes):
        print(f"  {code}: {summary.codes[code]}")
    print(f"Latency mean={summary.mean * 1000:.1f}ms median={summary.median * 1000:.1f}ms "
          f"p95={summary.p95 * 1000:.1f}ms p99={summary.p99 * 1000:.1f}ms")


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="scriptserve-bench")
    ap.add_argument("url", help="full URL to request, e.g. http://localhost:8080/index.html")
    ap.add_argument("--concurrency", "-c", type=int, default=10)
    ap.add_argument("--per-worker", "-n", type=int, default=1)
    ap.add_argument("--timeout", type=float, default=5.0, help="request timeout in seconds (default 5.0)")
    ap.add_argument("--plot", default=None, help="save a latency histogram to this file")
    args = ap.parse_args(argv)

    summary = asyncio.run(run_bench(args.url, args.concurrency, args.per_worker, args.timeout))
    print_summary(summary)
    if args.plot:
        plot_latencies(summary.latencies, args.plot)
        print(f"Saved latency plot to {args.plot}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
