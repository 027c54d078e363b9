import pytest

from scriptserve.bench import percentile, plot_latencies, run_bench, summarize


def test_percentile():
    values = [float(i) for i in range(1, 101)]
    assert percentile(values, 50) == 50.0
    assert percentile(values, 95) == 95.0
    assert percentile(values, 99) == 99.0
    assert percentile([], 95) == 0.0
    assert percentile([3.0], 99) == 3.0


def test_summarize():
    summary = summarize([200, 200, 404, 0], [0.1, 0.2, 0.3, 0.4], elapsed=2.0)
    assert summary.total == 4
    assert summary.throughput == 2.0
    assert summary.codes == {200: 2, 404: 1, 0: 1}
    assert summary.mean == pytest.approx(0.25)
    assert summary.median == pytest.approx(0.25)
    assert summary.p99 == 0.4


def test_summarize_empty():
    summary = summarize([], [], elapsed=0.0)
    assert summary.total == 0
    assert summary.throughput == 0.0
    assert summary.mean == 0.0


async def test_run_bench_against_server(server):
    summary = await run_bench(f"http://127.0.0.1:{server.port}/index.html", concurrency=5, per_worker=2)
    assert summary.total == 10
    assert summary.codes == {200: 10}
    assert len(summary.latencies) == 10


def test_plot_latencies(tmp_path):
    out = tmp_path / "latency.png"
    plot_latencies([0.01, 0.02, 0.015, 0.03], str(out))
    assert out.exists()
    assert out.stat().st_size > 0
