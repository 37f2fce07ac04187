"""
kvinspect Stress Tests
======================
Large payloads, wide concurrency, and benchmarks.

Run:
    python -m pytest tests/test_stress.py -v --tb=short
"""

from __future__ import annotations

import asyncio
import base64
import json
import time

import msgpack
import pytest

from kvinspect.codecs import gzip_compress
from kvinspect.formats import EncodingKind
from kvinspect.jsonfmt import format_json
from kvinspect.pipeline import ContentPipeline, decode_sync, encode_sync


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _timer():
    """Simple context-manager stopwatch."""
    class Timer:
        def __init__(self):
            self.elapsed = 0.0
        def __enter__(self):
            self._start = time.perf_counter()
            return self
        def __exit__(self, *_):
            self.elapsed = time.perf_counter() - self._start
    return Timer()


def _report(label: str, elapsed: float, size: int = 0):
    mb = size / (1024 * 1024) if size else 0
    rate = f" ({mb / elapsed:.1f} MB/s)" if size and elapsed > 0 else ""
    print(f"  {label}: {elapsed*1000:.1f} ms{rate}")


def _records(n: int) -> list[dict]:
    return [
        {"id": i, "name": f"user-{i}", "tags": ["a", "b", str(i % 7)], "score": i / 4, "active": i % 2 == 0}
        for i in range(n)
    ]


# ===================================================================
# 1. LARGE PAYLOADS
# ===================================================================

class TestLargePayloads:

    def test_large_gzip_roundtrip(self):
        text = "".join(f"line {i}: the quick brown fox\n" for i in range(100_000))
        data = gzip_compress(text.encode("utf-8"))
        with _timer() as t:
            result = decode_sync(data)
        _report("decode gzip", t.elapsed, len(text))
        assert result.encoding is EncodingKind.GZIP
        assert result.content == text
        assert encode_sync(result.content, result.encoding) == data

    def test_large_gz64_roundtrip(self):
        text = json.dumps(_records(20_000))
        data = base64.b64encode(gzip_compress(text.encode("utf-8")))
        result = decode_sync(data)
        assert result.encoding is EncodingKind.BASE64_GZIP
        assert result.content == text
        assert encode_sync(result.content, result.encoding) == data

    def test_large_messagepack(self):
        records = _records(20_000)
        data = msgpack.packb(records)
        with _timer() as t:
            result = decode_sync(data)
        _report("decode messagepack", t.elapsed, len(data))
        assert result.encoding is EncodingKind.MESSAGEPACK
        assert json.loads(result.content) == records
        again = encode_sync(result.content, result.encoding)
        assert msgpack.unpackb(again) == records

    def test_large_plain_binary(self):
        data = bytes(range(1, 256)) * 20_000
        result = decode_sync(data)
        assert result.encoding is EncodingKind.PLAIN
        assert encode_sync(result.content, result.encoding) == data

    def test_large_json_format(self):
        text = json.dumps(_records(20_000))
        pretty = format_json(text, True)
        assert pretty is not None
        assert format_json(pretty, False) == format_json(text, False)

    def test_highly_compressible(self):
        data = gzip_compress(b"\x00" * (16 * 1024 * 1024))
        assert len(data) < 64 * 1024
        result = decode_sync(data)
        assert result.encoding is EncodingKind.GZIP
        assert len(result.content) == 16 * 1024 * 1024


# ===================================================================
# 2. CONCURRENCY
# ===================================================================

class TestConcurrency:

    @pytest.mark.asyncio
    async def test_many_concurrent_decodes(self):
        pipeline = ContentPipeline()
        buffers = []
        expected = []
        for i in range(200):
            kind = i % 4
            payload = json.dumps({"i": i, "pad": "x" * i}, separators=(",", ":"))
            if kind == 0:
                buffers.append(payload.encode())
                expected.append((payload, EncodingKind.PLAIN))
            elif kind == 1:
                buffers.append(gzip_compress(payload.encode()))
                expected.append((payload, EncodingKind.GZIP))
            elif kind == 2:
                buffers.append(base64.b64encode(gzip_compress(payload.encode())))
                expected.append((payload, EncodingKind.BASE64_GZIP))
            else:
                buffers.append(msgpack.packb(json.loads(payload)))
                expected.append((payload, EncodingKind.MESSAGEPACK))

        results = await asyncio.gather(*(pipeline.decode(b) for b in buffers))
        assert [(r.content, r.encoding) for r in results] == expected

    @pytest.mark.asyncio
    async def test_slow_decode_does_not_block_loop(self):
        pipeline = ContentPipeline()
        big = gzip_compress(("payload " * 2_000_000).encode())
        finished: list[str] = []

        async def decoder():
            result = await pipeline.decode(big)
            finished.append("decode")
            return result

        async def ticker():
            for _ in range(5):
                await asyncio.sleep(0)
            finished.append("ticker")

        result, _ = await asyncio.gather(decoder(), ticker())
        assert finished == ["ticker", "decode"]
        assert result.encoding is EncodingKind.GZIP

    @pytest.mark.asyncio
    async def test_concurrent_encodes(self):
        pipeline = ContentPipeline()
        texts = [json.dumps({"n": i}) for i in range(100)]
        kinds = list(EncodingKind)
        jobs = [pipeline.encode(t, kinds[i % len(kinds)]) for i, t in enumerate(texts)]
        outputs = await asyncio.gather(*jobs)
        for text, data in zip(texts, outputs):
            decoded = decode_sync(data)
            assert json.loads(decoded.content) == json.loads(text)
