"""Tests for the Voyage AI client."""

import json

import httpx
import pytest

from graphrag_core.clients import VoyageClient


def make_transport(requests: list):
    """Mock transport echoing one vector per input, in reverse index order."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append(body)
        data = [
            {"index": i, "embedding": [float(len(text)), float(i)]}
            for i, text in enumerate(body["input"])
        ]
        return httpx.Response(200, json={"data": list(reversed(data)), "usage": {"total_tokens": 1}})

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_embed_texts_preserves_input_order(settings):
    requests = []
    client = VoyageClient(settings, transport=make_transport(requests))

    vectors = await client.embed_texts(["a", "bbb", "cc"])

    assert vectors == [[1.0, 0.0], [3.0, 1.0], [2.0, 2.0]]
    assert requests[0]["model"] == settings.voyage_embed_model
    assert requests[0]["input_type"] == "document"
    assert requests[0]["output_dimension"] == settings.embedding_dimension
    await client.close()


@pytest.mark.asyncio
async def test_embed_texts_batches(settings):
    requests = []
    client = VoyageClient(settings, transport=make_transport(requests))

    vectors = await client.embed_texts([f"text {i}" for i in range(VoyageClient.MAX_BATCH_SIZE + 5)])

    assert len(vectors) == VoyageClient.MAX_BATCH_SIZE + 5
    assert [len(r["input"]) for r in requests] == [VoyageClient.MAX_BATCH_SIZE, 5]
    await client.close()


@pytest.mark.asyncio
async def test_embed_queries_uses_query_input_type(settings):
    requests = []
    client = VoyageClient(settings, transport=make_transport(requests))

    await client.embed_queries(["what is this?"])

    assert requests[0]["input_type"] == "query"
    await client.close()


@pytest.mark.asyncio
async def test_embed_raises_on_http_error(settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"detail": "bad key"}))
    client = VoyageClient(settings, transport=transport)

    with pytest.raises(httpx.HTTPStatusError):
        await client.embed(["text"])
    await client.close()
