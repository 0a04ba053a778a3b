import asyncio
import base64
import json
from io import BytesIO

import pytest
from aiohttp import web
from PIL import Image

from mediabridge.artwork import ArtworkCache, ArtworkRetriever, process_image
from mediabridge.lib.config import reload_config


def _run(coro):
    return asyncio.run(coro)


def _png(mode="RGBA", size=(32, 32)):
    buf = BytesIO()
    Image.new(mode, size, (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)).save(buf, "PNG")
    return buf.getvalue()


def _decode(data_uri):
    prefix = "data:image/jpeg;base64,"
    assert data_uri.startswith(prefix)
    return Image.open(BytesIO(base64.b64decode(data_uri[len(prefix):])))


def test_process_image_reencodes_as_jpeg():
    image = _decode(process_image(_png()))
    assert image.format == "JPEG"
    assert image.size == (32, 32)
    assert image.mode == "RGB"


def test_process_image_rejects_garbage():
    with pytest.raises(ValueError):
        process_image(b"<html>not found</html>")


def test_cache_evicts_least_recently_used():
    cache = ArtworkCache(max_size=2)
    cache.store("a", "A")
    cache.store("b", "B")
    assert cache.lookup("a") == "A"
    cache.store("c", "C")
    assert "b" not in cache
    assert "a" in cache and "c" in cache
    assert len(cache) == 2
    assert cache.lookup("b") is None
    assert (cache.hits, cache.misses) == (1, 1)


def test_restoring_an_entry_refreshes_it():
    cache = ArtworkCache(max_size=2)
    cache.store("a", "A")
    cache.store("b", "B")
    cache.store("a", "A2")
    cache.store("c", "C")
    assert "b" not in cache
    assert cache.lookup("a") == "A2"


def test_cache_size_from_config(isolated_config):
    isolated_config.write_text(json.dumps({"artwork": {"cache_size": 3}}))
    reload_config()
    assert ArtworkCache().max_size == 3
    assert ArtworkRetriever(native=None).cache.max_size == 3
    assert ArtworkCache(max_size=0).max_size == 1


def test_item_without_url_is_ignored(native):
    retriever = ArtworkRetriever(native, image_url=lambda item: None)
    assert retriever.fetch_for_item({"Name": "No art"}) is None
    assert retriever.fetch_for_item({}) is None
    assert ArtworkRetriever(native).fetch_for_item({"Id": "x"}) is None
    assert retriever.pending_url is None


def test_cache_hit_is_delivered_without_network(native):
    async def scenario():
        retriever = ArtworkRetriever(native)
        retriever.cache.store("http://art/1.jpg", "data:image/jpeg;base64,AAAA")
        await retriever.request("http://art/1.jpg")
        await retriever.close()

    _run(scenario())
    assert native.named("artwork") == [("data:image/jpeg;base64,AAAA",)]


def test_download_and_deliver(native, local_server):
    png = _png()
    hits = []

    async def image(request):
        hits.append(request.path)
        return web.Response(body=png, content_type="image/png")

    async def scenario():
        async with local_server([web.get("/Items/{id}/Images/Primary", image)]) as base:
            retriever = ArtworkRetriever(
                native, image_url=lambda item: f"{base}/Items/{item['Id']}/Images/Primary")
            item = {"Id": "item-1"}
            task = retriever.fetch_for_item(item)
            assert retriever.fetch_for_item(item) is None
            await task
            await retriever.request(f"{base}/Items/item-1/Images/Primary")
            await retriever.close()

    _run(scenario())
    assert hits == ["/Items/item-1/Images/Primary"]
    delivered = native.named("artwork")
    assert len(delivered) == 2
    assert _decode(delivered[0][0]).format == "JPEG"


def test_failures_are_only_logged(native, local_server):
    async def missing(request):
        raise web.HTTPNotFound()

    async def empty(request):
        return web.Response(body=b"", content_type="image/png")

    async def scenario():
        async with local_server([web.get("/missing", missing),
                                 web.get("/empty", empty)]) as base:
            retriever = ArtworkRetriever(native)
            await retriever.request(f"{base}/missing")
            await retriever.request(f"{base}/empty")
            assert retriever.pending_url is None
            await retriever.close()

    _run(scenario())
    assert native.named("artwork") == []


def test_new_url_supersedes_pending(native, monkeypatch):
    async def scenario():
        retriever = ArtworkRetriever(native)
        gate = asyncio.Event()

        async def download(url, token):
            if url.endswith("old"):
                await gate.wait()
            return f"uri:{url}"

        monkeypatch.setattr(retriever, "_download", download)
        old = retriever.request("http://art/old")
        await asyncio.sleep(0)
        new = retriever.request("http://art/new")
        gate.set()
        await asyncio.gather(old, new)
        retriever.cancel()

    _run(scenario())
    assert native.named("artwork") == [("uri:http://art/new",)]
