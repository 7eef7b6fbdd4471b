"""Tests for the SSE overlay event bus and HTTP endpoints."""

import asyncio
import json

from mudmap import overlay


async def _get(port, path):
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    writer.write(f"GET {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode())
    await writer.drain()
    response = await reader.read()
    writer.close()
    head, _, body = response.partition(b"\r\n\r\n")
    return head.split(b"\r\n")[0].decode(), body


class TestEventBus:
    def test_broadcast_to_clients(self):
        q = asyncio.Queue()
        overlay._clients.add(q)
        try:
            overlay.send_line("You see a rat.")
            msg = q.get_nowait()
        finally:
            overlay._clients.discard(q)
        assert msg == 'event: line\ndata: {"text": "You see a rat."}\n\n'

    def test_full_queue_dropped(self):
        q = asyncio.Queue(maxsize=1)
        overlay._clients.add(q)
        overlay.broadcast("line", {"text": "a"})
        overlay.broadcast("line", {"text": "b"})
        assert q not in overlay._clients

    def test_location(self, map_data):
        overlay.send_location(map_data.rooms_by_id[12])
        assert overlay.last_location() == {
            "area_id": 1, "level": 0, "room_id": 12, "name": "The Plains", "coordinates": [0, -2, 0],
        }
        overlay.send_reset()
        assert overlay.last_location() is None


class TestServer:
    def test_location_endpoint(self, map_data):
        async def run():
            server = await overlay.start_server(port=0, host="127.0.0.1")
            port = server.sockets[0].getsockname()[1]
            try:
                overlay.send_reset()
                before = await _get(port, "/location")
                overlay.send_location(map_data.rooms_by_id[20])
                after = await _get(port, "/location")
                missing = await _get(port, "/nope")
            finally:
                server.close()
                overlay.send_reset()
            return before, after, missing

        before, after, missing = asyncio.run(run())
        assert before == ("HTTP/1.1 404 Not Found", b"{}")
        assert after[0] == "HTTP/1.1 200 OK"
        assert json.loads(after[1])["room_id"] == 20
        assert missing[0] == "HTTP/1.1 404 Not Found"
