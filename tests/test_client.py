import asyncio

import pytest

from mcpchat.client import SEND_BUFFER_SIZE, Client


class FakeConn:
    def __init__(self):
        self.closed = 0

    async def close(self):
        self.closed += 1


async def collect(client):
    return [item async for item in client.outgoing()]


@pytest.mark.asyncio
async def test_messages_come_out_in_order():
    client = Client("alice", "r1")
    assert client.send_message("one")
    assert client.send_message("two")
    client.close()
    assert await asyncio.wait_for(collect(client), 1) == ["one", "two"]


@pytest.mark.asyncio
async def test_outgoing_waits_for_new_messages():
    client = Client("alice", "r1")
    task = asyncio.create_task(collect(client))
    await asyncio.sleep(0)
    assert client.send_message("late") is True
    await asyncio.sleep(0)
    client.close()
    received = await asyncio.wait_for(task, 1)
    assert received == ["late"]


@pytest.mark.asyncio
async def test_overflow_closes_queue():
    client = Client("bob", "r1")
    results = [client.send_message(str(n)) for n in range(SEND_BUFFER_SIZE + 1)]
    assert all(results[:SEND_BUFFER_SIZE])
    assert results[-1] is False
    assert client.send_message("after") is False
    items = await asyncio.wait_for(collect(client), 1)
    assert len(items) == SEND_BUFFER_SIZE
    assert items[0] == "0"


@pytest.mark.asyncio
async def test_send_after_close_is_dropped():
    client = Client("carol", "r1")
    client.close()
    assert client.send_message("x") is False
    assert await asyncio.wait_for(collect(client), 1) == []


@pytest.mark.asyncio
async def test_close_closes_connection_once():
    conn = FakeConn()
    client = Client("dave", "r1", conn=conn)
    client.close()
    client.close()
    await asyncio.sleep(0.01)
    assert conn.closed == 1


def test_to_dict_fields():
    client = Client("erin", "room-9", is_gpt=True)
    data = client.to_dict()
    assert data["name"] == "erin"
    assert data["room_id"] == "room-9"
    assert data["is_gpt"] is True
    assert data["id"] == client.id
    assert set(data) == {"id", "name", "room_id", "joined_at", "is_gpt"}


def test_ids_are_unique():
    assert len({Client("x", "r").id for _ in range(10)}) == 10