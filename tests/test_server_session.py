import asyncio
import json

from settlers.game.resources import ResourceCounts
from settlers.net.client import MessageSink, SessionClient, selection_payload
from settlers.server import GameServer, ResourceSession
from settlers.ui.pick_dialog import ResourcePickDialog
from settlers.ui.resource_selection import SelectionController, SelectionMode

HAND = {"clay": 2, "ore": 1, "sheep": 3, "wheat": 0, "wood": 2}


async def _wait_for(client: SessionClient, msg_type: str, timeout: float = 1.0) -> dict:
    deadline = asyncio.get_event_loop().time() + timeout
    while True:
        remaining = deadline - asyncio.get_event_loop().time()
        if remaining <= 0:
            raise AssertionError(f"Timed out waiting for message type {msg_type}")
        msg = await client.read(remaining)
        if msg.get("type") == msg_type:
            return msg


async def _start() -> tuple[GameServer, ResourceSession]:
    session = ResourceSession()
    server = GameServer(session)
    await server.start()
    return server, session


async def _join(server: GameServer, name: str, hand: dict) -> SessionClient:
    host, port = server.address
    client = SessionClient(host, port)
    await client.connect()
    await client.send({"type": "join", "name": name, "resources": hand})
    await _wait_for(client, "welcome")
    await _wait_for(client, "players")
    return client


def test_selection_payload_uses_mode_specific_type() -> None:
    counts = ResourceCounts.from_mapping({"ore": 1})
    assert selection_payload(SelectionMode.DISCARD, counts) == {
        "type": "discard",
        "resources": {"clay": 0, "ore": 1, "sheep": 0, "wheat": 0, "wood": 0},
    }
    assert selection_payload(SelectionMode.GAIN, counts)["type"] == "pick_resources"


def test_message_sink_sends_one_payload_per_confirm() -> None:
    sent = []
    controller = SelectionController.for_gain(1, sink=MessageSink(sent.append))
    controller.increment_pick("wood")
    controller.confirm()
    controller.confirm()
    assert sent == [selection_payload(SelectionMode.GAIN, ResourceCounts.from_mapping({"wood": 1}))]


def test_confirmed_discard_updates_hand_on_server() -> None:
    async def _run() -> None:
        server, session = await _start()
        client = await _join(server, "Ace", HAND)

        controller = SelectionController.for_discard(
            ResourceCounts.from_mapping(HAND), 2, sink=MessageSink(client.submit)
        )
        controller.increment_pick("sheep")
        controller.increment_pick("clay")
        controller.confirm()
        await client.flush()

        update = await _wait_for(client, "resources")
        assert update["id"] == 1
        assert update["resources"] == {"clay": 1, "ore": 1, "sheep": 2, "wheat": 0, "wood": 2}
        assert session.players[1].resources.total() == 6

        await client.close()
        await server.stop()

    asyncio.run(_run())


def test_pick_resources_adds_to_hand() -> None:
    async def _run() -> None:
        server, session = await _start()
        client = await _join(server, "Ace", HAND)
        await client.send({"type": "pick_resources", "resources": {"wheat": 2}})
        update = await _wait_for(client, "resources")
        assert update["resources"]["wheat"] == 2
        await client.close()
        await server.stop()

    asyncio.run(_run())


def test_over_discard_is_rejected_and_hand_unchanged() -> None:
    async def _run() -> None:
        server, session = await _start()
        client = await _join(server, "Ace", HAND)
        await client.send({"type": "discard", "resources": {"ore": 1, "wheat": 1}})
        error = await _wait_for(client, "error")
        assert "wheat" in error["message"]
        assert session.players[1].resources.as_dict() == HAND
        await client.close()
        await server.stop()

    asyncio.run(_run())


def test_malformed_payloads_get_error_replies() -> None:
    async def _run() -> None:
        server, _ = await _start()
        host, port = server.address
        reader, writer = await asyncio.open_connection(host, port)
        writer.write(b"not json\n")
        await writer.drain()
        reply = json.loads((await asyncio.wait_for(reader.readline(), 1.0)).decode("utf-8"))
        assert reply["type"] == "error"

        writer.write(json.dumps({"type": "discard", "resources": {"ore": -1}}).encode("utf-8") + b"\n")
        await writer.drain()
        reply = json.loads((await asyncio.wait_for(reader.readline(), 1.0)).decode("utf-8"))
        assert reply["type"] == "error"
        assert "Invalid resources" in reply["message"]

        writer.write(json.dumps({"type": "discard", "resources": {"ore": 1}}).encode("utf-8") + b"\n")
        await writer.drain()
        reply = json.loads((await asyncio.wait_for(reader.readline(), 1.0)).decode("utf-8"))
        assert reply == {"type": "error", "message": "Join before sending resources"}

        writer.close()
        await writer.wait_closed()
        await server.stop()

    asyncio.run(_run())


def test_disconnect_broadcasts_player_left() -> None:
    async def _run() -> None:
        server, session = await _start()
        first = await _join(server, "Ace", HAND)
        second = await _join(server, "Bea", {})
        await _wait_for(first, "players")

        await second.close()
        left = await _wait_for(first, "player_left")
        assert left["id"] == 2
        snapshot = await _wait_for(first, "players")
        assert [player["name"] for player in snapshot["players"]] == ["Ace"]

        await first.close()
        await server.stop()

    asyncio.run(_run())


def test_confirm_after_server_stops_is_reported_to_player() -> None:
    async def _run() -> None:
        server, _ = await _start()
        client = await _join(server, "Ace", HAND)
        await server.stop()
        for _ in range(100):
            if not client.connected:
                break
            await asyncio.sleep(0.01)
        assert not client.connected

        controller = SelectionController.for_gain(1, sink=MessageSink(client.submit))
        controller.increment_pick("wheat")
        dialog = ResourcePickDialog(controller, "Ace")
        dialog.confirm()
        await client.flush()

        assert dialog.closed
        assert dialog.message is not None
        assert "Connection lost" in dialog.message
        await client.close()

    asyncio.run(_run())


class RecordingHandler:
    def __init__(self) -> None:
        self.disconnected = []

    async def handle_message(self, server, client_id, message) -> None:
        pass

    async def handle_disconnect(self, server, client_id) -> None:
        self.disconnected.append(client_id)


class FakeConnection:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.received = []
        self.hung_up = False

    async def deliver(self, payload: dict) -> None:
        if self.fail:
            raise ConnectionResetError("peer reset")
        self.received.append(payload)

    async def hang_up(self) -> None:
        self.hung_up = True


def test_broadcast_drops_unreachable_peer_and_reaches_the_rest() -> None:
    async def _run() -> None:
        handler = RecordingHandler()
        server = GameServer(handler)
        healthy, broken, other = FakeConnection(), FakeConnection(fail=True), FakeConnection()
        server.clients.update({1: healthy, 2: broken, 3: other})

        await server.broadcast({"type": "players", "players": []})

        assert healthy.received == [{"type": "players", "players": []}]
        assert other.received == [{"type": "players", "players": []}]
        assert broken.hung_up
        assert sorted(server.clients) == [1, 3]
        assert handler.disconnected == [2]

    asyncio.run(_run())


def test_send_to_unreachable_peer_disconnects_it() -> None:
    async def _run() -> None:
        handler = RecordingHandler()
        server = GameServer(handler)
        server.clients[4] = FakeConnection(fail=True)
        await server.send_to(4, {"type": "welcome", "id": 4})
        await server.send_to(99, {"type": "welcome", "id": 99})
        assert server.clients == {}
        assert handler.disconnected == [4]

    asyncio.run(_run())
