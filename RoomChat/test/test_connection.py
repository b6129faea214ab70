"""
Unit tests for the connection manager.

Tests cover:
- Handshake error mapping (timeout, unreachable, rejected)
- Reader task forwarding and malformed frames
- Orderly close, server switch and peer close
- Background switches and cancelling them on shutdown
"""

import asyncio

import pytest
from websockets.exceptions import InvalidHandshake, InvalidURI

from RoomChat.core.client.connection import (
    ConnectionManager,
    ConnectionStatus,
    FrameEvent,
    PeerClosedEvent,
    ProtocolErrorEvent,
)
from RoomChat.core.client.utils import ConnectionErrorKind, WsConnectionError
from RoomChat.core.message.protocol import FrameType, chat_frame, join_frame, leave_frame
from .conftest import SERVER_A, SERVER_B, FakeConnector, wait_for_inbound, wait_until


def _statuses(manager: ConnectionManager) -> list:
    seen = []
    while not manager.status_events.empty():
        seen.append(manager.status_events.get_nowait().status)
    return seen


class TestConnect:
    """Tests for ConnectionManager.connect."""

    def setup_method(self):
        self.connector = FakeConnector()
        self.manager = ConnectionManager(self.connector, handshake_timeout=0.2, close_timeout=0.5)

    @pytest.mark.asyncio
    async def test_connect_sends_greeting(self):
        handle = await self.manager.connect(SERVER_A, greeting=join_frame("alice", "00FF00", "general"))

        assert handle.status is ConnectionStatus.CONNECTED
        assert self.manager.connected
        assert self.connector.transports[SERVER_A].sent == [
            {"type": "join", "nickname": "alice", "color": "00FF00", "room": "general"},
        ]
        assert _statuses(self.manager) == [ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED]
        await self.manager.shutdown()

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test that a handshake exceeding the deadline fails with Timeout."""
        self.connector.delays[SERVER_A] = 5.0

        with pytest.raises(WsConnectionError) as info:
            await self.manager.connect(SERVER_A)

        assert info.value.kind is ConnectionErrorKind.TIMEOUT
        assert self.manager.handle.status is ConnectionStatus.DISCONNECTED
        assert _statuses(self.manager) == [
            ConnectionStatus.CONNECTING, ConnectionStatus.FAILED, ConnectionStatus.DISCONNECTED,
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exc, kind", [
        (ConnectionRefusedError(111, "Connection refused"), ConnectionErrorKind.UNREACHABLE),
        (OSError("Name or service not known"), ConnectionErrorKind.UNREACHABLE),
        (InvalidURI("nonsense", "isn't a valid URI"), ConnectionErrorKind.UNREACHABLE),
        (InvalidHandshake("bad upgrade"), ConnectionErrorKind.REJECTED),
    ])
    async def test_error_mapping(self, exc, kind):
        self.connector.failures[SERVER_A] = exc

        with pytest.raises(WsConnectionError) as info:
            await self.manager.connect(SERVER_A)

        assert info.value.kind is kind
        assert not self.manager.connected

    @pytest.mark.asyncio
    async def test_failed_status_carries_error(self):
        self.connector.failures[SERVER_A] = ConnectionRefusedError(111, "Connection refused")

        with pytest.raises(WsConnectionError):
            await self.manager.connect(SERVER_A)

        events = [self.manager.status_events.get_nowait() for _ in range(3)]
        assert events[1].status is ConnectionStatus.FAILED
        assert events[1].error.kind is ConnectionErrorKind.UNREACHABLE
        assert "Connection refused" in events[1].error.message

    @pytest.mark.asyncio
    async def test_second_connect_while_live(self):
        await self.manager.connect(SERVER_A)
        with pytest.raises(RuntimeError):
            await self.manager.connect(SERVER_B)
        await self.manager.shutdown()

    @pytest.mark.asyncio
    async def test_send_without_connection(self):
        with pytest.raises(WsConnectionError) as info:
            await self.manager.send(chat_frame("alice", "00FF00", "general", "hi"))
        assert info.value.kind is ConnectionErrorKind.CLOSED_BY_PEER


class TestReader:
    """Tests for the reader task."""

    def setup_method(self):
        self.connector = FakeConnector()
        self.manager = ConnectionManager(self.connector, handshake_timeout=0.2, close_timeout=0.5)

    @pytest.mark.asyncio
    async def test_frames_arrive_in_order(self):
        await self.manager.connect(SERVER_A)
        transport = self.connector.transports[SERVER_A]
        for i in range(3):
            transport.feed({"type": "chat", "nickname": "bob", "text": f"m{i}"})

        await wait_for_inbound(self.manager, 3)
        events = [self.manager.inbound.get_nowait() for _ in range(3)]

        assert all(isinstance(event, FrameEvent) for event in events)
        assert [event.frame.text for event in events] == ["m0", "m1", "m2"]
        await self.manager.shutdown()

    @pytest.mark.asyncio
    async def test_malformed_frame_does_not_stop_reader(self):
        await self.manager.connect(SERVER_A)
        transport = self.connector.transports[SERVER_A]
        transport.feed("{broken")
        transport.feed({"type": "client_count", "count": 2})

        await wait_for_inbound(self.manager, 2)
        first, second = self.manager.inbound.get_nowait(), self.manager.inbound.get_nowait()

        assert isinstance(first, ProtocolErrorEvent)
        assert isinstance(second, FrameEvent)
        assert second.frame.type is FrameType.CLIENT_COUNT
        await self.manager.shutdown()

    @pytest.mark.asyncio
    async def test_peer_close(self):
        """Test that a server-side close is reported and then acknowledged."""
        handle = await self.manager.connect(SERVER_A)
        _statuses(self.manager)
        self.connector.transports[SERVER_A].peer_close()

        await wait_for_inbound(self.manager, 1)
        event = self.manager.inbound.get_nowait()
        assert isinstance(event, PeerClosedEvent)
        assert event.error.kind is ConnectionErrorKind.CLOSED_BY_PEER
        # The handle only changes once the event loop acknowledges
        assert handle.status is ConnectionStatus.CONNECTED

        await self.manager.acknowledge_peer_close(event)
        assert handle.status is ConnectionStatus.DISCONNECTED
        assert _statuses(self.manager) == [ConnectionStatus.FAILED, ConnectionStatus.DISCONNECTED]

        # A second acknowledgement is stale
        await self.manager.acknowledge_peer_close(event)
        assert _statuses(self.manager) == []


class TestCloseAndSwitch:
    """Tests for close, switch and shutdown."""

    def setup_method(self):
        self.connector = FakeConnector()
        self.manager = ConnectionManager(self.connector, handshake_timeout=0.2, close_timeout=0.5)

    @pytest.mark.asyncio
    async def test_close_sends_farewell_and_stops_reader(self):
        handle = await self.manager.connect(SERVER_A)
        reader = self.manager._reader

        await self.manager.close(farewell=leave_frame("alice", "general"))

        assert handle.status is ConnectionStatus.DISCONNECTED
        assert reader.done()
        assert self.connector.log[-2:] == [("send", SERVER_A, "leave"), ("close", SERVER_A)]
        assert _statuses(self.manager)[-2:] == [ConnectionStatus.CLOSING, ConnectionStatus.DISCONNECTED]

    @pytest.mark.asyncio
    async def test_frames_in_flight_during_close_are_dropped(self):
        await self.manager.connect(SERVER_A)
        transport = self.connector.transports[SERVER_A]

        transport.feed({"type": "chat", "nickname": "bob", "text": "late"})
        await self.manager.close()

        assert self.manager.inbound.empty()

    @pytest.mark.asyncio
    async def test_switch_closes_before_connecting(self):
        """Test that the old connection is fully closed before the new handshake."""
        await self.manager.connect(SERVER_A, greeting=join_frame("alice", "00FF00", "general"))
        old_reader = self.manager._reader
        old_handle = self.manager.handle

        new_handle = await self.manager.switch(
            SERVER_B,
            greeting=join_frame("alice", "00FF00", "general"),
            farewell=leave_frame("alice", "general"),
        )

        assert self.connector.lifecycle() == [
            ("connect", SERVER_A), ("close", SERVER_A), ("connect", SERVER_B),
        ]
        assert self.connector.log.index(("send", SERVER_A, "leave")) < self.connector.log.index(("close", SERVER_A))
        assert old_reader.done()
        assert old_handle.status is ConnectionStatus.DISCONNECTED
        assert new_handle.status is ConnectionStatus.CONNECTED
        assert self.manager.handle is new_handle
        await self.manager.shutdown()

    @pytest.mark.asyncio
    async def test_switch_failure_leaves_disconnected(self):
        await self.manager.connect(SERVER_A)
        self.connector.failures[SERVER_B] = ConnectionRefusedError(111, "Connection refused")

        with pytest.raises(WsConnectionError):
            await self.manager.switch(SERVER_B)

        assert self.connector.lifecycle()[-2:] == [("close", SERVER_A), ("connect", SERVER_B)]
        assert not self.manager.connected
        assert self.manager.handle.server_url == SERVER_B

    @pytest.mark.asyncio
    async def test_shutdown(self):
        await self.manager.connect(SERVER_A)
        await self.manager.shutdown(farewell=leave_frame("alice", "general"))

        assert self.manager.shutdown_event.is_set()
        assert self.connector.transports[SERVER_A].closed
        assert self.manager.handle.status is ConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_close_without_connection_is_noop(self):
        await self.manager.close()
        assert self.connector.log == []


class TestBackgroundSwitch:
    """Tests for start_switch and cancelling a switch on shutdown."""

    def setup_method(self):
        self.connector = FakeConnector()
        self.manager = ConnectionManager(self.connector, handshake_timeout=1.0, close_timeout=0.5)

    @pytest.mark.asyncio
    async def test_start_switch_returns_immediately(self):
        self.connector.delays[SERVER_A] = 0.1
        task = self.manager.start_switch(SERVER_A, greeting=join_frame("alice", "00FF00", "general"))

        assert self.manager.switching
        assert self.connector.log == []

        handle = await task
        assert not self.manager.switching
        assert handle.status is ConnectionStatus.CONNECTED
        assert self.manager.handle is handle
        await self.manager.shutdown()

    @pytest.mark.asyncio
    async def test_only_one_switch_at_a_time(self):
        self.connector.delays[SERVER_A] = 0.1
        task = self.manager.start_switch(SERVER_A)

        with pytest.raises(RuntimeError):
            self.manager.start_switch(SERVER_B)

        await task
        assert self.connector.lifecycle() == [("connect", SERVER_A)]
        await self.manager.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending_handshake(self):
        self.connector.delays[SERVER_A] = 5.0
        task = self.manager.start_switch(SERVER_A)
        await wait_until(lambda: self.manager.handle is not None)
        assert self.manager.handle.status is ConnectionStatus.CONNECTING

        await asyncio.wait_for(self.manager.shutdown(), 0.5)

        assert task.cancelled()
        assert not self.manager.switching
        assert self.manager.handle.status is ConnectionStatus.DISCONNECTED
        assert _statuses(self.manager) == [
            ConnectionStatus.CONNECTING, ConnectionStatus.FAILED, ConnectionStatus.DISCONNECTED,
        ]

    @pytest.mark.asyncio
    async def test_shutdown_during_switch_away(self):
        """Test that shutdown mid-switch still closes the old connection."""
        await self.manager.connect(SERVER_A)
        old_reader = self.manager._reader
        self.connector.delays[SERVER_B] = 5.0
        self.manager.start_switch(SERVER_B, farewell=leave_frame("alice", "general"))
        await wait_until(lambda: self.manager.handle.server_url == SERVER_B)

        await asyncio.wait_for(self.manager.shutdown(), 0.5)

        assert self.connector.transports[SERVER_A].closed
        assert old_reader.done()
        assert self.manager.handle.status is ConnectionStatus.DISCONNECTED
        assert self.manager._transport is None
        assert self.manager._reader is None
