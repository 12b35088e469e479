"""Tests for event publishing."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from copy_forge.core.events import EventPublisher


class TestEventPublisher:
    def test_init(self):
        pub = EventPublisher("nats://localhost:4222")
        assert pub.nats_url == "nats://localhost:4222"
        assert not pub.connected

    @pytest.mark.asyncio
    async def test_publish_when_not_connected(self):
        pub = EventPublisher()
        assert await pub.publish("test.event", "test.subject", {"key": "value"}) is False

    @pytest.mark.asyncio
    async def test_publish_when_connected(self):
        pub = EventPublisher()
        pub._connected = True
        pub._nc = MagicMock()
        pub._nc.publish = AsyncMock()

        result = await pub.publish("test.event", "test.subject", {"key": "value"})
        assert result is True

        subject, raw = pub._nc.publish.call_args[0]
        payload = json.loads(raw.decode())
        assert subject == "test.subject"
        assert payload["type"] == "test.event"
        assert payload["source"] == "copyforge"
        assert "id" in payload
        assert "timestamp" in payload
        assert payload["data"] == {"key": "value"}

    @pytest.mark.asyncio
    async def test_generation_event_subject_and_correlation(self):
        pub = EventPublisher()
        pub._connected = True
        pub._nc = MagicMock()
        pub._nc.publish = AsyncMock()

        await pub.publish_generation_event("proj-1", "completed", {"variations": 3})

        subject, raw = pub._nc.publish.call_args[0]
        payload = json.loads(raw.decode())
        assert subject == "adcopy.generation.completed"
        assert payload["correlation_id"] == "proj-1"
        assert payload["data"] == {"project_id": "proj-1", "variations": 3}

    @pytest.mark.asyncio
    async def test_publish_error_returns_false(self):
        pub = EventPublisher()
        pub._connected = True
        pub._nc = MagicMock()
        pub._nc.publish = AsyncMock(side_effect=Exception("connection lost"))
        assert await pub.publish("test.event", "test.subject", {}) is False

    @pytest.mark.asyncio
    async def test_connect_failure_degrades(self):
        with patch("copy_forge.core.events.nats.connect", AsyncMock(side_effect=OSError("refused"))):
            pub = EventPublisher("nats://nowhere:4222")
            assert await pub.connect() is False
        assert not pub.connected

    @pytest.mark.asyncio
    async def test_disconnect(self):
        pub = EventPublisher()
        pub._connected = True
        pub._nc = MagicMock()
        pub._nc.close = AsyncMock()
        await pub.disconnect()
        assert not pub.connected
        pub._nc.close.assert_called_once()
