import httpx
import pytest

from ticketattest.client.token_source import HttpTokenChannel, TokenSource
from ticketattest.errors import DiscoveryFailed

OUTLET_ORIGIN = "http://outlet.test/outlet/"


class ScriptedChannel:
    def __init__(self, reply=None, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.frames: list[dict] = []

    async def exchange(self, frame: dict) -> dict:
        self.frames.append(frame)
        if self.error is not None:
            raise self.error
        if callable(self.reply):
            return self.reply(frame)
        return self.reply


@pytest.mark.asyncio
async def test_discover_lists_holder_tickets_from_outlet(outlet_client, holder) -> None:
    source = TokenSource(HttpTokenChannel(OUTLET_ORIGIN, outlet_client), holder=holder.address)

    tokens = await source.discover()

    assert {token.token_id for token in tokens} == {"A1", "A2", "V1", "X1"}


@pytest.mark.asyncio
async def test_discover_sends_list_request_for_holder() -> None:
    channel = ScriptedChannel(reply=lambda frame: {"id": frame["id"], "ok": True, "result": {"tokens": []}})

    assert await TokenSource(channel, holder="wallet-1").discover() == []
    assert channel.frames[0]["op"] == "tokens.list"
    assert channel.frames[0]["payload"] == {"holder": "wallet-1"}


@pytest.mark.asyncio
async def test_discover_rejects_reply_with_other_correlation_id() -> None:
    channel = ScriptedChannel(reply={"id": "someone-else", "ok": True, "result": {"tokens": []}})

    with pytest.raises(DiscoveryFailed, match="unexpected frame id"):
        await TokenSource(channel, holder="wallet-1").discover()


@pytest.mark.asyncio
async def test_discover_surfaces_error_reply() -> None:
    channel = ScriptedChannel(reply=lambda frame: {"id": frame["id"], "ok": False, "error": "locked"})

    with pytest.raises(DiscoveryFailed, match="locked"):
        await TokenSource(channel, holder="wallet-1").discover()


@pytest.mark.asyncio
async def test_discover_wraps_transport_errors() -> None:
    channel = ScriptedChannel(error=httpx.ConnectError("connection refused"))

    with pytest.raises(DiscoveryFailed, match="unreachable"):
        await TokenSource(channel, holder="wallet-1").discover()


@pytest.mark.asyncio
async def test_discover_rejects_malformed_token_entries() -> None:
    channel = ScriptedChannel(
        reply=lambda frame: {"id": frame["id"], "ok": True, "result": {"tokens": [{"token_id": "A1"}]}}
    )

    with pytest.raises(DiscoveryFailed, match="missing"):
        await TokenSource(channel, holder="wallet-1").discover()


@pytest.mark.asyncio
async def test_discover_wraps_any_channel_failure() -> None:
    channel = ScriptedChannel(error=ConnectionResetError("message port closed"))

    with pytest.raises(DiscoveryFailed, match="message port closed"):
        await TokenSource(channel, holder="wallet-1").discover()
