"""Test pairing agents."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from banglecomm.pairing import (
    AutoAcceptPairingAgent,
    PairingAgent,
    StdioPairingAgent,
    parse_passkey,
)

DEVICE = SimpleNamespace(name="Bangle.js 5678", address="00:00:00:00:00:03")


def _answer(monkeypatch: pytest.MonkeyPatch, reply: str) -> list[str]:
    prompts: list[str] = []

    def fake_input(prompt: str = "") -> str:
        prompts.append(prompt)
        return reply

    monkeypatch.setattr("builtins.input", fake_input)
    return prompts


def test_agents_satisfy_protocol() -> None:
    assert isinstance(AutoAcceptPairingAgent(), PairingAgent)
    assert isinstance(StdioPairingAgent(), PairingAgent)


@pytest.mark.parametrize(
    ("answer", "expected"),
    [("123456", 123456), (" 000042\n", 42), ("12345", None), ("abcdef", None), ("", None)],
)
def test_parse_passkey(answer, expected) -> None:
    assert parse_passkey(answer) == expected


@pytest.mark.asyncio
async def test_auto_accept() -> None:
    agent = AutoAcceptPairingAgent()
    assert await agent.confirm(DEVICE)
    assert await agent.confirm_passkey(DEVICE, 123456)
    assert await agent.request_passkey(DEVICE) is None


@pytest.mark.asyncio
@pytest.mark.parametrize(("reply", "expected"), [("", True), ("y", True), ("Y", True), ("n", False)])
async def test_stdio_confirm(monkeypatch, reply, expected) -> None:
    prompts = _answer(monkeypatch, reply)

    assert await StdioPairingAgent().confirm(DEVICE) is expected
    assert "Bangle.js 5678" in prompts[0]


@pytest.mark.asyncio
async def test_stdio_confirm_passkey_shows_passkey(monkeypatch) -> None:
    prompts = _answer(monkeypatch, "y")

    assert await StdioPairingAgent().confirm_passkey(DEVICE, 42)
    assert '"000042"' in prompts[0]


@pytest.mark.asyncio
async def test_stdio_request_passkey(monkeypatch) -> None:
    _answer(monkeypatch, "654321")
    assert await StdioPairingAgent().request_passkey(DEVICE) == 654321


@pytest.mark.asyncio
async def test_stdio_eof_rejects(monkeypatch) -> None:
    def closed(prompt: str = "") -> str:
        raise EOFError

    monkeypatch.setattr("builtins.input", closed)
    assert await StdioPairingAgent().confirm(DEVICE) is False


@pytest.mark.asyncio
async def test_stdio_display_passkey(capsys) -> None:
    await StdioPairingAgent().display_passkey(DEVICE, 7)
    assert '"000007"' in capsys.readouterr().out
