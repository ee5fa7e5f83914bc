"""Test BangleDevice command execution against an emulated watch."""

from __future__ import annotations

import asyncio

import pytest

from banglecomm import BangleDevice, LinkSettings
from banglecomm.exceptions import (
    BLEConnectionError,
    BLETimeoutError,
    EmptyFileError,
    FilenameTooLongError,
    MalformedByteStreamError,
    ProtocolViolationError,
    TransportError,
)
from banglecomm.models import CalendarEvent, ListFiles
from banglecomm.protocol import END_TOKEN

NOW = 1_700_000_000.0


@pytest.mark.asyncio
@pytest.mark.parametrize("size", [1, 1023, 1024, 1025, 2048])
async def test_upload_then_download_round_trip(watch, link, size) -> None:
    """Uploaded bytes come back unchanged."""
    data = bytes((i * 7 + 3) % 256 for i in range(size))

    await watch.upload("blob.bin", data)
    assert await watch.download("blob.bin") == data
    assert link.storage["blob.bin"] == data


@pytest.mark.asyncio
async def test_list_and_remove(watch, link) -> None:
    link.storage = {"boot.js": bytearray(b"1"), "app.info": bytearray(b"2")}

    assert await watch.list_files() == ["boot.js", "app.info"]
    await watch.remove("boot.js")
    assert await watch.list_files() == ["app.info"]


@pytest.mark.asyncio
async def test_filename_too_long_sends_nothing(watch, link) -> None:
    with pytest.raises(FilenameTooLongError):
        await watch.upload("x" * 29, b"data")
    assert link.messages == []
    assert watch.pending_command is None


@pytest.mark.asyncio
async def test_empty_upload_sends_nothing(watch, link) -> None:
    with pytest.raises(EmptyFileError):
        await watch.upload("empty.txt", b"")
    assert link.messages == []


@pytest.mark.asyncio
async def test_slot_occupied_until_end_marker(watch, link) -> None:
    assert watch.pending_command is None
    link.answer = False

    task = asyncio.create_task(watch.list_files())
    await asyncio.sleep(0.01)
    assert watch.pending_command == ListFiles()
    assert not task.done()

    link.push(f"\x10a.js\r\n{END_TOKEN}\r\n")
    assert await asyncio.wait_for(task, timeout=1.0) == ["a.js"]
    assert watch.pending_command is None


@pytest.mark.asyncio
async def test_concurrent_callers_are_serialized(watch, link) -> None:
    link.storage = {"a.js": bytearray(b"\x01")}

    results = await asyncio.gather(watch.list_files(), watch.download("a.js"))

    assert results == [["a.js"], b"\x01"]
    assert len(link.messages) == 2


@pytest.mark.asyncio
async def test_set_clock_uses_send_time(link) -> None:
    ticks = iter([NOW, NOW + 60])
    device = BangleDevice(clock=lambda: next(ticks))
    device._connection = link  # Inject fake connection
    device.start_receiver()
    try:
        await device.set_clock()
        await device.set_clock()
    finally:
        await device.disconnect()

    assert "setTime(1700000000);" in link.scripts[0]
    assert "setTime(1700000060);" in link.scripts[1]


@pytest.mark.asyncio
async def test_run_output_is_live(watch, link, output) -> None:
    link.override_lines = ["Hello", "=undefined"]

    await watch.run("print('Hello');\n", name="hello.js")

    assert output == ["Hello"]
    assert "\x10print('Hello');" in link.scripts[0]


@pytest.mark.asyncio
async def test_write_sends_code_verbatim(watch, link) -> None:
    await watch.write("Bangle.buzz()")
    assert link.scripts[0].startswith("Bangle.buzz()\n")


@pytest.mark.asyncio
async def test_sync_calendar(watch, link) -> None:
    await watch.sync_calendar([
        CalendarEvent("Lunch", None, 1700000000),
        CalendarEvent("Flight", "CDG", 1700050000),
    ])

    script = link.scripts[0]
    assert script.index('"Lunch"') < script.index('"Flight"')
    assert script.count("writeJSON") == 1


@pytest.mark.asyncio
async def test_malformed_download_does_not_persist(watch, link, tmp_path) -> None:
    link.override_lines = ["\x1012", "\x10zz"]
    target = tmp_path / "out.bin"

    with pytest.raises(MalformedByteStreamError):
        await watch.download_to("bad.bin", target)

    assert not target.exists()
    assert list(tmp_path.iterdir()) == []
    # Engine keeps working after a decode failure
    link.override_lines = None
    assert await watch.list_files() == []


@pytest.mark.asyncio
async def test_download_to_saves_file(watch, link, tmp_path) -> None:
    link.storage = {"note.txt": bytearray(b"hi\n")}
    target = tmp_path / "note.txt"

    assert await watch.download_to("note.txt", target) == 3
    assert target.read_bytes() == b"hi\n"


@pytest.mark.asyncio
async def test_response_timeout(link) -> None:
    device = BangleDevice(settings=LinkSettings(response_timeout=0.05))
    device._connection = link  # Inject fake connection
    device.start_receiver()
    link.answer = False
    try:
        with pytest.raises(BLETimeoutError, match="'ls'"):
            await device.list_files()
        assert device.pending_command is None
    finally:
        await device.disconnect()


@pytest.mark.asyncio
async def test_disconnect_fails_pending_command(watch, link) -> None:
    link.answer = False
    task = asyncio.create_task(watch.list_files())
    await asyncio.sleep(0.01)

    watch._on_disconnected()

    with pytest.raises(BLEConnectionError, match="disconnected"):
        await asyncio.wait_for(task, timeout=1.0)
    assert watch.pending_command is None


@pytest.mark.asyncio
async def test_stray_end_marker_stops_receiver(watch, link) -> None:
    link.push(f"{END_TOKEN}\r\n")
    await asyncio.sleep(0.01)

    with pytest.raises(ProtocolViolationError, match="desynchronized"):
        await watch.list_files()
    assert link.messages == []


@pytest.mark.asyncio
async def test_disconnect_closes_link(link) -> None:
    device = BangleDevice()
    device._connection = link  # Inject fake connection
    device.start_receiver()

    await device.disconnect()

    assert link.disconnected
    assert device._receiver is None


@pytest.mark.asyncio
async def test_late_frame_after_timeout_does_not_desynchronize(link) -> None:
    link.storage = {"a.js": bytearray(b"\x01")}
    device = BangleDevice(settings=LinkSettings(response_timeout=0.05))
    device._connection = link  # Inject fake connection
    device.start_receiver()
    link.answer = False
    try:
        with pytest.raises(BLETimeoutError):
            await device.download("big.bin")

        # The watch finishes the abandoned download after all
        link.push(f"\x1042\r\n{END_TOKEN}\r\n=undefined\r\n>")
        link.answer = True

        assert await device.list_files() == ["a.js"]
        assert await device.download("a.js") == b"\x01"
    finally:
        await device.disconnect()


@pytest.mark.asyncio
async def test_slow_response_completes_while_data_keeps_arriving(link) -> None:
    device = BangleDevice(settings=LinkSettings(response_timeout=0.1))
    device._connection = link  # Inject fake connection
    device.start_receiver()
    link.answer = False
    try:
        task = asyncio.create_task(device.download("slow.bin"))
        for value in range(6):
            await asyncio.sleep(0.04)
            link.push(f"\x10{value}\r\n")
        link.push(f"{END_TOKEN}\r\n")

        assert await asyncio.wait_for(task, timeout=1.0) == bytes(range(6))
    finally:
        await device.disconnect()


@pytest.mark.asyncio
async def test_disconnect_during_write_error_is_retrieved(watch, link, monkeypatch) -> None:
    issued: list[asyncio.Future] = []
    issue = watch._correlator.issue

    def recording_issue(command):
        future = issue(command)
        issued.append(future)
        return future

    async def dropping_write(data, pause_timeout=None):
        watch._on_disconnected()
        raise TransportError("Write failed: link lost")

    monkeypatch.setattr(watch._correlator, "issue", recording_issue)
    monkeypatch.setattr(link, "write_chunked", dropping_write)

    with pytest.raises(TransportError):
        await watch.list_files()

    [future] = issued
    # Still set means asyncio reports "Future exception was never retrieved"
    assert not future._log_traceback
    assert isinstance(future.exception(), BLEConnectionError)
