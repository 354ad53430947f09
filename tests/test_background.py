import asyncio
import logging

from tokenassets.service import BackgroundWriter


def test_spawn_does_not_block_caller():
    writer = BackgroundWriter()
    done = []

    async def run():
        release = asyncio.Event()

        async def job():
            await release.wait()
            done.append(True)

        writer.spawn(job, name="slow")
        assert len(writer) == 1
        assert done == []
        release.set()
        await writer.drain()

    asyncio.run(run())
    assert done == [True]
    assert len(writer) == 0


def test_failures_are_logged_not_raised(caplog):
    writer = BackgroundWriter()

    async def job():
        raise OSError("disk full")

    async def run():
        task = writer.spawn(job, name="broken")
        await writer.drain()
        return task

    with caplog.at_level(logging.WARNING):
        task = asyncio.run(run())
    assert task.exception() is None
    assert "broken" in caplog.text
