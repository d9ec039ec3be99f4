"""Live runner — records from the microphone with a rolling transcript until stopped."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from live_scribe.l3_interface_adapters.controllers.session_controller import SessionController

log = logging.getLogger('scribe.live')


async def run_live_session(controller: SessionController, duration: float | None = None) -> str:
    """Record until *duration* elapses, SIGINT arrives or capture fails; return the final transcript.

    Transcription of windows already closed is allowed to finish after the
    recording stops.
    """
    stop_event = asyncio.Event()
    controller.set_capture_stopped_listener(stop_event.set)
    warm_up = asyncio.ensure_future(controller.warm_up())
    try:
        controller.start_session()
    except Exception:
        warm_up.cancel()
        controller.set_capture_stopped_listener(None)
        raise

    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):  # add_signal_handler is unix-only
        loop.add_signal_handler(signal.SIGINT, stop_event.set)
    try:
        if duration is not None:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=duration)
        else:
            await stop_event.wait()
    finally:
        controller.stop_session()
        controller.set_capture_stopped_listener(None)
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)

    log.info('Waiting for in-flight windows to finish transcription')
    await warm_up
    await controller.wait_idle()
    return controller.get_transcript()


def run_live(controller: SessionController, duration: float | None = None) -> str:
    """Blocking entry point for the CLI."""
    return asyncio.run(run_live_session(controller, duration))
