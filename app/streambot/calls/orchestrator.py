"""Call stream orchestrator -- keeps the bot bridged into a call.

There is no reliable "call dropped" event, so the orchestrator does not
try to detect drops. Once a stream is requested it runs a reconciliation
pass (:meth:`CallStreamOrchestrator.ensure_streaming`) immediately and
then every ``keepalive_interval`` seconds until stopped. A pass is a no-op
when the call is up and capture is running (it only asks the capture
pipeline to flush), a remote-stream lookup when local audio is attached
but nothing is being captured yet, and a full rejoin when the call was
lost. Delivery is at-least-once: running a pass redundantly is always
safe.

States::

    IDLE --start--> JOINING --attached--> STREAMING
                       ^                      |
                       +------ keepalive -----+   (call lost)
    any --stop--> IDLE
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum

from ..platform.errors import CallJoinFailure, MediaDeviceFailure
from .capture import CapturePipeline
from .media import CallControl, CallSession, MediaDevices, RtcCall

logger = logging.getLogger(__name__)


class StreamState(StrEnum):
    IDLE = "idle"
    JOINING = "joining"
    STREAMING = "streaming"


@dataclass(frozen=True)
class StreamTarget:
    conversation_id: str
    rtc_session_id: str


@dataclass(frozen=True)
class StreamResult:
    """Outcome of one reconciliation pass. Truthy when the pass succeeded."""

    success: bool
    message: str = ""
    session: CallSession | None = None

    @classmethod
    def ok(cls, message: str, session: CallSession | None = None) -> StreamResult:
        return cls(True, message, session)

    @classmethod
    def fail(cls, message: str) -> StreamResult:
        return cls(False, message)

    def __bool__(self) -> bool:
        return self.success


class CallStreamOrchestrator:
    def __init__(
        self,
        calls: CallControl,
        devices: MediaDevices,
        capture: CapturePipeline,
        *,
        settle_delay: float = 2.0,
        remote_stream_delay: float = 5.0,
        keepalive_interval: float = 10.0,
    ) -> None:
        self._calls = calls
        self._devices = devices
        self._capture = capture
        self._settle_delay = settle_delay
        self._remote_stream_delay = remote_stream_delay
        self._keepalive_interval = keepalive_interval

        self.state = StreamState.IDLE
        self.session: CallSession | None = None
        self._target: StreamTarget | None = None
        self._keepalive: asyncio.Task[None] | None = None
        self._negotiated: dict[str, asyncio.Event] = {}
        self._reconciling = False

    @property
    def target(self) -> StreamTarget | None:
        return self._target

    @property
    def keepalive_armed(self) -> bool:
        return self._keepalive is not None and not self._keepalive.done()

    # -- triggers -----------------------------------------------------------

    async def start(self, conversation_id: str, rtc_session_id: str) -> StreamResult:
        """Request a stream on the call and keep it up until :meth:`stop`."""
        self._target = StreamTarget(conversation_id, rtc_session_id)
        self._arm_keepalive()
        return await self.ensure_streaming()

    async def stop(self, rtc_session_id: str | None = None) -> None:
        self._cancel_keepalive()
        target, self._target = self._target, None
        rtc = rtc_session_id or (target.rtc_session_id if target else "")
        if rtc:
            try:
                call = await self._calls.find_call(rtc)
                if call is not None:
                    await self._calls.leave_conference(call.call_id)
                    logger.info("[stream] left call %s", call.call_id)
            except Exception as exc:
                logger.error("[stream] leaving call for %s failed: %s", rtc, exc, exc_info=True)
        await self._capture.stop()
        self.session = None
        self._negotiated.clear()
        self.state = StreamState.IDLE

    def notify_negotiated(self, call_id: str) -> None:
        """Media negotiation for *call_id* finished; skip the rest of the settle delay."""
        self._negotiated.setdefault(call_id, asyncio.Event()).set()

    # -- reconciliation -----------------------------------------------------

    async def ensure_streaming(self) -> StreamResult:
        target = self._target
        if target is None:
            return StreamResult.fail("no stream requested")
        if self._reconciling:
            logger.debug("[stream] reconciliation already in progress, skipping")
            return StreamResult.ok("reconciliation in progress")

        self._reconciling = True
        try:
            call = await self._join(target)
            if call.local_audio and self._capture.recording:
                self._capture.request_data()
                self.state = StreamState.STREAMING
                return StreamResult.ok("already streaming", self.session)
            if not call.local_audio:
                await self._await_negotiation(call.call_id)
                await self._attach_local_audio(call)
            return await self._capture_remote(call, target)
        except CallJoinFailure as exc:
            logger.error("[stream] %s", exc)
            return StreamResult.fail(str(exc))
        except MediaDeviceFailure as exc:
            logger.error("[stream] %s, capture not started this cycle", exc)
            return StreamResult.fail(str(exc))
        except Exception as exc:
            logger.error("[stream] reconciliation failed: %s", exc, exc_info=True)
            return StreamResult.fail(str(exc))
        finally:
            self._reconciling = False

    async def _join(self, target: StreamTarget) -> RtcCall:
        try:
            call = await self._calls.find_call(target.rtc_session_id)
            if call is None:
                logger.info("[stream] no call in %s, starting one", target.conversation_id)
                call = await self._calls.start_conference(target.conversation_id, audio=False, video=False)
                self.state = StreamState.JOINING
            elif call.is_remote:
                logger.info("[stream] joining remote call %s", call.call_id)
                await self._calls.join_conference(call.call_id, audio=False, video=False)
                self.state = StreamState.JOINING
            elif not call.local_audio:
                self.state = StreamState.JOINING
        except CallJoinFailure:
            raise
        except Exception as exc:
            raise CallJoinFailure(f"joining call {target.rtc_session_id} failed: {exc}") from exc
        self.session = CallSession.from_call(call, target.conversation_id, target.rtc_session_id)
        return call

    async def _await_negotiation(self, call_id: str) -> None:
        event = self._negotiated.setdefault(call_id, asyncio.Event())
        try:
            await asyncio.wait_for(event.wait(), timeout=self._settle_delay)
        except TimeoutError:
            logger.debug("[stream] no negotiation signal for %s, settle delay elapsed", call_id)
        finally:
            self._negotiated.pop(call_id, None)

    async def _attach_local_audio(self, call: RtcCall) -> None:
        try:
            local = await self._devices.get_user_media(audio=True, video=False)
        except Exception as exc:
            raise MediaDeviceFailure(f"opening the local audio device failed: {exc}") from exc

        try:
            await self._calls.set_audio_video_stream(call.call_id, local)
        except Exception as exc:
            raise CallJoinFailure(f"attaching local audio to {call.call_id} failed: {exc}") from exc
        if self.session is not None:
            self.session.local_audio_attached = True
        logger.info("[stream] local audio attached to call %s", call.call_id)

    async def _capture_remote(self, call: RtcCall, target: StreamTarget) -> StreamResult:
        # Retry entry point while local audio is attached but capture is not running.
        await asyncio.sleep(self._remote_stream_delay)
        remote = next((s for s in await self._calls.get_remote_streams(call.call_id) if s.has_audio), None)
        if remote is None:
            logger.warning("[stream] call %s has no remote audio stream yet", call.call_id)
            return StreamResult.fail("no remote audio stream")

        self._capture.start(remote, target.rtc_session_id or call.call_id)
        self.state = StreamState.STREAMING
        return StreamResult.ok("streaming", self.session)

    # -- keepalive ----------------------------------------------------------

    def _arm_keepalive(self) -> None:
        if self.keepalive_armed:
            return
        self._keepalive = asyncio.create_task(self._keepalive_loop())
        logger.info("[stream] keepalive armed (every %.0fs)", self._keepalive_interval)

    def _cancel_keepalive(self) -> None:
        if self._keepalive is not None:
            self._keepalive.cancel()
            logger.info("[stream] keepalive cancelled")
        self._keepalive = None

    async def _keepalive_loop(self) -> None:
        while True:
            await asyncio.sleep(self._keepalive_interval)
            await self.ensure_streaming()
