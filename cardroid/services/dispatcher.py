"""
Outbound message dispatcher

Broadcasts go out strictly one recipient at a time with a policy delay
between sends, so the WhatsApp account is not flagged for automation.
Batches are queued and processed by a single worker task; the sleep
function is injectable so tests never wait on the wall clock.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from cardroid.adapters.whatsapp_session import MediaContent, WhatsAppSession
from cardroid.utils.monitoring import capture_exception

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]
AfterSend = Callable[[str], Awaitable[None]]

MISSING_PHONE_ERROR = "sin número"


@dataclass(frozen=True)
class FixedDelay:
    """Same wait before every send after the first."""

    seconds: float

    def delay_for(self, recipient_count: int) -> float:
        return self.seconds


@dataclass(frozen=True)
class SpreadOverWindow:
    """Spread the batch evenly over a fixed campaign window."""

    window_seconds: float

    def delay_for(self, recipient_count: int) -> float:
        if recipient_count <= 0:
            return 0.0
        return self.window_seconds / recipient_count


@dataclass
class SendResult:
    phone: Optional[str]
    success: bool
    error: Optional[str] = None


class BroadcastDispatcher:
    """Sends one message to many recipients, sequentially and throttled."""

    def __init__(self, session: WhatsAppSession, sleep: SleepFunc = asyncio.sleep):
        self.session = session
        self.sleep = sleep

    async def send_one(self, phone: str, message: str, image_url: Optional[str] = None) -> None:
        """Resolve the chat id and send text, or image + caption."""
        chat_id = await self.session.resolve_chat_id(phone)
        if image_url:
            await self.session.send_media(chat_id, MediaContent.from_url(image_url), caption=message)
        else:
            await self.session.send_message(chat_id, message)

    async def dispatch(
        self,
        recipients: Sequence[Optional[str]],
        message: str,
        policy=FixedDelay(0),
        image_url: Optional[str] = None,
        after_send: Optional[AfterSend] = None,
        results: Optional[List[SendResult]] = None,
    ) -> List[SendResult]:
        """
        Send ``message`` to every recipient in order

        Args:
            recipients: Phone numbers; empty entries are reported as failed
            message: Text (or caption when ``image_url`` is given)
            policy: Delay policy applied before every send after the first
            image_url: Optional public image URL
            after_send: Awaited with the phone after each successful send
            results: Optional list to append results to as they happen

        Returns:
            One SendResult per recipient, in input order
        """
        results = results if results is not None else []
        delay = policy.delay_for(len(recipients))
        attempted = False

        for raw_phone in recipients:
            phone = raw_phone.strip() if isinstance(raw_phone, str) else None
            if not phone:
                logger.warning("Skipping broadcast recipient without phone number")
                results.append(SendResult(phone=raw_phone, success=False, error=MISSING_PHONE_ERROR))
                continue

            if attempted and delay > 0:
                await self.sleep(delay)
            attempted = True

            try:
                await self.send_one(phone, message, image_url=image_url)
            except Exception as e:
                logger.error(f"Broadcast send to {phone} failed: {e}")
                results.append(SendResult(phone=phone, success=False, error=str(e)))
                continue

            results.append(SendResult(phone=phone, success=True))
            if after_send is not None:
                try:
                    await after_send(phone)
                except Exception as e:
                    logger.error(f"Post-send bookkeeping for {phone} failed: {e}")

        sent = sum(1 for r in results if r.success)
        logger.info(f"Broadcast finished: {sent}/{len(results)} sent")
        return results


@dataclass
class BroadcastJob:
    recipients: List[Optional[str]]
    message: str
    policy: object
    image_url: Optional[str] = None
    description: str = ""
    after_send: Optional[AfterSend] = None
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    status: str = "queued"
    results: List[SendResult] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None


class BroadcastQueue:
    """
    FIFO of broadcast jobs processed by one worker task

    Only one batch is ever sending at a time. Jobs cannot be cancelled
    once started; they run to completion or until shutdown. At most
    ``max_jobs`` jobs are kept for the status page; the oldest finished
    ones are dropped first.
    """

    def __init__(self, dispatcher: BroadcastDispatcher, max_jobs: int = 100):
        self.dispatcher = dispatcher
        self.max_jobs = max_jobs
        self._queue: "asyncio.Queue[BroadcastJob]" = asyncio.Queue()
        self._jobs: Dict[str, BroadcastJob] = {}
        self._worker: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run(), name="broadcast-worker")

    async def stop(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    def submit(
        self,
        recipients: Sequence[Optional[str]],
        message: str,
        policy,
        image_url: Optional[str] = None,
        description: str = "",
        after_send: Optional[AfterSend] = None,
    ) -> BroadcastJob:
        job = BroadcastJob(
            recipients=list(recipients),
            message=message,
            policy=policy,
            image_url=image_url,
            description=description,
            after_send=after_send,
        )
        self._jobs[job.job_id] = job
        self._evict_finished()
        self._queue.put_nowait(job)
        logger.info(f"Broadcast job {job.job_id} queued ({len(job.recipients)} recipients)")
        return job

    def _evict_finished(self) -> None:
        finished = [job_id for job_id, job in self._jobs.items() if job.finished_at is not None]
        excess = len(self._jobs) - self.max_jobs
        for job_id in finished[:max(excess, 0)]:
            del self._jobs[job_id]

    def get(self, job_id: str) -> Optional[BroadcastJob]:
        return self._jobs.get(job_id)

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        await self._queue.join()

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            job.status = "running"
            try:
                await self.dispatcher.dispatch(
                    job.recipients,
                    job.message,
                    policy=job.policy,
                    image_url=job.image_url,
                    after_send=job.after_send,
                    results=job.results,
                )
                job.status = "done"
            except Exception as e:
                logger.exception(f"Broadcast job {job.job_id} crashed")
                capture_exception(e, job_id=job.job_id)
                job.status = "failed"
            finally:
                job.finished_at = datetime.utcnow()
                self._queue.task_done()
