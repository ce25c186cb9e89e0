"""AWX job status poller.

Waits for a launched job to reach a terminal state. The decision logic lives
in the pure :func:`advance` transition function, which maps the time waited
so far and the latest status response to the next state and the delay before
the next query. :class:`StatusPoller` drives it with an injected sleep and
clock, so the whole state machine can be exercised without real time passing.

State machine::

    submitted -> pending/running -> succeeded | failed
              \\-> timed_out (from any non-terminal state)
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from awxclient.awx import AwxClient, AwxClientError
from awxclient.logging import get_logger
from awxclient.models import (
    HostSummary,
    JobFailed,
    JobOutcome,
    JobSucceeded,
    JobTimedOut,
    JobTransportError,
)
from awxclient.types import (
    FAILING_JOB_STATUSES,
    PENDING_JOB_STATUSES,
    RUNNING_JOB_STATUS,
    PollState,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class PollTiming:
    """Polling cadence.

    Attributes:
        warmup: Seconds to wait before the first query; jobs take a while to start.
        interval: Seconds between subsequent queries.
        ceiling: Maximum cumulative seconds to wait, warm-up included.
    """

    warmup: float = 30.0
    interval: float = 10.0
    ceiling: float = 1800.0


DEFAULT_POLL_TIMING = PollTiming()


@dataclass(frozen=True)
class PollDecision:
    """Result of one state machine transition.

    Attributes:
        state: The state the job is in after the transition.
        delay: Seconds to wait before the next query; 0 for terminal states.
        summary: The summary that decided a terminal success or failure.
    """

    state: PollState
    delay: float = 0.0
    summary: HostSummary | None = None


def classify(summaries: Sequence[HostSummary]) -> tuple[PollState, HostSummary | None]:
    """Classify one batch of per-host job summaries.

    A failure anywhere in the batch wins over every other summary. Otherwise
    the first summary whose job left the pending and running statuses marks
    success. An empty batch means AWX has not reported on any host yet.

    Returns:
        The observed state and the summary that decided it, if any.
    """
    for summary in summaries:
        if summary.failed or summary.job_status in FAILING_JOB_STATUSES:
            return PollState.FAILED, summary

    running = False
    for summary in summaries:
        if summary.job_status == RUNNING_JOB_STATUS:
            running = True
        elif summary.job_status not in PENDING_JOB_STATUSES:
            return PollState.SUCCEEDED, summary

    return (PollState.RUNNING if running else PollState.PENDING), None


def advance(
    elapsed: float,
    response: Sequence[HostSummary] | None,
    timing: PollTiming = DEFAULT_POLL_TIMING,
) -> PollDecision:
    """Compute the next poll state.

    Args:
        elapsed: Cumulative seconds waited so far.
        response: The latest batch of summaries, or None before the first query.
        timing: Polling cadence.

    Returns:
        The next state and the delay before the next query. The job times out
        when the next wait would take the cumulative wait past the ceiling.
    """
    if response is None:
        state, delay = PollState.SUBMITTED, timing.warmup
    else:
        state, summary = classify(response)
        if state.is_terminal:
            return PollDecision(state=state, summary=summary)
        delay = timing.interval

    if elapsed + delay > timing.ceiling:
        return PollDecision(state=PollState.TIMED_OUT)
    return PollDecision(state=state, delay=delay)


class StatusPoller:
    """Polls an AWX job until it finishes, fails or times out."""

    def __init__(
        self,
        client: AwxClient,
        timing: PollTiming = DEFAULT_POLL_TIMING,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        """Initialize the poller.

        Args:
            client: AWX client used to query job summaries.
            timing: Polling cadence.
            sleep: Blocking sleep function.
            now: Clock used to timestamp failures.
        """
        self.client = client
        self.timing = timing
        self._sleep = sleep
        self._now = now

    def await_job(self, job_id: int) -> JobOutcome:
        """Block until the job reaches a terminal state.

        Args:
            job_id: AWX job id to poll.

        Returns:
            JobSucceeded, JobFailed, JobTimedOut, or JobTransportError if a
            status query fails (queries are not retried).
        """
        elapsed = 0.0
        decision = advance(elapsed, None, self.timing)
        logger.info("Waiting %.0fs for job %s to start...", decision.delay, job_id)

        while not decision.state.is_terminal:
            self._sleep(decision.delay)
            elapsed += decision.delay

            try:
                raw = self.client.get_host_summaries(job_id)
            except AwxClientError as e:
                logger.error("Status query for job %s failed: %s", job_id, e)
                return JobTransportError(cause=e)

            summaries = [HostSummary.from_api_response(item) for item in raw]
            decision = advance(elapsed, summaries, self.timing)
            logger.debug(
                "Job %s is %s after %.0fs", job_id, decision.state, elapsed,
                extra={"job_id": job_id},
            )

        return self._outcome(job_id, decision, elapsed)

    def _outcome(self, job_id: int, decision: PollDecision, elapsed: float) -> JobOutcome:
        if decision.state is PollState.SUCCEEDED:
            return JobSucceeded(summary=decision.summary)

        if decision.state is PollState.FAILED:
            summary = decision.summary
            template_name = summary.template_name if summary else ""
            failed_job = summary.job_id if summary and summary.job_id else job_id
            failed_at = self._now()
            reason = (
                f"{template_name or f'job {failed_job}'} failed at "
                f"{failed_at.strftime('%H:%M:%S %Z')}. "
                f"Check job id {failed_job} for more info"
            )
            logger.error(reason, extra={"job_id": failed_job})
            return JobFailed(
                reason=reason,
                job_id=failed_job,
                template_name=template_name,
                failed_at=failed_at,
            )

        logger.error(
            "Job %s didn't complete after %.0fs", job_id, elapsed, extra={"job_id": job_id}
        )
        return JobTimedOut(job_id=job_id, elapsed_seconds=elapsed)


__all__ = [
    "DEFAULT_POLL_TIMING",
    "PollDecision",
    "PollTiming",
    "StatusPoller",
    "advance",
    "classify",
]
