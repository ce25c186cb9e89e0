"""Job launcher: submits AWX job templates at most once per host."""

from __future__ import annotations

from awxclient.awx import AwxClient, AwxClientError
from awxclient.logging import get_logger
from awxclient.markers import MarkerStore
from awxclient.models import JobOutcome, JobSpec, JobSucceeded, JobTransportError
from awxclient.poller import StatusPoller

logger = get_logger(__name__)


class JobLauncher:
    """Launches a job template and waits for its result.

    A completion marker is checked before every launch and written only after
    the poller confirms success, so a job that already succeeded for a host is
    never launched again, e.g. when the build program re-runs after a reboot.
    """

    def __init__(self, client: AwxClient, poller: StatusPoller, markers: MarkerStore) -> None:
        """Initialize the launcher.

        Args:
            client: AWX client used to launch job templates.
            poller: Poller used to await launched jobs.
            markers: Store of completion markers.
        """
        self.client = client
        self.poller = poller
        self.markers = markers

    def launch(self, spec: JobSpec) -> JobOutcome:
        """Launch a job and wait for it to finish.

        Args:
            spec: The job to launch.

        Returns:
            JobSucceeded without submitting anything when the job already
            completed for the host; JobTransportError if submission fails;
            otherwise the poller's outcome.

        Raises:
            MarkerStoreError: If the completion marker cannot be checked or written.
        """
        log = logger.with_context(fqdn=spec.target_host, template=spec.template_name)

        if self.markers.exists(spec.target_host, spec.template_name):
            log.info(
                "%s already completed for %s, not launching it again",
                spec.template_name,
                spec.target_host,
            )
            return JobSucceeded(short_circuited=True)

        log.info("Kicking off %s...", spec.template_name)
        try:
            job_id = self.client.launch_job_template(spec.template_id, dict(spec.parameters))
        except AwxClientError as e:
            log.error("Launching %s failed: %s", spec.template_name, e)
            return JobTransportError(cause=e)

        log.info("Launched %s as job %s", spec.template_name, job_id, extra={"job_id": job_id})
        outcome = self.poller.await_job(job_id)

        if isinstance(outcome, JobSucceeded):
            self.markers.create(spec.target_host, spec.template_name)
            log.info("Status of %s: %s", spec.template_name, outcome.describe())

        return outcome


__all__ = ["JobLauncher"]
