"""Build orchestration: registration, breakglass, then baseline.

The orchestrator runs the whole build for one host, strictly in order:

1. :class:`~awxclient.inventory.InventoryRegistrar` makes sure the host is in AWX
2. the breakglass job runs to completion
3. the baseline job runs to completion, only if breakglass succeeded

Internal hosts run these steps themselves. Midtier and edge hosts cannot
reach AWX and hand the build over to the relay, which runs the same steps
through :meth:`Orchestrator.run_jobs` on their behalf.
"""

from __future__ import annotations

from collections.abc import Callable

from awxclient.errors import BuildError
from awxclient.inventory import InventoryRegistrar
from awxclient.launcher import JobLauncher
from awxclient.logging import get_logger
from awxclient.models import BuildContext, BuildResult, JobSpec
from awxclient.relay import RelayClient
from awxclient.types import FailureKind

logger = get_logger(__name__)

# Called once a build succeeded, with the build context and the mock flag
SuccessHook = Callable[[BuildContext, bool], None]


class Orchestrator:
    """Runs the build pipeline for one host at a time.

    Instances hold no per-build state and may serve concurrent builds for
    different hosts.
    """

    def __init__(
        self,
        registrar: InventoryRegistrar,
        launcher: JobLauncher,
        relay: RelayClient | None = None,
        on_success: SuccessHook | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            registrar: Registers hosts in their AWX inventory.
            launcher: Launches and awaits job templates.
            relay: Client for the relay, used for hosts that don't run jobs locally.
            on_success: Post-build cleanup invoked after a successful build.
        """
        self.registrar = registrar
        self.launcher = launcher
        self.relay = relay
        self.on_success = on_success

    def run(self, context: BuildContext, mock: bool = False) -> BuildResult:
        """Build a host, locally or through the relay depending on its type.

        Args:
            context: The build context.
            mock: Skip every AWX call and report success.

        Returns:
            The aggregate build result.
        """
        log = logger.with_context(fqdn=context.fqdn)

        if context.host_type.runs_locally:
            result = self.run_jobs(context, mock)
        elif self.relay is None:
            result = BuildResult.failed(
                FailureKind.CONFIGURATION,
                f"{context.host_type} host {context.fqdn} must be built through the relay, "
                "but no relay is configured",
            )
        else:
            log.info("Relaying build of %s host %s", context.host_type, context.fqdn)
            result = self.relay.submit(context, mock=mock)

        if not result.succeeded:
            log.error(
                "Build failed (%s): %s", result.kind, result.detail, extra={"kind": result.kind}
            )
            return result

        if self.on_success is not None:
            try:
                self.on_success(context, mock)
            except BuildError as e:
                log.error("Post-build cleanup failed: %s", e)
                return BuildResult.failed(e.kind, str(e))

        log.info(
            "%s and %s completed successfully", context.breakglass_name, context.baseline_name
        )
        return result

    def run_jobs(self, context: BuildContext, mock: bool = False) -> BuildResult:
        """Register the host and run breakglass then baseline against it.

        Args:
            context: The build context.
            mock: Skip every AWX call and report success.

        Returns:
            SUCCESSFUL, or FAILED with the kind of the first failure. Baseline
            is never launched unless breakglass succeeded.
        """
        log = logger.with_context(fqdn=context.fqdn)

        if mock:
            log.info("Mock build: skipping inventory registration for %s", context.fqdn)
            log.info("Mock build: not kicking off %s", context.breakglass_name)
            log.info("Mock build: not kicking off %s", context.baseline_name)
            return BuildResult.successful("mock build")

        try:
            self.registrar.ensure(context)
        except BuildError as e:
            return BuildResult.failed(e.kind, str(e))

        for spec in (JobSpec.breakglass(context), JobSpec.baseline(context)):
            try:
                outcome = self.launcher.launch(spec)
            except BuildError as e:
                return BuildResult.failed(e.kind, str(e))
            if not outcome.succeeded:
                log.error(
                    "%s did not succeed, not launching anything else: %s",
                    spec.template_name,
                    outcome.describe(),
                    extra={"template": spec.template_name},
                )
                return BuildResult.from_outcome(outcome)

        return BuildResult.successful(
            f"{context.breakglass_name} and {context.baseline_name} were executed successfully"
        )


__all__ = ["Orchestrator", "SuccessHook"]
