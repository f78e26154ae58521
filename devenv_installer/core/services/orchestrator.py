"""
Provisioning orchestrator — the fixed, fault-aware setup pipeline.

Steps run strictly in order; each depends on what the previous one
left on disk (homes before manifest, manifest before build, build
before start)::

    init → directories → [ssh] → [github] → compose → [hosts] → build → start → complete
     0        10           20       30         40        50        60      90       100

Bracketed steps are gated by the config.  Before a step runs, one
ProgressEvent announces it.  The first failure stops the pipeline,
emits a single ``error`` event (percent -1) carrying the failure
message verbatim, and is returned to the caller.  Completed steps are
not undone and nothing is retried.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from devenv_installer.adapters.base import ContainerRuntime
from devenv_installer.core.models.config import ProvisioningConfig, SshOption
from devenv_installer.core.models.progress import OutputChunk, ProgressEvent, Step
from devenv_installer.core.models.result import ErrorKind, StepResult
from devenv_installer.core.services import compose_generate, workspace_ops
from devenv_installer.core.services.hosts_ops import HostsMutator
from devenv_installer.core.services.progress import ProgressSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineStep:
    step: Step
    percent: int
    message: str
    enabled: Callable[[ProvisioningConfig], bool]
    action: str  # name of the ProvisioningOrchestrator method that runs it


def _always(_: ProvisioningConfig) -> bool:
    return True


PIPELINE: tuple[PipelineStep, ...] = (
    PipelineStep(Step.INIT, 0, "Initializing setup...", _always, "_noop"),
    PipelineStep(Step.DIRECTORIES, 10, "Creating directories...", _always, "_directories"),
    PipelineStep(
        Step.SSH, 20, "Setting up SSH keys...",
        lambda c: c.ssh_option is not SshOption.SKIP, "_ssh",
    ),
    PipelineStep(
        Step.GITHUB, 30, "Configuring GitHub authentication...",
        lambda c: c.has_github_auth, "_github",
    ),
    PipelineStep(Step.COMPOSE, 40, "Generating docker-compose.yml...", _always, "_compose"),
    PipelineStep(Step.HOSTS, 50, "Configuring hosts file...", lambda c: c.setup_hosts, "_hosts"),
    PipelineStep(
        Step.BUILD, 60, "Building Docker images (this may take a while)...", _always, "_build",
    ),
    PipelineStep(Step.START, 90, "Starting containers...", _always, "_start"),
)

COMPLETE_MESSAGE = "Setup complete!"


def planned_steps(config: ProvisioningConfig) -> list[PipelineStep]:
    """Steps that will run for *config*, in order."""
    return [s for s in PIPELINE if s.enabled(config)]


class ProvisioningOrchestrator:
    """Drives the pipeline against a runtime and a hosts mutator.

    Args:
        runtime: Container runtime used for build and start.
        hosts: Hosts mutator used when ``setup_hosts`` is on.
        ssh_source: Directory to copy keys from (default ``~/.ssh``).
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        hosts: HostsMutator,
        *,
        ssh_source: Path | None = None,
    ):
        self.runtime = runtime
        self.hosts = hosts
        self.ssh_source = ssh_source

    def execute(self, config: ProvisioningConfig, sink: ProgressSink) -> StepResult:
        """Run every enabled step; return the first failure or success."""
        logger.info(
            "Setup starting: %d instance(s) in %s (runtime=%s)",
            config.instances, config.work_dir, self.runtime.name,
        )
        run_start = time.monotonic()

        for pstep in planned_steps(config):
            sink.emit(ProgressEvent(step=pstep.step, message=pstep.message, percent=pstep.percent))

            step_start = time.monotonic()
            result = self._run_step(pstep, config, sink)
            logger.debug(
                "Step %s finished in %.2fs (ok=%s)",
                pstep.step.value, time.monotonic() - step_start, result.ok,
            )

            if result.failed:
                logger.error("Setup failed at step %s: %s", pstep.step.value, result.error)
                sink.emit(ProgressEvent.error(result.error))
                return result

        sink.emit(ProgressEvent(step=Step.COMPLETE, message=COMPLETE_MESSAGE, percent=100))
        logger.info("Setup complete in %.1fs", time.monotonic() - run_start)
        return StepResult.success(urls=config.instance_urls())

    def _run_step(
        self,
        pstep: PipelineStep,
        config: ProvisioningConfig,
        sink: ProgressSink,
    ) -> StepResult:
        action = getattr(self, pstep.action)
        try:
            return action(config, sink)
        except OSError as e:
            return StepResult.failure(ErrorKind.IO, str(e))
        except Exception as e:
            logger.exception("Unexpected error in step %s", pstep.step.value)
            return StepResult.failure(ErrorKind.UNEXPECTED, str(e) or type(e).__name__)

    # ── Steps ───────────────────────────────────────────────────

    def _noop(self, config: ProvisioningConfig, sink: ProgressSink) -> StepResult:
        return StepResult.success()

    def _directories(self, config: ProvisioningConfig, sink: ProgressSink) -> StepResult:
        return workspace_ops.create_home_directories(config.work_dir, config.instances)

    def _ssh(self, config: ProvisioningConfig, sink: ProgressSink) -> StepResult:
        if config.ssh_option is SshOption.COPY:
            return workspace_ops.copy_ssh_keys(config.ssh_dir, self.ssh_source)
        return workspace_ops.generate_ssh_keys(config.ssh_email, config.ssh_dir)

    def _github(self, config: ProvisioningConfig, sink: ProgressSink) -> StepResult:
        return workspace_ops.setup_github_auth(
            config.work_dir, config.instances,
            config.github_username, config.github_token,
        )

    def _compose(self, config: ProvisioningConfig, sink: ProgressSink) -> StepResult:
        return compose_generate.generate_compose_file(config)

    def _hosts(self, config: ProvisioningConfig, sink: ProgressSink) -> StepResult:
        return self.hosts.ensure_entries(config.instances)

    def _build(self, config: ProvisioningConfig, sink: ProgressSink) -> StepResult:
        return self.runtime.build(
            config.work_dir,
            lambda chunk: sink.emit(OutputChunk(chunk=chunk)),
        )

    def _start(self, config: ProvisioningConfig, sink: ProgressSink) -> StepResult:
        return self.runtime.start(config.work_dir)
