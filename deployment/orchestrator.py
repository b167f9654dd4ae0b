from collections import OrderedDict
from enum import Enum
from typing import Dict, List, Optional

import click
from eth_typing import ChecksumAddress

from deployment.artifacts import ArtifactStore
from deployment.constants import JOURNAL_FILENAME
from deployment.flags import ContractName, FlagFile
from deployment.manifest import Journal, Manifest, ensure_complete
from deployment.params import (
    DeploymentPlan,
    DeploymentStep,
    HandleRegistry,
    StepContext,
    describe_args,
)
from deployment.submitter import DeployedHandle, DeployerContext, GasSchedule, Submitter


class StepState(Enum):
    PENDING = "pending"
    DISABLED = "disabled"
    SKIPPED = "skipped"
    DEPLOYING = "deploying"
    DEPLOYED = "deployed"
    FAILED = "failed"


class StepResult:
    def __init__(self, name: ContractName, artifact: Optional[str] = None):
        self.name = name
        self.artifact = artifact
        self.state = StepState.PENDING
        self.address: Optional[ChecksumAddress] = None
        self.calls: List[str] = list()
        self.error: Optional[Exception] = None


class DeploymentReport:
    """Outcome of every planned step; kept current while the run progresses."""

    def __init__(self, network: str, results: List[StepResult], unplanned: List[ContractName]):
        self.network = network
        self.results: Dict[ContractName, StepResult] = OrderedDict(
            (result.name, result) for result in results
        )
        self.unplanned = unplanned

    def __getitem__(self, name: ContractName) -> StepResult:
        return self.results[name]

    def __iter__(self):
        return iter(self.results.values())

    def in_state(self, *states: StepState) -> List[StepResult]:
        return [result for result in self if result.state in states]

    @property
    def failed(self) -> Optional[StepResult]:
        failures = self.in_state(StepState.FAILED)
        return failures[0] if failures else None

    @property
    def succeeded(self) -> bool:
        return not self.in_state(StepState.FAILED, StepState.PENDING, StepState.DEPLOYING)

    def addresses(self) -> Dict[ContractName, ChecksumAddress]:
        """Addresses of every contract deployed or reused by this run."""
        return OrderedDict(
            (result.name, result.address)
            for result in self.in_state(StepState.DEPLOYED, StepState.SKIPPED)
        )


class Orchestrator:
    """
    Executes a deployment plan against the manifest of one network.

    Steps run strictly in their declared order. Contracts flagged for reuse are
    skipped with their recorded address; the others are submitted for
    deployment and their address is journaled and persisted to the manifest
    before the next step starts. The first failure ends the run; nothing is
    retried.
    """

    def __init__(
        self,
        plan: DeploymentPlan,
        flags: FlagFile,
        manifest: Manifest,
        artifacts: ArtifactStore,
        submitter: Submitter,
        gas: GasSchedule,
        journal: Optional[Journal] = None,
    ):
        self.plan = plan
        self.flags = flags
        self.manifest = manifest
        self.artifacts = artifacts
        self.submitter = submitter
        self.deployer: Optional[DeployerContext] = None
        self.gas = gas
        self.journal = journal or Journal.load(manifest.filepath.with_name(JOURNAL_FILENAME))
        self.handles = HandleRegistry()
        self._prepared = False
        self.report = DeploymentReport(
            network=manifest.network,
            results=[
                StepResult(name=step.name, artifact=self._artifact_name(step.name))
                for step in plan
            ],
            unplanned=plan.unplanned(flags),
        )

    def _artifact_name(self, name: ContractName) -> Optional[str]:
        flag = self.flags.get(name)
        return flag.artifact if flag else None

    def preflight(self) -> None:
        """Fails before any transaction when the run could not complete."""
        self.plan.validate(self.flags)
        self._resume()
        click.secho(
            "Checking all contracts not flagged for deployment have addresses "
            f"in {self.manifest.network}...",
            fg="bright_black",
        )
        ensure_complete(self.flags, self.manifest)
        click.secho("Loading the compiled contracts locally...", fg="bright_black")
        self.artifacts.load_all(self.flags.artifacts())
        self._prepared = True

    def _resume(self) -> None:
        """Brings the manifest up to date with an interrupted run's journal."""
        if not self.journal.resumed:
            return
        click.secho(
            f"Resuming interrupted deployment: {len(self.journal.deployed)} contract(s) "
            f"already deployed according to {JOURNAL_FILENAME}",
            fg="yellow",
        )
        stale = [
            name
            for name, address in self.journal.deployed.items()
            if self.manifest.get(name) != address
        ]
        for name in stale:
            self.manifest.update(name, self.journal.deployed[name])
        if stale:
            self.manifest.persist()

    def run(self, deployer: DeployerContext) -> DeploymentReport:
        if not self._prepared:
            self.preflight()
        self.deployer = deployer
        click.secho(f"Using account with public key {deployer.address}", fg="bright_black")
        for step in self.plan:
            result = self.report[step.name]
            if not step.enabled:
                result.state = StepState.DISABLED
                click.secho(f" - Skipping disabled {step.name}", fg="bright_black")
                continue
            try:
                self._execute(step, result)
            except Exception as e:
                result.state = StepState.FAILED
                result.error = e
                raise
        self.journal.clear()
        return self.report

    def _execute(self, step: DeploymentStep, result: StepResult) -> None:
        context = StepContext(
            step_name=step.name,
            deployer=self.deployer,
            flags=self.flags,
            manifest=self.manifest,
            handles=self.handles,
        )
        if self._reusable(step.name):
            handle = self._reuse(step.name)
            result.state = StepState.SKIPPED
        else:
            handle = self._deploy(step, context, result)
            result.state = StepState.DEPLOYED
        result.address = handle.address
        self._transact_calls(step, context, result)

    def _reusable(self, name: ContractName) -> bool:
        return not self.flags[name].deploy or name in self.journal.deployed

    def _reuse(self, name: ContractName) -> DeployedHandle:
        click.secho(f" - Reusing instance of {name}", fg="bright_black")
        address = self.journal.deployed.get(name) or self.manifest[name]
        handle = DeployedHandle(name=name, address=address)
        self.handles.add(handle)
        return handle

    def _deploy(
        self, step: DeploymentStep, context: StepContext, result: StepResult
    ) -> DeployedHandle:
        artifact = self.artifacts.get(self.flags[step.name].artifact)
        args = step.args(context)

        result.state = StepState.DEPLOYING
        click.secho(f" - Attempting to deploy {step.name}", fg="bright_black")
        pretty_args = describe_args(args)
        if pretty_args:
            click.secho(f"\twith arguments: {pretty_args}", fg="bright_black")
        handle = self.submitter.submit(
            name=step.name,
            artifact=artifact,
            args=args,
            gas=self.gas.deployment,
            deployer=self.deployer,
        )
        self.handles.add(handle)

        self.journal.record_deployment(step.name, handle.address)
        self.manifest.update(step.name, handle.address)
        self.manifest.persist()
        click.echo(f"Deployed {step.name} to {handle.address}")
        return handle

    def _transact_calls(self, step: DeploymentStep, context: StepContext, result: StepResult):
        for position, call in enumerate(step.calls):
            key = call.key(step.name, position)
            if key in self.journal.calls or not call.condition(context):
                continue
            target = context.handle(call.target)
            args = call.args(context)
            artifact = self.artifacts.get(self.flags[call.target].artifact)
            click.secho(f"Calling {call.target}.{call.method}...", fg="bright_black")
            self.submitter.transact(
                handle=target,
                artifact=artifact,
                method=call.method,
                args=args,
                gas=self.gas.method_call,
                deployer=self.deployer,
            )
            self.journal.record_call(key)
            result.calls.append(f"{call.target}.{call.method}")
