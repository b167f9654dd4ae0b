import json

import pytest

from deployment.artifacts import ArtifactStore
from deployment.constants import COMPILED_FOLDER
from deployment.exceptions import SubmissionError
from deployment.flags import FlagFile
from deployment.manifest import Manifest, manifest_filepath
from deployment.orchestrator import Orchestrator
from deployment.params import DeploymentPlan
from deployment.submitter import DeployedHandle, DeployerContext, GasSchedule, Submitter

NETWORK = "testnet"
DEPLOYER_ADDRESS = "0x" + "d" * 40

CONSTRUCTOR_ABI = [
    {
        "type": "constructor",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_owner", "type": "address", "internalType": "address"}],
    }
]


class Halt(BaseException):
    """Stands in for the process being killed mid-run."""


class FakeSubmitter(Submitter):
    """Records every transaction and hands out sequential addresses."""

    def __init__(self, fail_on=(), halt_on=(), first_address=0xA1):
        self.fail_on = set(fail_on)
        self.halt_on = set(halt_on)
        self.next_address = first_address
        self.submissions = list()
        self.calls = list()

    def submit(self, name, artifact, args, gas, deployer):
        if name in self.halt_on:
            raise Halt(name)
        self.submissions.append((name, artifact.name, list(args), gas, deployer))
        if name in self.fail_on:
            raise SubmissionError(name=name, reason="nonce too low")
        address = "0x" + f"{self.next_address:040x}"
        self.next_address += 1
        return DeployedHandle(name=name, address=address, fresh=True)

    def transact(self, handle, artifact, method, args, gas, deployer):
        call = f"{handle.name}.{method}"
        self.calls.append((call, list(args), gas))
        if call in self.fail_on:
            raise SubmissionError(name=call, reason="execution reverted")

    @property
    def submitted(self):
        return [name for name, *_ in self.submissions]


@pytest.fixture
def submitter():
    return FakeSubmitter()


@pytest.fixture
def deployer():
    return DeployerContext(address=DEPLOYER_ADDRESS)


@pytest.fixture
def gas():
    return GasSchedule(
        deployment_gas_limit=6_500_000, method_call_gas_limit=150_000, gas_price_wei=10**9
    )


@pytest.fixture
def build_path(tmp_path):
    path = tmp_path / "build"
    (path / COMPILED_FOLDER).mkdir(parents=True)
    return path


@pytest.fixture
def output_path(tmp_path):
    return tmp_path / "out"


@pytest.fixture
def write_artifact(build_path):
    def _write(name, bytecode="0x6080604052", abi=None):
        filepath = build_path / COMPILED_FOLDER / f"{name}.json"
        data = {"abi": abi if abi is not None else CONSTRUCTOR_ABI, "bytecode": bytecode}
        filepath.write_text(json.dumps(data))
        return filepath

    return _write


@pytest.fixture
def write_flags(tmp_path, write_artifact):
    """Writes a contract flag file and an artifact for every flagged contract."""

    def _write(flags, artifacts=True):
        filepath = tmp_path / "contract-flags.json"
        filepath.write_text(json.dumps(flags))
        if artifacts:
            for entry in flags.values():
                write_artifact(entry.get("artifact", entry.get("contract")))
        return FlagFile.from_file(filepath)

    return _write


@pytest.fixture
def write_manifest(output_path):
    def _write(addresses, network=NETWORK):
        filepath = manifest_filepath(output_path, network)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_text(json.dumps(addresses))
        return filepath

    return _write


@pytest.fixture
def read_manifest(output_path):
    def _read(network=NETWORK):
        return json.loads(manifest_filepath(output_path, network).read_text())

    return _read


@pytest.fixture
def make_orchestrator(output_path, build_path, gas):
    def _make(plan_or_steps, flags, submitter):
        plan = plan_or_steps
        if not isinstance(plan, DeploymentPlan):
            plan = DeploymentPlan(plan_or_steps)
        manifest = Manifest.load(output_path=output_path, network=NETWORK, flags=flags)
        return Orchestrator(
            plan=plan,
            flags=flags,
            manifest=manifest,
            artifacts=ArtifactStore(build_path),
            submitter=submitter,
            gas=gas,
        )

    return _make
