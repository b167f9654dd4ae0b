from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, NamedTuple, Optional

from ape.api import AccountAPI
from ape.contracts import ContractContainer, ContractInstance
from ape.exceptions import ApeException
from eth_typing import ChecksumAddress
from ethpm_types import ContractType
from web3 import Web3

from deployment.artifacts import Artifact
from deployment.exceptions import SubmissionError
from deployment.flags import ContractName


class DeployerContext(NamedTuple):
    """The account deploying this run; handed to every submission and arg-builder."""

    address: ChecksumAddress
    account: Optional[AccountAPI] = None

    @classmethod
    def from_account(cls, account: AccountAPI) -> "DeployerContext":
        return cls(address=account.address, account=account)


class GasClass(Enum):
    DEPLOYMENT = "contract-deployment"
    METHOD_CALL = "method-call"


class GasParameters(NamedTuple):
    kind: GasClass
    gas_limit: int
    gas_price_wei: int


class GasSchedule:
    """Gas limits for both transaction classes and the gas price, fixed for a run."""

    def __init__(self, deployment_gas_limit: int, method_call_gas_limit: int, gas_price_wei: int):
        self._parameters = {
            GasClass.DEPLOYMENT: GasParameters(
                GasClass.DEPLOYMENT, deployment_gas_limit, gas_price_wei
            ),
            GasClass.METHOD_CALL: GasParameters(
                GasClass.METHOD_CALL, method_call_gas_limit, gas_price_wei
            ),
        }

    @classmethod
    def from_gwei(
        cls, deployment_gas_limit: int, method_call_gas_limit: int, gas_price_gwei
    ) -> "GasSchedule":
        return cls(
            deployment_gas_limit=deployment_gas_limit,
            method_call_gas_limit=method_call_gas_limit,
            gas_price_wei=Web3.to_wei(gas_price_gwei, "gwei"),
        )

    def __getitem__(self, kind: GasClass) -> GasParameters:
        return self._parameters[kind]

    @property
    def deployment(self) -> GasParameters:
        return self._parameters[GasClass.DEPLOYMENT]

    @property
    def method_call(self) -> GasParameters:
        return self._parameters[GasClass.METHOD_CALL]


class DeployedHandle(NamedTuple):
    """
    A contract known to this run. Reused contracts carry only their address;
    freshly deployed ones also carry the live instance returned by the submitter.
    """

    name: ContractName
    address: ChecksumAddress
    fresh: bool = False
    instance: Any = None


class Submitter(ABC):
    """Sends deployment and method-call transactions on behalf of the deployer."""

    @abstractmethod
    def submit(
        self,
        name: ContractName,
        artifact: Artifact,
        args: List[Any],
        gas: GasParameters,
        deployer: DeployerContext,
    ) -> DeployedHandle:
        """Deploys a contract; raises SubmissionError on failure."""
        raise NotImplementedError

    @abstractmethod
    def transact(
        self,
        handle: DeployedHandle,
        artifact: Artifact,
        method: str,
        args: List[Any],
        gas: GasParameters,
        deployer: DeployerContext,
    ) -> Any:
        """Calls a state-changing method of a known contract; raises SubmissionError."""
        raise NotImplementedError


def get_contract_container(artifact: Artifact) -> ContractContainer:
    contract_type = ContractType.model_validate(
        {
            "contractName": artifact.name,
            "abi": artifact.abi,
            "deploymentBytecode": {"bytecode": artifact.bytecode},
        }
    )
    return ContractContainer(contract_type)


class ApeSubmitter(Submitter):
    """Submits transactions through the deployer's ape account and connected provider."""

    def __init__(self, publish: bool = False):
        self.publish = publish

    def submit(self, name, artifact, args, gas, deployer) -> DeployedHandle:
        container = get_contract_container(artifact)
        try:
            instance: ContractInstance = deployer.account.deploy(
                container,
                *args,
                publish=self.publish,
                gas_limit=gas.gas_limit,
                gas_price=gas.gas_price_wei,
            )
        except (ApeException, OSError) as e:
            raise SubmissionError(name=name, reason=str(e)) from e
        return DeployedHandle(name=name, address=instance.address, fresh=True, instance=instance)

    def transact(self, handle, artifact, method, args, gas, deployer) -> Any:
        call_name = f"{handle.name}.{method}"
        try:
            instance = handle.instance
            if instance is None:
                instance = get_contract_container(artifact).at(handle.address)
            method_handler = getattr(instance, method)
            return method_handler(
                *args,
                sender=deployer.account,
                gas_limit=gas.gas_limit,
                gas_price=gas.gas_price_wei,
            )
        except (ApeException, OSError) as e:
            raise SubmissionError(name=call_name, reason=str(e)) from e
