import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Callable, List, NamedTuple, Optional, Sequence

from eth_typing import ChecksumAddress
from web3 import Web3

from deployment.exceptions import DeploymentError, UnresolvedDependency
from deployment.flags import ContractName, FlagFile
from deployment.manifest import Manifest
from deployment.submitter import DeployedHandle, DeployerContext
from deployment.utils import _load_yaml

STEPS_KEY = "contracts"
CONSTANTS_KEY = "constants"
ARGS_KEY = "args"
ENABLED_KEY = "enabled"
CALLS_KEY = "calls"


class HandleRegistry:
    """Contracts deployed or reused so far in this run, keyed by contract name."""

    def __init__(self):
        self._handles: typing.Dict[ContractName, DeployedHandle] = OrderedDict()

    def add(self, handle: DeployedHandle) -> None:
        self._handles[handle.name] = handle

    def __contains__(self, name: object) -> bool:
        return name in self._handles

    def __getitem__(self, name: ContractName) -> DeployedHandle:
        return self._handles[name]

    def __iter__(self):
        return iter(self._handles.values())

    def __len__(self) -> int:
        return len(self._handles)


class StepContext:
    """What an argument builder may see while a single step is being prepared."""

    def __init__(
        self,
        step_name: ContractName,
        deployer: DeployerContext,
        flags: FlagFile,
        manifest: Manifest,
        handles: HandleRegistry,
    ):
        self.step_name = step_name
        self.deployer = deployer
        self.flags = flags
        self.manifest = manifest
        self.handles = handles

    def is_deployed(self, name: ContractName) -> bool:
        """Returns True if the contract is flagged for a fresh deployment."""
        flag = self.flags.get(name)
        return flag is not None and flag.deploy

    def handle(self, name: ContractName) -> DeployedHandle:
        if name in self.handles:
            return self.handles[name]
        raise UnresolvedDependency(requester=self.step_name, missing=name)

    def address(self, name: ContractName) -> ChecksumAddress:
        """
        Resolves a contract address from this run's handles or, for contracts
        flagged for reuse only, from the manifest.
        """
        if name in self.handles:
            return self.handles[name].address
        flag = self.flags.get(name)
        if flag is not None and not flag.deploy and name in self.manifest:
            return self.manifest[name]
        raise UnresolvedDependency(requester=self.step_name, missing=name)


ArgBuilder = Callable[[StepContext], List[Any]]
Condition = Callable[[StepContext], bool]


def no_args(context: StepContext) -> List[Any]:
    return []


def any_deployed(*names: ContractName) -> Condition:
    """Condition holding when at least one of the contracts is flagged for deployment."""

    def condition(context: StepContext) -> bool:
        return any(context.is_deployed(name) for name in names)

    return condition


def deployed_and_reused(deployed: ContractName, reused: ContractName) -> Condition:
    def condition(context: StepContext) -> bool:
        return context.is_deployed(deployed) and not context.is_deployed(reused)

    return condition


class PostDeployCall(NamedTuple):
    """A method call made on an already known contract once a step has completed."""

    target: ContractName
    method: str
    args: ArgBuilder = no_args
    condition: Condition = lambda context: True

    def key(self, step_name: ContractName, position: int) -> str:
        return f"{step_name}:{position}:{self.target}.{self.method}"


class DeploymentStep(NamedTuple):
    name: ContractName
    args: ArgBuilder = no_args
    enabled: bool = True
    calls: Sequence[PostDeployCall] = ()


class DeploymentPlan:
    """Ordered deployment steps; the declared order is the execution order."""

    class Invalid(DeploymentError, ValueError):
        """Raised when the plan cannot be executed against the contract flags"""

    def __init__(self, steps: Sequence[DeploymentStep]):
        names = [step.name for step in steps]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise self.Invalid(f"Duplicate steps in deployment plan: {', '.join(duplicates)}")
        self.steps = list(steps)

    def __iter__(self):
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def names(self) -> List[ContractName]:
        return [step.name for step in self.steps]

    @property
    def enabled_steps(self) -> List[DeploymentStep]:
        return [step for step in self.steps if step.enabled]

    def validate(self, flags: FlagFile) -> None:
        """Checks that every enabled step and call target has contract flags."""
        unflagged = [step.name for step in self.enabled_steps if step.name not in flags]
        if unflagged:
            raise self.Invalid(
                f"No contract flags found for planned contracts: {', '.join(unflagged)}"
            )
        for step in self.enabled_steps:
            for call in step.calls:
                if call.target not in flags:
                    raise self.Invalid(
                        f"No contract flags found for {call.target}, "
                        f"target of {call.method} after {step.name}"
                    )

    def unplanned(self, flags: FlagFile) -> List[ContractName]:
        """Flagged contracts that no step of this plan refers to."""
        names = set(self.names)
        return [name for name in flags if name not in names]

    @classmethod
    def from_yaml(cls, filepath: Path) -> "DeploymentPlan":
        return cls.from_config(_load_yaml(filepath))

    @classmethod
    def from_config(cls, config: typing.Dict) -> "DeploymentPlan":
        """Builds a plan from a parsed YAML plan config."""
        if not isinstance(config, dict) or not config.get(STEPS_KEY):
            raise cls.Invalid(f"Deployment plan is missing the '{STEPS_KEY}' field.")
        contract_names = _get_contract_names(config)
        constants = config.get(CONSTANTS_KEY) or dict()

        steps = list()
        for contract_info in config[STEPS_KEY]:
            if isinstance(contract_info, str):
                steps.append(DeploymentStep(name=contract_info))
                continue
            contract_name = list(contract_info.keys())[0]  # only one entry
            contract_data = contract_info[contract_name] or dict()
            context = VariableContext(
                contract_names=contract_names, contract_name=contract_name, constants=constants
            )
            steps.append(
                DeploymentStep(
                    name=contract_name,
                    args=_args_builder(contract_data.get(ARGS_KEY) or [], context),
                    enabled=_get_enabled(contract_name, contract_data),
                    calls=tuple(
                        _process_call(call, context) for call in contract_data.get(CALLS_KEY) or []
                    ),
                )
            )
        return cls(steps)


#
# YAML plan variables
#


class VariableContext:
    def __init__(
        self,
        contract_names: List[str],
        contract_name: str,
        constants: typing.Dict[str, Any] = None,
    ):
        self.contract_names = contract_names or list()
        self.contract_name = contract_name
        self.constants = constants or dict()


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self, context: StepContext) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self, context: StepContext) -> Any:
        return context.deployer.address


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise DeploymentPlan.Invalid(f"Constant '{constant_name}' not found in plan file.")

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a plan constant."""
        return value.isupper()

    def resolve(self, context: StepContext) -> Any:
        return self.constant_value


class Wei(Variable):
    """An ether amount, e.g. $wei:0.2"""

    WEI_PREFIX = "wei:"

    def __init__(self, variable: str):
        self.amount = variable[len(self.WEI_PREFIX) :]
        try:
            Web3.to_wei(self.amount, "ether")
        except (ValueError, ArithmeticError):
            raise DeploymentPlan.Invalid(f"Invalid ether amount '{self.amount}'.")

    @classmethod
    def is_wei(cls, value: str) -> bool:
        return value.startswith(cls.WEI_PREFIX)

    def resolve(self, context: StepContext) -> Any:
        return Web3.to_wei(self.amount, "ether")


class CurrencyKey(Variable):
    """An ascii currency key encoded as hex, e.g. $key:SNX"""

    KEY_PREFIX = "key:"

    def __init__(self, variable: str):
        self.key = variable[len(self.KEY_PREFIX) :]

    @classmethod
    def is_key(cls, value: str) -> bool:
        return value.startswith(cls.KEY_PREFIX)

    def resolve(self, context: StepContext) -> Any:
        return Web3.to_hex(text=self.key)


class ContractAddress(Variable):
    def __init__(self, contract_name: str, context: VariableContext):
        if contract_name not in context.contract_names:
            raise DeploymentPlan.Invalid(
                f"Contract name {contract_name} referenced by {context.contract_name} not found"
            )
        self.contract_name = contract_name

    def resolve(self, context: StepContext) -> Any:
        return context.address(self.contract_name)


def _variable_from_value(variable: Any, context: VariableContext) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount()
    elif Wei.is_wei(variable):
        return Wei(variable)
    elif CurrencyKey.is_key(variable):
        return CurrencyKey(variable)
    elif variable in context.contract_names:
        return ContractAddress(variable, context)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        return ContractAddress(variable, context)


def _process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, variable_context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)

    return value


def _resolve_param(value: Any, context: StepContext) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, context) for v in value]

    if isinstance(value, Variable):
        return value.resolve(context)

    return value  # literally a value


def _args_builder(raw_args: List[Any], variable_context: VariableContext) -> ArgBuilder:
    if not isinstance(raw_args, list):
        raise DeploymentPlan.Invalid(
            f"Arguments of {variable_context.contract_name} must be a list."
        )
    processed = [_process_raw_value(arg, variable_context) for arg in raw_args]

    def build(context: StepContext) -> List[Any]:
        return [_resolve_param(arg, context) for arg in processed]

    return build


def _process_call(call_data: typing.Dict, variable_context: VariableContext) -> PostDeployCall:
    try:
        target, method = call_data["target"], call_data["method"]
    except (KeyError, TypeError):
        raise DeploymentPlan.Invalid(
            f"Calls after {variable_context.contract_name} need a 'target' and a 'method'."
        )
    if target not in variable_context.contract_names:
        raise DeploymentPlan.Invalid(f"Call target {target} not found")
    when = _get_when(call_data.get("when"), target, variable_context)
    return PostDeployCall(
        target=target,
        method=method,
        args=_args_builder(call_data.get(ARGS_KEY) or [], variable_context),
        condition=any_deployed(*when),
    )


def _get_enabled(contract_name: str, contract_data: typing.Dict) -> bool:
    enabled = contract_data.get(ENABLED_KEY, True)
    if not isinstance(enabled, bool):
        raise DeploymentPlan.Invalid(
            f"'{ENABLED_KEY}' for {contract_name} must be true or false, got {enabled!r}."
        )
    return enabled


def _get_when(when: Any, target: str, variable_context: VariableContext) -> List[str]:
    """Names of the contracts whose deployment triggers a call; the step and target by default."""
    if when is None:
        return [variable_context.contract_name, target]
    if isinstance(when, str):
        when = [when]
    if not isinstance(when, list) or not when:
        raise DeploymentPlan.Invalid(
            f"'when' of {target} call after {variable_context.contract_name} "
            "must be a contract name or a list of contract names."
        )
    unknown = [name for name in when if name not in variable_context.contract_names]
    if unknown:
        raise DeploymentPlan.Invalid(
            f"Contracts {', '.join(map(str, unknown))} in 'when' of {target} call "
            f"after {variable_context.contract_name} not found"
        )
    return when


def _get_contract_names(config: typing.Dict) -> List[str]:
    contract_names = list()
    for contract_info in config[STEPS_KEY]:
        if isinstance(contract_info, str):
            contract_names.append(contract_info)
        elif isinstance(contract_info, dict) and len(contract_info) == 1:
            contract_names.extend(list(contract_info.keys()))
        else:
            raise DeploymentPlan.Invalid("Malformed deployment plan YAML.")

    return contract_names


def describe_args(args: List[Any]) -> Optional[str]:
    if not args:
        return None
    return ", ".join(str(arg) for arg in args)
