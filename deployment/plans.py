"""
The Synthetix deployment plan.

Only the contracts that can currently be rolled out are enabled; the rest of
the system is declared with its wiring and kept disabled until its turn comes.
"""

from pathlib import Path
from typing import List

from ape.utils import ZERO_ADDRESS
from web3 import Web3

from deployment.constants import (
    DEPOT_USD_ETH_PRICE,
    DEPOT_USD_SNX_PRICE,
    EXCHANGE_FEE_RATE,
    INITIAL_SYNTHETIX_SUPPLY,
    SNX_INITIAL_RATE,
    TRANSFER_FEE_RATE,
)
from deployment.params import (
    DeploymentPlan,
    DeploymentStep,
    PostDeployCall,
    StepContext,
    any_deployed,
    deployed_and_reused,
)
from deployment.utils import _load_json

SUSD = "sUSD"


def currency_key(key: str) -> str:
    return Web3.to_hex(text=key)


def load_synths(filepath: Path) -> List[str]:
    synths = _load_json(filepath)
    if not isinstance(synths, list) or not all(isinstance(key, str) for key in synths):
        raise DeploymentPlan.Invalid(f"Synth list at {filepath} must be a list of currency keys.")
    return synths


def _owner(context: StepContext) -> list:
    return [context.deployer.address]


def _owner_and_associated(context: StepContext) -> list:
    return [context.deployer.address, context.deployer.address]


def _exchange_rates(context: StepContext) -> list:
    account = context.deployer.address
    return [
        account,  # owner
        account,  # oracle
        [currency_key("SNX")],
        [Web3.to_wei(SNX_INITIAL_RATE, "ether")],
    ]


def _fee_pool(context: StepContext) -> list:
    account = context.deployer.address
    return [
        context.address("ProxyFeePool"),
        account,  # owner
        account,  # fee authority
        account,  # fee beneficiary
        Web3.to_wei(TRANSFER_FEE_RATE, "ether"),
        Web3.to_wei(EXCHANGE_FEE_RATE, "ether"),
    ]


def _synthetix(context: StepContext) -> list:
    return [
        context.address("ProxySynthetix"),
        context.address("TokenStateSynthetix"),
        context.address("SynthetixState"),
        context.deployer.address,
        context.address("ExchangeRates"),
        context.address("FeePool"),
    ]


def _synthetix_escrow(context: StepContext) -> list:
    return [context.deployer.address, context.address("Synthetix")]


def _depot(context: StepContext) -> list:
    account = context.deployer.address
    return [
        account,  # owner
        account,  # funds wallet
        context.address("Synthetix"),
        context.address(f"Synth{SUSD}"),
        context.address("FeePool"),
        account,  # oracle
        Web3.to_wei(DEPOT_USD_ETH_PRICE, "ether"),
        Web3.to_wei(DEPOT_USD_SNX_PRICE, "ether"),
    ]


def _address_of(name: str):
    def build(context: StepContext) -> list:
        return [context.address(name)]

    return build


def _synth_steps(key: str, enabled: bool) -> List[DeploymentStep]:
    token_state, proxy, synth = f"TokenState{key}", f"Proxy{key}", f"Synth{key}"

    def token_state_args(context: StepContext) -> list:
        return [context.deployer.address, ZERO_ADDRESS]

    def synth_args(context: StepContext) -> list:
        return [
            context.address(proxy),
            context.address(token_state),
            context.address("Synthetix"),
            context.address("FeePool"),
            f"Synth {key}",
            key,
            context.deployer.address,
            currency_key(key),
        ]

    return [
        DeploymentStep(token_state, args=token_state_args, enabled=enabled),
        DeploymentStep(proxy, args=_owner, enabled=enabled),
        DeploymentStep(
            synth,
            args=synth_args,
            enabled=enabled,
            calls=(
                PostDeployCall(
                    token_state,
                    "setAssociatedContract",
                    _address_of(synth),
                    any_deployed(synth, token_state),
                ),
                PostDeployCall(proxy, "setTarget", _address_of(synth), any_deployed(proxy, synth)),
                # requires ownership of the Synthetix contract
                PostDeployCall(
                    "Synthetix", "addSynth", _address_of(synth), any_deployed(synth, "Synthetix")
                ),
                # requires ownership of the existing synth
                PostDeployCall(
                    synth,
                    "setSynthetix",
                    _address_of("Synthetix"),
                    deployed_and_reused("Synthetix", synth),
                ),
            ),
        ),
    ]


def synthetix_plan(synths: List[str]) -> DeploymentPlan:
    """
    SafeDecimalMath, ExchangeRates and the FeePool proxy are deployed; the
    FeePool, Synthetix core, escrow, per-currency synths and Depot are
    declared but disabled.
    """

    def initial_balance(context: StepContext) -> list:
        return [context.deployer.address, Web3.to_wei(INITIAL_SYNTHETIX_SUPPLY, "ether")]

    steps = [
        DeploymentStep("SafeDecimalMath"),
        DeploymentStep("ExchangeRates", args=_exchange_rates),
        DeploymentStep("ProxyFeePool", args=_owner),
        DeploymentStep(
            "FeePool",
            args=_fee_pool,
            enabled=False,
            calls=(
                PostDeployCall(
                    "ProxyFeePool",
                    "setTarget",
                    _address_of("FeePool"),
                    any_deployed("ProxyFeePool", "FeePool"),
                ),
            ),
        ),
        DeploymentStep("SynthetixState", args=_owner_and_associated, enabled=False),
        DeploymentStep("ProxySynthetix", args=_owner, enabled=False),
        DeploymentStep("TokenStateSynthetix", args=_owner_and_associated, enabled=False),
        DeploymentStep(
            "Synthetix",
            args=_synthetix,
            enabled=False,
            calls=(
                PostDeployCall(
                    "ProxySynthetix",
                    "setTarget",
                    _address_of("Synthetix"),
                    any_deployed("ProxySynthetix", "Synthetix"),
                ),
                PostDeployCall(
                    "TokenStateSynthetix",
                    "setBalanceOf",
                    initial_balance,
                    any_deployed("TokenStateSynthetix"),
                ),
                PostDeployCall(
                    "TokenStateSynthetix",
                    "setAssociatedContract",
                    _address_of("Synthetix"),
                    any_deployed("TokenStateSynthetix", "Synthetix"),
                ),
                PostDeployCall(
                    "SynthetixState",
                    "setAssociatedContract",
                    _address_of("Synthetix"),
                    any_deployed("TokenStateSynthetix", "Synthetix"),
                ),
            ),
        ),
        DeploymentStep(
            "SynthetixEscrow",
            args=_synthetix_escrow,
            enabled=False,
            calls=(
                PostDeployCall(
                    "Synthetix",
                    "setEscrow",
                    _address_of("SynthetixEscrow"),
                    any_deployed("Synthetix", "SynthetixEscrow"),
                ),
                # requires ownership of the existing escrow
                PostDeployCall(
                    "SynthetixEscrow",
                    "setSynthetix",
                    _address_of("Synthetix"),
                    deployed_and_reused("Synthetix", "SynthetixEscrow"),
                ),
                # requires ownership of the FeePool
                PostDeployCall(
                    "FeePool",
                    "setSynthetix",
                    _address_of("Synthetix"),
                    any_deployed("FeePool", "Synthetix"),
                ),
            ),
        ),
    ]
    for key in synths:
        steps.extend(_synth_steps(key, enabled=False))
    steps.append(
        DeploymentStep(
            "Depot",
            args=_depot,
            enabled=False,
            calls=(
                # requires ownership of the existing Depot
                PostDeployCall(
                    "Depot",
                    "setSynthetix",
                    _address_of("Synthetix"),
                    deployed_and_reused("Synthetix", "Depot"),
                ),
            ),
        )
    )
    return DeploymentPlan(steps)
