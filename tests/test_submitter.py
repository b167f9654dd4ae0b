from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from ape.contracts import ContractContainer
from ape.exceptions import ApeException

from deployment.artifacts import Artifact
from deployment.exceptions import SubmissionError
from deployment.submitter import (
    ApeSubmitter,
    DeployedHandle,
    DeployerContext,
    GasClass,
    GasSchedule,
    get_contract_container,
)
from tests.conftest import CONSTRUCTOR_ABI, DEPLOYER_ADDRESS

DEPLOYED_ADDRESS = "0x" + "c" * 40


@pytest.fixture
def artifact():
    return Artifact(name="ProxyFeePool", bytecode="0x6080604052", abi=CONSTRUCTOR_ABI)


@pytest.fixture
def account():
    account = MagicMock()
    account.address = DEPLOYER_ADDRESS
    account.deploy.return_value = MagicMock(address=DEPLOYED_ADDRESS)
    return account


def test_gas_schedule():
    gas = GasSchedule.from_gwei(
        deployment_gas_limit=6_500_000, method_call_gas_limit=150_000, gas_price_gwei=Decimal("1.5")
    )
    assert gas.deployment.kind is GasClass.DEPLOYMENT
    assert gas.deployment.gas_limit == 6_500_000
    assert gas.method_call.gas_limit == 150_000
    assert gas[GasClass.METHOD_CALL] is gas.method_call
    assert gas.deployment.gas_price_wei == gas.method_call.gas_price_wei == 1_500_000_000


def test_contract_container(artifact):
    container = get_contract_container(artifact)
    assert isinstance(container, ContractContainer)
    assert container.contract_type.name == "ProxyFeePool"
    assert container.contract_type.deployment_bytecode.bytecode == "0x6080604052"


def test_submit(artifact, account, gas):
    deployer = DeployerContext.from_account(account)
    handle = ApeSubmitter().submit(
        name="ProxyFeePool",
        artifact=artifact,
        args=[DEPLOYER_ADDRESS],
        gas=gas.deployment,
        deployer=deployer,
    )

    assert handle.name == "ProxyFeePool"
    assert handle.address == DEPLOYED_ADDRESS
    assert handle.fresh
    args, kwargs = account.deploy.call_args
    assert isinstance(args[0], ContractContainer)
    assert args[1:] == (DEPLOYER_ADDRESS,)
    assert kwargs == {"publish": False, "gas_limit": 6_500_000, "gas_price": 10**9}


def test_submit_failure(artifact, account, gas):
    account.deploy.side_effect = ApeException("insufficient funds for gas")
    with pytest.raises(SubmissionError, match="insufficient funds") as error:
        ApeSubmitter().submit(
            name="ProxyFeePool",
            artifact=artifact,
            args=[],
            gas=gas.deployment,
            deployer=DeployerContext.from_account(account),
        )
    assert error.value.name == "ProxyFeePool"


def test_transact(artifact, account, gas):
    instance = MagicMock()
    handle = DeployedHandle(name="ProxyFeePool", address=DEPLOYED_ADDRESS, instance=instance)
    ApeSubmitter().transact(
        handle=handle,
        artifact=artifact,
        method="setTarget",
        args=[DEPLOYER_ADDRESS],
        gas=gas.method_call,
        deployer=DeployerContext.from_account(account),
    )
    instance.setTarget.assert_called_once_with(
        DEPLOYER_ADDRESS, sender=account, gas_limit=150_000, gas_price=10**9
    )


def test_transact_failure(artifact, account, gas):
    instance = MagicMock()
    instance.setTarget.side_effect = ApeException("execution reverted")
    handle = DeployedHandle(name="ProxyFeePool", address=DEPLOYED_ADDRESS, instance=instance)
    with pytest.raises(SubmissionError, match="ProxyFeePool.setTarget"):
        ApeSubmitter().transact(
            handle=handle,
            artifact=artifact,
            method="setTarget",
            args=[],
            gas=gas.method_call,
            deployer=DeployerContext.from_account(account),
        )


def test_submit_transport_failure(artifact, account, gas):
    account.deploy.side_effect = ConnectionError("connection refused")
    with pytest.raises(SubmissionError, match="connection refused"):
        ApeSubmitter().submit(
            name="ProxyFeePool",
            artifact=artifact,
            args=[],
            gas=gas.deployment,
            deployer=DeployerContext.from_account(account),
        )
