import pytest
from web3 import Web3

from deployment.exceptions import UnresolvedDependency
from deployment.manifest import Manifest
from deployment.params import (
    DeploymentPlan,
    DeploymentStep,
    HandleRegistry,
    PostDeployCall,
    StepContext,
    any_deployed,
    deployed_and_reused,
    describe_args,
)
from deployment.submitter import DeployedHandle
from tests.conftest import DEPLOYER_ADDRESS, NETWORK

ADDRESS_A = "0x" + "a" * 40
ADDRESS_B = "0x" + "b" * 40
STALE_ADDRESS = "0x" + "5" * 40


@pytest.fixture
def flags(write_flags):
    return write_flags(
        {
            "Reused": {"deploy": False, "artifact": "Reused"},
            "Fresh": {"deploy": True, "artifact": "Fresh"},
            "Later": {"deploy": True, "artifact": "Later"},
        }
    )


@pytest.fixture
def context(flags, deployer, output_path, write_manifest):
    write_manifest({"Reused": ADDRESS_A, "Later": STALE_ADDRESS})
    manifest = Manifest.load(output_path=output_path, network=NETWORK, flags=flags)
    handles = HandleRegistry()
    handles.add(DeployedHandle(name="Fresh", address=ADDRESS_B, fresh=True))
    return StepContext(
        step_name="Consumer", deployer=deployer, flags=flags, manifest=manifest, handles=handles
    )


def test_address_resolution(context):
    assert context.address("Fresh") == ADDRESS_B
    assert context.address("Reused") == ADDRESS_A


def test_stale_address_of_contract_to_deploy_is_not_used(context):
    with pytest.raises(UnresolvedDependency) as error:
        context.address("Later")
    assert error.value.requester == "Consumer"
    assert error.value.missing == "Later"


def test_unknown_contract_is_unresolved(context):
    with pytest.raises(UnresolvedDependency, match="Unknown"):
        context.address("Unknown")
    with pytest.raises(UnresolvedDependency):
        context.handle("Reused")  # not seen yet in this run


def test_conditions(context):
    assert any_deployed("Reused", "Fresh")(context)
    assert not any_deployed("Reused")(context)
    assert deployed_and_reused("Fresh", "Reused")(context)
    assert not deployed_and_reused("Reused", "Fresh")(context)


def test_duplicate_steps():
    with pytest.raises(DeploymentPlan.Invalid, match="A"):
        DeploymentPlan([DeploymentStep("A"), DeploymentStep("B"), DeploymentStep("A")])


def test_validate_plan(flags):
    plan = DeploymentPlan(
        [
            DeploymentStep("Fresh"),
            DeploymentStep("Unflagged", enabled=False),
            DeploymentStep("Later", calls=(PostDeployCall("Fresh", "setTarget"),)),
        ]
    )
    plan.validate(flags)
    assert plan.unplanned(flags) == ["Reused"]

    with pytest.raises(DeploymentPlan.Invalid, match="Unflagged"):
        DeploymentPlan([DeploymentStep("Unflagged")]).validate(flags)

    bad_call = DeploymentStep("Fresh", calls=(PostDeployCall("Unflagged", "setTarget"),))
    with pytest.raises(DeploymentPlan.Invalid, match="Unflagged"):
        DeploymentPlan([bad_call]).validate(flags)


def test_plan_from_config(context):
    config = {
        "constants": {"INITIAL_SUPPLY": 1000},
        "contracts": [
            "Reused",
            {
                "Fresh": {
                    "args": ["$deployer", "$Reused", ["$key:SNX"], "$wei:0.5", "$INITIAL_SUPPLY"],
                    "calls": [{"target": "Reused", "method": "setTarget", "args": ["$Fresh"]}],
                }
            },
            {"Later": {"enabled": False, "args": ["$Fresh", 7]}},
        ],
    }
    plan = DeploymentPlan.from_config(config)

    assert plan.names == ["Reused", "Fresh", "Later"]
    assert [step.name for step in plan.enabled_steps] == ["Reused", "Fresh"]

    reused, fresh, later = plan.steps
    assert reused.args(context) == []
    assert fresh.args(context) == [
        DEPLOYER_ADDRESS,
        ADDRESS_A,
        [Web3.to_hex(text="SNX")],
        Web3.to_wei("0.5", "ether"),
        1000,
    ]
    assert later.args(context) == [ADDRESS_B, 7]

    (call,) = fresh.calls
    assert (call.target, call.method) == ("Reused", "setTarget")
    assert call.args(context) == [ADDRESS_B]
    # by default the call is made when either side is freshly deployed
    assert call.condition(context)


@pytest.mark.parametrize(
    "contracts",
    [
        [{"A": {"args": ["$Missing"]}}],
        [{"A": {"args": ["$UNDEFINED"]}}],
        [{"A": {"args": ["$wei:lots"]}}],
        [{"A": {"args": "$deployer"}}],
        [{"A": {"calls": [{"target": "Missing", "method": "setTarget"}]}}],
        [{"A": {"calls": [{"method": "setTarget"}]}}],
        [{"A": {}, "B": {}}],
    ],
)
def test_invalid_plan_config(contracts):
    with pytest.raises(DeploymentPlan.Invalid):
        DeploymentPlan.from_config({"contracts": contracts})


def test_plan_config_without_contracts():
    with pytest.raises(DeploymentPlan.Invalid, match="contracts"):
        DeploymentPlan.from_config({"constants": {}})


def test_describe_args():
    assert describe_args([]) is None
    assert describe_args(["0xabc", 1]) == "0xabc, 1"


def test_upper_case_contract_reference(context):
    plan = DeploymentPlan.from_config(
        {
            "constants": {"SNX_RATE": "0.2"},
            "contracts": [
                "Reused",
                "SNX",
                {"Fresh": {"args": ["$SNX", "$SNX_RATE", "$Reused"]}},
            ],
        }
    )
    context.handles.add(DeployedHandle(name="SNX", address=STALE_ADDRESS, fresh=True))
    assert plan.steps[-1].args(context) == [STALE_ADDRESS, "0.2", ADDRESS_A]


@pytest.mark.parametrize("when", ["Fresh", ["Fresh"]])
def test_call_condition_names(context, when):
    plan = DeploymentPlan.from_config(
        {
            "contracts": [
                "Reused",
                {"Fresh": {"calls": [{"target": "Reused", "method": "setTarget", "when": when}]}},
            ]
        }
    )
    (call,) = plan.steps[-1].calls
    assert call.condition(context)


@pytest.mark.parametrize("when", ["FeePol", ["Fresh", "FeePol"], {"Fresh": True}, []])
def test_invalid_call_condition(when):
    config = {
        "contracts": [
            "Reused",
            {"Fresh": {"calls": [{"target": "Reused", "method": "setTarget", "when": when}]}},
        ]
    }
    with pytest.raises(DeploymentPlan.Invalid, match="when"):
        DeploymentPlan.from_config(config)


@pytest.mark.parametrize("enabled", ["false", 0, None])
def test_enabled_must_be_a_boolean(enabled):
    with pytest.raises(DeploymentPlan.Invalid, match="Fresh"):
        DeploymentPlan.from_config({"contracts": [{"Fresh": {"enabled": enabled}}]})
