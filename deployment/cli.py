from pathlib import Path
from typing import Optional

import click
from ape import project
from ape.cli import ConnectedProviderCommand, account_option, network_option
from ape.exceptions import ApeException

from deployment.artifacts import ArtifactStore, write_artifacts
from deployment.constants import COMPILED_FOLDER
from deployment.exceptions import DeploymentError
from deployment.flags import FlagFile
from deployment.manifest import Journal, Manifest, journal_filepath
from deployment.options import (
    autosign_option,
    build_path_option,
    contract_deployment_gas_limit_option,
    contract_flags_option,
    gas_price_option,
    method_call_gas_limit_option,
    output_path_option,
    plan_option,
    synth_list_option,
)
from deployment.orchestrator import Orchestrator
from deployment.params import DeploymentPlan
from deployment.plans import load_synths, synthetix_plan
from deployment.report import confirm_deployment, print_deployment_info, print_report
from deployment.submitter import ApeSubmitter, DeployerContext, GasSchedule
from deployment.utils import check_infura_plugin


def _load_plan(plan_filepath: Optional[Path], synth_list: Path) -> DeploymentPlan:
    if plan_filepath:
        click.secho(f"Loading deployment plan from {plan_filepath}...", fg="bright_black")
        return DeploymentPlan.from_yaml(plan_filepath)
    return synthetix_plan(load_synths(synth_list))


@click.group()
def cli():
    """Build and deploy the Synthetix contracts."""


@cli.command()
@build_path_option
@click.pass_context
def build(ctx, build_path):
    """Compile the contracts and write their artifacts to the build path."""
    click.secho("Starting build...", fg="bright_black")
    click.secho("Compiling contracts...", fg="bright_black")
    try:
        contract_types = project.load_contracts()
    except ApeException as e:
        click.secho(str(e), fg="red", err=True)
        click.secho("Exiting because of compile errors.", fg="bright_black", err=True)
        ctx.exit(1)

    written = write_artifacts(contract_types, build_path)
    click.secho(
        f"Wrote {len(written)} compiled contracts to {build_path / COMPILED_FOLDER}", fg="yellow"
    )
    click.secho("Build succeeded", fg="green")


@cli.command(cls=ConnectedProviderCommand)
@account_option()
@network_option(required=True)
@contract_deployment_gas_limit_option
@method_call_gas_limit_option
@gas_price_option
@synth_list_option
@contract_flags_option
@output_path_option
@build_path_option
@plan_option
@autosign_option
@click.pass_context
def deploy(
    ctx,
    account,
    provider,
    contract_deployment_gas_limit,
    method_call_gas_limit,
    gas_price,
    synth_list,
    contract_flags,
    output_path,
    build_path,
    plan_filepath,
    autosign,
):
    """Deploy compiled contracts, reusing those already deployed on the network."""
    network = provider.network.name
    click.secho(
        f"Starting deployment to {network.upper()} via {provider.name}...", fg="bright_black"
    )

    orchestrator = None
    try:
        flags = FlagFile.from_file(contract_flags)
        plan = _load_plan(plan_filepath, synth_list)
        manifest = Manifest.load(output_path=output_path, network=network, flags=flags)
        gas = GasSchedule.from_gwei(
            deployment_gas_limit=contract_deployment_gas_limit,
            method_call_gas_limit=method_call_gas_limit,
            gas_price_gwei=gas_price,
        )
        orchestrator = Orchestrator(
            plan=plan,
            flags=flags,
            manifest=manifest,
            artifacts=ArtifactStore(build_path),
            submitter=ApeSubmitter(),
            gas=gas,
            journal=Journal.load(journal_filepath(output_path, network)),
        )
        orchestrator.preflight()

        check_infura_plugin(provider)
        if autosign:
            account.set_autosign(True)
        deployer = DeployerContext.from_account(account)

        print_deployment_info(
            account=deployer.address,
            network=network,
            flags_filepath=contract_flags,
            manifest_filepath=manifest.filepath,
            gas_price_gwei=gas_price,
            to_deploy=[step.name for step in plan.enabled_steps if flags[step.name].deploy],
        )
        if not autosign:
            confirm_deployment()
        report = orchestrator.run(deployer)
    except DeploymentError as e:
        if orchestrator is not None and orchestrator.deployer is not None:
            print_report(orchestrator.report)
        click.echo()
        click.secho(str(e), fg="red", err=True)
        ctx.exit(1)
    except Exception:
        if orchestrator is not None and orchestrator.deployer is not None:
            print_report(orchestrator.report)
        raise

    print_report(report)


if __name__ == "__main__":
    cli()
