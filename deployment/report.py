from typing import List, Sequence

import click

from deployment.orchestrator import DeploymentReport, StepState

STATE_COLOURS = {
    StepState.DEPLOYED: "green",
    StepState.SKIPPED: "cyan",
    StepState.DISABLED: "bright_black",
    StepState.PENDING: "yellow",
    StepState.DEPLOYING: "red",
    StepState.FAILED: "red",
}

HEADERS = ("Contract", "Artifact", "State", "Address")


def _format_rows(rows: Sequence[Sequence[str]]) -> List[str]:
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    return ["  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip() for row in rows]


def report_rows(report: DeploymentReport) -> List[Sequence[str]]:
    rows = [HEADERS]
    for result in report:
        rows.append((result.name, result.artifact or "-", result.state.value, result.address or "-"))
    return rows


def print_report(report: DeploymentReport) -> None:
    """Prints the final address of every planned contract, one line per contract."""
    click.echo()
    if report.succeeded:
        click.secho(f" Successfully deployed all contracts to {report.network}:", fg="green")
    else:
        click.secho(f" Deployment to {report.network} did not complete:", fg="red")
    click.echo()

    header, *lines = _format_rows(report_rows(report))
    click.secho(f"    {header}", bold=True)
    for result, line in zip(report, lines):
        click.secho(f"    {line}", fg=STATE_COLOURS[result.state])

    for result in report.in_state(StepState.DEPLOYED, StepState.SKIPPED):
        for call in result.calls:
            click.secho(f"    (i) {call} after {result.name}", fg="bright_black")

    if report.unplanned:
        click.echo()
        click.secho(
            f"(i) Flagged but not part of the plan: {', '.join(report.unplanned)}", fg="yellow"
        )


def print_deployment_info(
    account: str, network: str, flags_filepath, manifest_filepath, gas_price_gwei, to_deploy
) -> None:
    click.secho(
        "\n".join(
            (
                f"Account: {account}",
                f"Network: {network}",
                f"Contract flags: {flags_filepath}",
                f"Manifest: {manifest_filepath}",
                f"Gas Price: {gas_price_gwei} gwei",
                f"To deploy: {', '.join(to_deploy) or '(none)'}",
            )
        ),
        fg="bright_black",
    )


def confirm_deployment() -> None:
    """Asks the user to confirm the start of the deployment."""
    click.confirm("Continue?", abort=True)
