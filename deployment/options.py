from pathlib import Path

import click

from deployment.constants import (
    BUILD_DIR,
    CONTRACT_DEPLOYMENT_GAS_LIMIT,
    CONTRACT_FLAGS_FILEPATH,
    GAS_PRICE_GWEI,
    METHOD_CALL_GAS_LIMIT,
    OUTPUT_DIR,
    SYNTH_LIST_FILEPATH,
)
from deployment.types import GweiAmount, MinInt

build_path_option = click.option(
    "--build-path",
    "-b",
    help="Build path for built files",
    type=click.Path(file_okay=False, path_type=Path),
    default=BUILD_DIR,
    show_default=True,
)

contract_deployment_gas_limit_option = click.option(
    "--contract-deployment-gas-limit",
    "-c",
    help="Contract deployment gas limit",
    type=MinInt(21_000),
    default=CONTRACT_DEPLOYMENT_GAS_LIMIT,
    show_default=True,
)

method_call_gas_limit_option = click.option(
    "--method-call-gas-limit",
    "-m",
    help="Method call gas limit",
    type=MinInt(21_000),
    default=METHOD_CALL_GAS_LIMIT,
    show_default=True,
)

gas_price_option = click.option(
    "--gas-price",
    "-g",
    help="Gas price in gwei",
    type=GweiAmount(),
    default=GAS_PRICE_GWEI,
    show_default=True,
)

synth_list_option = click.option(
    "--synth-list",
    "-s",
    help="Path to a list of synths",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    default=SYNTH_LIST_FILEPATH,
    show_default=True,
)

contract_flags_option = click.option(
    "--contract-flags",
    "-f",
    help="Path to a list of contract flags",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    default=CONTRACT_FLAGS_FILEPATH,
    show_default=True,
)

output_path_option = click.option(
    "--output-path",
    "-o",
    help="Path to a list of deployed contract addresses",
    type=click.Path(file_okay=False, path_type=Path),
    default=OUTPUT_DIR,
    show_default=True,
)

plan_option = click.option(
    "--plan",
    "-p",
    "plan_filepath",
    help="YAML deployment plan to use instead of the built-in Synthetix plan",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)

autosign_option = click.option(
    "--autosign",
    help="Sign transactions and continue without confirmation.",
    is_flag=True,
    default=False,
)
