"""Spotswap package."""
import argparse as _argparse
import pathlib as _pathlib
import typing as _typing

import yaml as _yaml

from spotswap import _errors
from spotswap import _runner
from spotswap import _template
from spotswap._runner import lambda_handler  # noqa: F401


def _spot_arguments() -> _argparse.ArgumentParser:
    """Arguments shared by the reconcile and poll commands."""
    parser = _argparse.ArgumentParser(add_help=False)
    parser.add_argument("-p", "--profile", dest="aws_profile")
    parser.add_argument("--region")
    parser.add_argument("--config-path")
    parser.add_argument("--pretty-print", action="store_true")
    parser.add_argument("--spot-group")
    parser.add_argument("--spot-fleet")
    return parser


def parse(args: _typing.List[str] = None) -> dict:
    """Parse command line arguments to invoke spotswap."""
    parser = _argparse.ArgumentParser(prog="spotswap")
    subparsers = parser.add_subparsers(dest="command", required=True)
    shared = _spot_arguments()

    reconcile = subparsers.add_parser("reconcile", parents=[shared])
    reconcile.add_argument("--on-demand-group")
    reconcile.add_argument("--scale-down-policy")
    reconcile.add_argument("--stack-name")
    reconcile.add_argument("--spot-instance-types")
    reconcile.add_argument("--spot-instance-weights")
    reconcile.add_argument("--on-demand-weight")

    poll = subparsers.add_parser("poll", parents=[shared])
    poll.add_argument("--instance-id")
    poll.add_argument("--termination-delay")
    poll.add_argument("--termination-override")
    poll.add_argument("--notice-endpoint")

    template = subparsers.add_parser("template")
    template.add_argument("options_path")
    template.add_argument("--format", dest="output_format", choices=["json", "yaml"])
    return vars(parser.parse_args(args))


def _render_template(args: dict) -> int:
    """Print the deployment template for the options file."""
    try:
        options = _yaml.safe_load(_pathlib.Path(args["options_path"]).read_text())
        resources = _template.template(options)
    except (OSError, _yaml.YAMLError, _errors.ConfigError) as error:
        print(f"[ERROR]: {error}")
        return 1
    print(_template.render(resources, args.get("output_format") or "json"))
    return 0


def main(args: _typing.List[str] = None) -> int:
    """Execute the spotswap command line."""
    parsed = parse(args)
    command = parsed.pop("command")
    if command == "template":
        return _render_template(parsed)
    if command == "poll":
        return 1 if _runner.poll(parsed) else 0
    return 1 if _runner.reconcile(parsed) else 0
