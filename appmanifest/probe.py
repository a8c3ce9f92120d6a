#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: probe.py
    Author: Alex Biddle

    Description:
        Command-line entry point. Builds an ApplicationManager from the
        APPMANIFEST_* environment (with command-line overrides), runs one of
        the accessors, and prints the result as JSON. Because accessors never
        raise fetch errors, a missing result is printed as null and reported
        through the exit status.
"""


import argparse
import json
import os
import sys
import typing

from appmanifest.application_manager import ApplicationManager
from appmanifest.handlers.error_handler import ConfigurationError
from appmanifest.server_config import ServerConfig
import appmanifest.constants as CONSTANTS


_COMMANDS = ("summary", "packages", "timestamp")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="appmanifest-probe", description="Fetch and decrypt an application manifest.")
    parser.add_argument("command", choices=_COMMANDS, help="Manifest to fetch")
    parser.add_argument("application_id", help="Application identifier")
    parser.add_argument("--server-url", help=f"Overrides ${CONSTANTS._ENV_SERVER_URL}")
    parser.add_argument("--debug", action="store_true", help="Treat every summary as an upgrade")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("--audit-log", help="Audit log path")
    return parser



"""
    Build the ServerConfig from the environment plus command-line overrides.

    @raise ConfigurationError: when the resulting configuration is invalid.
"""
def build_config(args: argparse.Namespace, environ: typing.Optional[typing.Mapping[str, str]] = None) -> ServerConfig:

    env = dict(os.environ if environ is None else environ)

    if args.server_url:
        env[CONSTANTS._ENV_SERVER_URL] = args.server_url
    if args.debug:
        env[CONSTANTS._ENV_DEBUG] = "true"
    if args.timeout is not None:
        env[CONSTANTS._ENV_TIMEOUT] = str(args.timeout)
    if args.audit_log:
        env[CONSTANTS._ENV_AUDIT_LOG] = args.audit_log

    return ServerConfig.from_env(env)



def render(command: str, value: typing.Any) -> typing.Any:
    if value is None:
        return None
    if command == "summary":
        return value.to_dict()
    if command == "packages":
        return [package.to_dict() for package in value]
    return value.isoformat()



def main(argv: typing.Optional[typing.Sequence[str]] = None, manager: typing.Optional[ApplicationManager] = None) -> int:

    args = build_parser().parse_args(argv)

    if manager is None:
        try:
            config = build_config(args)
        except ConfigurationError as e:
            print(f"Configuration error: {e.detail}", file=sys.stderr)
            return 2

        manager = ApplicationManager(args.application_id, config)

    if args.command == "summary":
        value = manager.get_application_summary()
    elif args.command == "packages":
        value = manager.get_packages()
    else:
        value = manager.get_timestamp()

    print(json.dumps(render(args.command, value), indent=2, ensure_ascii=False))

    return 0 if value is not None else 1



if __name__ == "__main__":
    sys.exit(main())
