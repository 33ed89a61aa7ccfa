#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import sys
import argparse
import json
import asyncio
import logging
from signal import SIGINT, SIGTERM

from busch_radio.internal_types import *

from busch_radio import (
    __version__ as pkg_version,
    RadioAgent,
    RadioDiscoveryClient,
    AttributeStore,
    ConfigContext,
    DEFAULT_DISCOVERY_WAIT_TIME,
    DEFAULT_UDP_PORT,
    DEFAULT_UDP_LISTEN_PORT,
  )

class CmdExitError(RuntimeError):
    exit_code: int

    def __init__(self, exit_code: int, msg: Optional[str]=None):
        if msg is None:
            msg = f"Command exited with return code {exit_code}"
        super().__init__(msg)
        self.exit_code = exit_code

class ArgparseExitError(CmdExitError):
    pass

class NoExitArgumentParser(argparse.ArgumentParser):
    def exit(self, status=0, message=None):
        if message:
            self._print_message(message, sys.stderr)
        raise ArgparseExitError(status, message)

def parse_attribute_assignments(assignments: List[str]) -> Dict[str, str]:
    """Parses a list of "<name>=<value>" strings."""
    result: Dict[str, str] = {}
    for assignment in assignments:
        if not '=' in assignment:
            raise CmdExitError(1, f"Invalid attribute assignment {assignment!r}; expected <name>=<value>")
        name, value = assignment.split('=', 1)
        result[name.strip()] = value
    return result

class CommandHandler:
    _argv: Optional[Sequence[str]]
    _parser: argparse.ArgumentParser
    _args: argparse.Namespace
    _provide_traceback: bool = True

    def __init__(self, argv: Optional[Sequence[str]]=None):
        self._argv = argv

    async def cmd_bare(self) -> int:
        print("A command is required", file=sys.stderr)
        return 1

    def _make_agent(self) -> RadioAgent:
        name: Optional[str] = self._args.name
        host: Optional[str] = self._args.host
        attributes = AttributeStore()
        config_file: Optional[str] = self._args.config
        if not config_file is None:
            cfg = ConfigContext().load_file(config_file)
            if name is None and cfg.name != '':
                name = cfg.name
            if host is None:
                host = cfg.host
            for attr_name, attr_value in cfg.attributes.items():
                attributes.set(attr_name, attr_value)
        for attr_name, attr_value in parse_attribute_assignments(self._args.attributes).items():
            attributes.set(attr_name, attr_value)
        if name is None:
            name = 'busch-radio'
        return RadioAgent(name, host=host, attributes=attributes)

    async def cmd_run(self) -> int:
        def on_change(changed: Dict[str, Optional[Union[str, int]]]) -> None:
            print(json.dumps(changed, sort_keys=True))
            sys.stdout.flush()

        agent = self._make_agent()
        agent.readings.add_listener(on_change)
        loop = asyncio.get_running_loop()
        for signal in (SIGINT, SIGTERM):
            loop.add_signal_handler(signal, agent.stop)
        try:
            async with agent as a:
                await a.wait_for_done()
        finally:
            for signal in (SIGINT, SIGTERM):
                loop.remove_signal_handler(signal)
        return 0

    async def cmd_discover(self) -> int:
        response_wait_time: float = self._args.wait_time
        max_responses: int = self._args.max_responses
        broadcast_addresses: Optional[List[str]] = self._args.broadcast_addresses
        if not broadcast_addresses is None and len(broadcast_addresses) == 0:
            broadcast_addresses = None
        async with RadioDiscoveryClient(
                response_wait_time=response_wait_time,
                max_responses=max_responses,
                listen_port=self._args.listen_port,
                port=self._args.port,
                broadcast_addresses=broadcast_addresses,
              ) as client:
            async for info in client:
                summary: JsonableDict = {
                    "src_addr": f"{info.src_addr[0]}:{info.src_addr[1]}",
                    "ip": info.ip,
                    "name": info.name,
                    "app_version": info.app_version,
                    "fields": dict(info.datagram.fields),
                    "monotonic_time": info.monotonic_time,
                    "utc_time": info.utc_time.isoformat(),
                }
                print(json.dumps(summary, indent=2, sort_keys=True))
                sys.stdout.flush()
        return 0

    async def cmd_version(self) -> int:
        print(pkg_version)
        return 0

    async def arun(self) -> int:
        """Run the busch-radio command-line tool with provided arguments

        Args:
            argv (Optional[Sequence[str]], optional):
                A list of commandline arguments (NOT including the program as argv[0]!),
                or None to use sys.argv[1:]. Defaults to None.

        Returns:
            int: The exit code that would be returned if this were run as a standalone command.
        """
        parser = NoExitArgumentParser(description="Mirror the state of a Busch-Radio iNet appliance.")

        # ======================= Main command

        self._parser = parser
        parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                            help='Display detailed exception information')
        parser.add_argument('--log-level', dest='log_level', default='warning',
                            choices=['debug', 'info', 'warning', 'error', 'critical'],
                            help='''The logging level to use. Default: warning''')
        parser.set_defaults(func=self.cmd_bare)

        subparsers = parser.add_subparsers(
                            title='Commands',
                            description='Valid commands',
                            help='Additional help available with "<command-name> -h"')

        # ======================= run

        parser_run = subparsers.add_parser('run', description="Run an agent for one radio and print reading changes as JSON")
        parser_run.add_argument('host', nargs='?', default=None,
                            help='''The host name or IP address of the radio. Default: found by broadcast discovery''')
        parser_run.add_argument('--name', default=None,
                            help='''The name of the agent, also sent as identity token. Default: "busch-radio"''')
        parser_run.add_argument('-c', '--config', default=None,
                            help='''A JSON configuration file with name, host and attributes.''')
        parser_run.add_argument('-A', '--attribute', dest="attributes", action='append', default=[],
                            help='''A <name>=<value> attribute (e.g., timer=30). May be repeated.''')
        parser_run.set_defaults(func=self.cmd_run)

        # ======================= discover

        parser_discover = subparsers.add_parser('discover', description="Search for radios on the local network")
        parser_discover.add_argument('--wait-time', type=float, default=DEFAULT_DISCOVERY_WAIT_TIME,
                            help=f'''The amount of time to wait for replies, in seconds. Default: {DEFAULT_DISCOVERY_WAIT_TIME}''')
        parser_discover.add_argument('--max-responses', type=int, default=0,
                            help='The maximum number of replies to return. Default: 0 (no limit)')
        parser_discover.add_argument('--listen-port', type=int, default=DEFAULT_UDP_LISTEN_PORT,
                            help=f'The local UDP port replies are sent to. Default: {DEFAULT_UDP_LISTEN_PORT}')
        parser_discover.add_argument('--port', type=int, default=DEFAULT_UDP_PORT,
                            help=f'The UDP port the radios listen on. Default: {DEFAULT_UDP_PORT}')
        parser_discover.add_argument('-b', '--broadcast', dest="broadcast_addresses", action='append', default=[],
                            help='''A broadcast address to send the request to. May be repeated. Default: all local interfaces''')
        parser_discover.set_defaults(func=self.cmd_discover)

        # ======================= version

        parser_version = subparsers.add_parser('version',
                                description='''Display version information.''')
        parser_version.set_defaults(func=self.cmd_version)

        # =========================================================

        try:
            args = parser.parse_args(self._argv)
        except ArgparseExitError as ex:
            return ex.exit_code
        traceback: bool = args.traceback
        self._provide_traceback = traceback

        try:
            logging.basicConfig(
                level=logging.getLevelName(args.log_level.upper()),
            )
            self._args = args
            func: Callable[[], Awaitable[int]] = args.func
            logging.debug(f"Running command {func.__name__}, tb = {traceback}")
            rc = await func()
            logging.debug(f"Command {func.__name__} returned {rc}")
        except Exception as ex:
            if isinstance(ex, CmdExitError):
                rc = ex.exit_code
            else:
                rc = 1
            if rc != 0:
                if traceback:
                    raise
            print(f"busch-radio: error: {ex}", file=sys.stderr)
        except BaseException as ex:
            print(f"busch-radio: Unhandled exception: {ex}", file=sys.stderr)
            raise

        return rc

    def run(self) -> int:
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            rc = loop.run_until_complete(self.arun())
        finally:
            loop.close()
        return rc

def run(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = CommandHandler(argv).run()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

async def arun(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = await CommandHandler(argv).arun()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

# allow running with "python3 -m", or as a standalone script
if __name__ == "__main__":
    sys.exit(run())
