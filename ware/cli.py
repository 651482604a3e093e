#!/usr/bin/env python3
import argparse
import sys
from pathlib import Path
from ware import ui
from ware.config import CHANNELS, WareConfig
from ware.dispatcher import Dispatcher
from ware.display_managers import DisplayManagerControl
from ware.errors import WareError
from ware.installers import (
    ChannelInstaller,
    InstallContext,
    RemoteScriptInstaller,
    available_targets,
    get_installer,
    run_installer,
)
from ware.logger import get_logger
from ware.models import Action, Backend, Outcome, PackageRequest
from ware.power import PROFILES, PowerManager
from ware.system import SystemMaintenance, collect_status, print_status


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description='SkywareOS Package Manager',
        prog='ware'
    )
    parser.add_argument('--json', action='store_true',
                        help='Suppress the banner header (must precede the command)')
    parser.add_argument('--no-spinner', action='store_true', help='Disable the progress spinner')
    parser.add_argument('--verbose', action='store_true', help='Print backend commands as they run')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    subparsers.add_parser('status', help='Show system status')

    install_parser = subparsers.add_parser('install', help='Install packages')
    install_parser.add_argument('packages', nargs='+', help='Packages to install')

    remove_parser = subparsers.add_parser('remove', help='Remove packages')
    remove_parser.add_argument('packages', nargs='+', help='Packages to remove')

    subparsers.add_parser('update', help='Update packages from every backend')

    search_parser = subparsers.add_parser('search', help='Search for packages')
    search_parser.add_argument('query', help='Search query')

    info_parser = subparsers.add_parser('info', help='Show package details')
    info_parser.add_argument('package', help='Package name')

    subparsers.add_parser('list', help='List installed packages')
    subparsers.add_parser('doctor', help='Check package databases and firewall')
    subparsers.add_parser('clean', help='Clean package caches')
    subparsers.add_parser('autoremove', help='Remove orphaned packages')
    subparsers.add_parser('sync', help='Rank and save the fastest mirrors')
    subparsers.add_parser('interactive', help='Prompt for a package and install it')

    power_parser = subparsers.add_parser('power', help='Apply or show power profiles')
    power_parser.add_argument('profile', nargs='?', choices=list(PROFILES) + ['status'],
                              help='Power profile')

    dm_parser = subparsers.add_parser('dm', help='Manage the display manager')
    dm_parser.add_argument('dm_action', choices=['list', 'status', 'switch'], help='Action')
    dm_parser.add_argument('name', nargs='?', help='Display manager to switch to')

    setup_parser = subparsers.add_parser('setup', help='Set up an environment')
    setup_parser.add_argument('target', help=f"One of: {', '.join(available_targets())}")
    setup_parser.add_argument('--sha256', help='Expected SHA-256 of a downloaded installer script')

    subparsers.add_parser('upgrade', help='Re-run the latest installer of the current channel')

    switch_parser = subparsers.add_parser('switch', help='Switch to another release channel')
    switch_parser.add_argument('channel', choices=list(CHANNELS), help='Channel to switch to')

    log_parser = subparsers.add_parser('log', help='Show the ware action log')
    log_parser.add_argument('-n', '--lines', type=int, default=20, help='Number of lines')

    return parser.parse_args(argv)


def build_config(args) -> WareConfig:
    return WareConfig.from_env(
        json_mode=args.json,
        spinner=False if args.no_spinner else None,
        verbose=args.verbose,
    )


def _exit_code(entries):
    return 0 if entries and all(e.outcome is Outcome.SUCCESS for e in entries) else 1


def cmd_install(args, dispatcher, config):
    ui.header(config.json_mode)
    return _exit_code(dispatcher.install(args.packages))


def cmd_remove(args, dispatcher, config):
    ui.header(config.json_mode)
    return _exit_code(dispatcher.remove(args.packages))


def cmd_interactive(args, dispatcher, config):
    ui.header(config.json_mode)
    return _exit_code(dispatcher.interactive_install())


def cmd_search(args, dispatcher, config):
    ui.header(config.json_mode)
    entry = dispatcher.search(args.query)
    return 0 if entry.outcome is Outcome.SUCCESS else 1


def cmd_info(args, dispatcher, config):
    ui.header(config.json_mode)
    entry = dispatcher.resolve_and_act(PackageRequest(args.package, Action.INFO))
    return 0 if entry.outcome is Outcome.SUCCESS else 1


def cmd_list(args, dispatcher, config):
    ui.header(config.json_mode)
    for label, packages in dispatcher.list_installed().items():
        ui.print_installed(label, packages)
    return 0


def cmd_status(args, dispatcher, config):
    ui.header(config.json_mode)
    print_status(collect_status(config))
    return 0


def cmd_update(args, dispatcher, config):
    ui.header(config.json_mode)
    return 0 if SystemMaintenance(config, dispatcher, dispatcher.action_log).update() else 1


def cmd_doctor(args, dispatcher, config):
    ui.header(config.json_mode)
    return 0 if SystemMaintenance(config, dispatcher, dispatcher.action_log).doctor() else 1


def cmd_clean(args, dispatcher, config):
    return 0 if SystemMaintenance(config, dispatcher, dispatcher.action_log).clean() else 1


def cmd_autoremove(args, dispatcher, config):
    return 0 if SystemMaintenance(config, dispatcher, dispatcher.action_log).autoremove() else 1


def cmd_sync(args, dispatcher, config):
    return 0 if SystemMaintenance(config, dispatcher, dispatcher.action_log).sync_mirrors() else 1


def cmd_power(args, dispatcher, config):
    manager = PowerManager(config, dispatcher.adapter_for(Backend.SYSTEM))
    if args.profile == 'status':
        return 0 if manager.status() is not None else 1
    if args.profile is None:
        ui.warn("Usage: ware power <balanced|performance|battery|status>")
        return 2
    return 0 if manager.apply(args.profile) else 1


def cmd_dm(args, dispatcher, config):
    control = DisplayManagerControl(config)
    if args.dm_action == 'list':
        control.list()
        return 0
    if args.dm_action == 'status':
        return 0 if control.status() is not None else 1
    if not args.name:
        ui.warn("Usage: ware dm switch <name>")
        return 2
    return 0 if control.switch(args.name) else 1


def _context(dispatcher, config):
    return InstallContext(config=config, dispatcher=dispatcher,
                          action_log=dispatcher.action_log, home=Path.home())


def cmd_setup(args, dispatcher, config):
    provider = get_installer(args.target)
    if provider is None:
        ui.error("Unknown setup target")
        ui.hint(f"Available: {', '.join(available_targets())}")
        return 2

    if args.sha256:
        if not isinstance(provider, RemoteScriptInstaller):
            ui.error(f"{args.target} does not download an installer script")
            return 2
        provider.checksum = args.sha256

    ui.header(config.json_mode)
    return 0 if run_installer(provider, _context(dispatcher, config)) else 1


def cmd_upgrade(args, dispatcher, config):
    ui.header(config.json_mode)
    try:
        channel = config.channel_info()
    except KeyError as e:
        ui.error(str(e.args[0]))
        return 1
    print(f"Updating and running latest Skyware {channel.name} installer...")
    return 0 if run_installer(ChannelInstaller(channel), _context(dispatcher, config)) else 1


def cmd_switch(args, dispatcher, config):
    ui.header(config.json_mode)
    channel = config.channel_info(args.channel)
    print(f"Switching to the {channel.name} channel...")
    return 0 if run_installer(ChannelInstaller(channel), _context(dispatcher, config)) else 1


def cmd_log(args, dispatcher, config):
    print(dispatcher.action_log.read_log_file(args.lines), end='')
    return 0


COMMANDS = {
    'status': cmd_status,
    'install': cmd_install,
    'remove': cmd_remove,
    'update': cmd_update,
    'search': cmd_search,
    'info': cmd_info,
    'list': cmd_list,
    'doctor': cmd_doctor,
    'clean': cmd_clean,
    'autoremove': cmd_autoremove,
    'sync': cmd_sync,
    'interactive': cmd_interactive,
    'power': cmd_power,
    'dm': cmd_dm,
    'setup': cmd_setup,
    'upgrade': cmd_upgrade,
    'switch': cmd_switch,
    'log': cmd_log,
}


def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)

    if not args.command:
        print("Error: No command specified. Use --help for usage.")
        return 1

    config = build_config(args)
    action_log = get_logger(config.log_file, verbose=config.verbose)
    dispatcher = Dispatcher(config, action_log=action_log)

    try:
        return COMMANDS[args.command](args, dispatcher, config)
    except WareError as e:
        ui.error(str(e))
        action_log.log_error(f"{args.command} failed", e)
        return 1
    except KeyboardInterrupt:
        print()
        ui.error("Interrupted")
        return 130


if __name__ == '__main__':
    sys.exit(main())
