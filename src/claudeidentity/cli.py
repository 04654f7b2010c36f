"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TextIO

from .config import AppConfig, load_config, save_config
from .coordinator import LaunchCoordinator, build_coordinator
from .errors import ExitCode, IdentityManagerError, user_facing_error
from .launcher.terminals import TerminalApp, terminal_choices
from .logging import configure_logging, default_log_path, normalize_level

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")

CoordinatorFactory = Callable[[AppConfig, argparse.Namespace], LaunchCoordinator]


def _log_level_type(value: str) -> str:
    normalized = normalize_level(value)
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def _terminal_type(value: str) -> TerminalApp:
    normalized = value.strip().lower()
    for terminal in TerminalApp:
        if terminal.value.lower() == normalized:
            return terminal
    accepted = ", ".join(terminal_choices())
    raise argparse.ArgumentTypeError(f"terminal must be one of: {accepted}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claude-identity",
        description="Manage isolated claude configuration identities.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config.toml")
    parser.add_argument("--root", type=Path, default=None, help="Identities base directory")
    parser.add_argument("--log-level", type=_log_level_type, default=None)
    parser.add_argument("--log-file", type=Path, default=None)

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    list_parser = commands.add_parser("list", help="List identities")
    list_parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")

    create_parser = commands.add_parser("create", help="Create an identity")
    create_parser.add_argument("name")

    rename_parser = commands.add_parser("rename", help="Rename an identity")
    rename_parser.add_argument("old_name")
    rename_parser.add_argument("new_name")

    delete_parser = commands.add_parser("delete", help="Delete an identity and all its files")
    delete_parser.add_argument("name")
    delete_parser.add_argument("--yes", action="store_true", help="Confirm the deletion")

    launch_parser = commands.add_parser("launch", help="Launch claude with an identity")
    launch_parser.add_argument("name")
    launch_parser.add_argument("--dir", type=Path, default=None, help="Working directory")
    launch_parser.add_argument(
        "--terminal",
        type=_terminal_type,
        default=None,
        help=f"One of: {', '.join(terminal_choices())}",
    )

    commands.add_parser("terminals", help="Show supported terminals")

    set_terminal_parser = commands.add_parser("set-terminal", help="Store the preferred terminal")
    set_terminal_parser.add_argument("terminal", type=_terminal_type)

    commands.add_parser("doctor", help="Report executable and terminal availability")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def default_coordinator_factory(
    config: AppConfig, namespace: argparse.Namespace
) -> LaunchCoordinator:
    if namespace.root is not None:
        base_dir = namespace.root.expanduser()
    else:
        base_dir = config.identities_dir()
    return build_coordinator(base_dir, default_terminal=config.preferred_terminal)


def _cmd_list(coordinator: LaunchCoordinator, namespace: argparse.Namespace, out: TextIO) -> int:
    identities = coordinator.refresh()
    if namespace.json:
        print(json.dumps([item.to_dict() for item in identities], indent=2), file=out)
        return int(ExitCode.SUCCESS)
    if not identities:
        print(f"No identities in {coordinator.store.base_dir}", file=out)
        return int(ExitCode.SUCCESS)
    for identity in identities:
        created = identity.created_at.astimezone().strftime("%Y-%m-%d %H:%M")
        print(f"{identity.name}\t{created}\t{identity.directory}", file=out)
    return int(ExitCode.SUCCESS)


def _cmd_create(coordinator: LaunchCoordinator, namespace: argparse.Namespace, out: TextIO) -> int:
    identity = coordinator.create_identity(namespace.name)
    print(f"Created identity '{identity.name}' at {identity.directory}", file=out)
    return int(ExitCode.SUCCESS)


def _cmd_rename(coordinator: LaunchCoordinator, namespace: argparse.Namespace, out: TextIO) -> int:
    coordinator.refresh()
    identity = coordinator.rename_identity(namespace.old_name, namespace.new_name)
    print(f"Renamed identity '{namespace.old_name}' to '{identity.name}'", file=out)
    return int(ExitCode.SUCCESS)


def _cmd_delete(coordinator: LaunchCoordinator, namespace: argparse.Namespace, out: TextIO) -> int:
    if not namespace.yes:
        raise IdentityManagerError(
            f"Refusing to delete identity '{namespace.name}' without confirmation",
            code=ExitCode.INVALID_ARGS,
            hint="Re-run with --yes to remove the directory and everything in it.",
        )
    coordinator.refresh()
    coordinator.delete_identity(namespace.name)
    print(f"Deleted identity '{namespace.name}'", file=out)
    return int(ExitCode.SUCCESS)


def _resolve_launch_directory(namespace: argparse.Namespace, config: AppConfig) -> Path | None:
    if namespace.dir is not None:
        return namespace.dir.expanduser().resolve()
    if config.last_working_directory:
        remembered = Path(config.last_working_directory).expanduser()
        if remembered.is_dir():
            return remembered
    return None


def _cmd_launch(
    coordinator: LaunchCoordinator,
    namespace: argparse.Namespace,
    out: TextIO,
    *,
    config: AppConfig,
    config_path: Path | None,
) -> int:
    directory = _resolve_launch_directory(namespace, config)
    request = coordinator.launch(namespace.name, directory=directory, terminal=namespace.terminal)
    if namespace.dir is not None and directory is not None:
        config.last_working_directory = str(directory)
        save_config(config, config_path)
    print(f"Launched '{request.identity_name}' in {request.terminal.display_name}", file=out)
    return int(ExitCode.SUCCESS)


def _cmd_terminals(coordinator: LaunchCoordinator, config: AppConfig, out: TextIO) -> int:
    for terminal in TerminalApp:
        marker = "*" if terminal == config.preferred_terminal else " "
        status = "installed" if coordinator.launcher.is_installed(terminal) else "missing"
        print(f"{marker} {terminal.value}\t{terminal.display_name}\t{status}", file=out)
    return int(ExitCode.SUCCESS)


def _cmd_set_terminal(
    namespace: argparse.Namespace,
    out: TextIO,
    *,
    config: AppConfig,
    config_path: Path | None,
) -> int:
    config.preferred_terminal = namespace.terminal
    saved = save_config(config, config_path)
    print(f"Preferred terminal set to {namespace.terminal.display_name} ({saved})", file=out)
    return int(ExitCode.SUCCESS)


def _cmd_doctor(coordinator: LaunchCoordinator, out: TextIO) -> int:
    executable = coordinator.locator.locate()
    installed = coordinator.installed_terminals()
    print(f"identities: {coordinator.store.base_dir}", file=out)
    print(f"executable: {executable if executable is not None else 'not found'}", file=out)
    names = ", ".join(terminal.value for terminal in installed) or "none"
    print(f"terminals: {names}", file=out)
    if executable is None:
        return int(ExitCode.DEPENDENCY_MISSING)
    return int(ExitCode.SUCCESS)


def run_command(
    namespace: argparse.Namespace,
    *,
    config: AppConfig,
    coordinator_factory: CoordinatorFactory,
    out: TextIO,
) -> int:
    command = namespace.command or "list"
    if command == "set-terminal":
        return _cmd_set_terminal(namespace, out, config=config, config_path=namespace.config)

    coordinator = coordinator_factory(config, namespace)
    if command == "list":
        if namespace.command is None:
            namespace.json = False
        return _cmd_list(coordinator, namespace, out)
    if command == "create":
        return _cmd_create(coordinator, namespace, out)
    if command == "rename":
        return _cmd_rename(coordinator, namespace, out)
    if command == "delete":
        return _cmd_delete(coordinator, namespace, out)
    if command == "launch":
        return _cmd_launch(coordinator, namespace, out, config=config, config_path=namespace.config)
    if command == "terminals":
        return _cmd_terminals(coordinator, config, out)
    if command == "doctor":
        return _cmd_doctor(coordinator, out)
    raise IdentityManagerError(
        f"Unknown command: {command}",
        code=ExitCode.INVALID_ARGS,
        hint="Run with --help to see the available commands.",
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    coordinator_factory: CoordinatorFactory | None = None,
    stdout: TextIO | None = None,
) -> int:
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    config = load_config(namespace.config)
    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    logger = configure_logging(level=namespace.log_level or config.log_level, log_file=log_path)

    out = stdout or sys.stdout
    try:
        logger.debug("Running command=%s", namespace.command or "list")
        return run_command(
            namespace,
            config=config,
            coordinator_factory=coordinator_factory or default_coordinator_factory,
            out=out,
        )
    except IdentityManagerError as exc:
        logger.debug(
            "Handled IdentityManagerError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=True,
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        try:
            hint = f"Inspect logs: {log_path}"
            print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        except Exception:
            pass
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
