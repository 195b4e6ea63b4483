from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable, Sequence, TypeVar

import pydantic

from ziaprovider.cli import ux
from ziaprovider.cli.runner import apply_resources, load_desired, plan_resources
from ziaprovider.config.settings import Settings, get_settings
from ziaprovider.core.errors import (
    ConfigurationError,
    ExitCode,
    NotFoundError,
    ZIAProviderError,
    format_error_message,
    main_with_error_handling,
)
from ziaprovider.logging import configure_logging
from ziaprovider.providers.base import NotFound, unwrap
from ziaprovider.providers.registry import list_resources
from ziaprovider.providers.zia import ZIAProvider

T = TypeVar("T")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ziaprovider", description="Zscaler Internet Access resources")
    parser.add_argument("--log-level", default=None, help="Log level (default: ZIA_LOG_LEVEL or INFO)")
    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default="json",
        help="Log output format",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("resources", help="List resource types and data sources")

    plan_parser = subparsers.add_parser("plan", help="Show what apply would change")
    plan_parser.add_argument("file", help="YAML file with desired resources")

    apply_parser = subparsers.add_parser("apply", help="Create or update desired resources")
    apply_parser.add_argument("file", help="YAML file with desired resources")

    import_parser = subparsers.add_parser("import", help="Read an existing object by id or name")
    import_parser.add_argument("type", help="Resource type, e.g. zia_rule_labels")
    import_parser.add_argument("id", help="Numeric id or name")

    delete_parser = subparsers.add_parser("delete", help="Delete an object")
    delete_parser.add_argument("type", help="Resource type")
    delete_parser.add_argument("id", help="Object id")

    data_parser = subparsers.add_parser("read-data", help="Evaluate a data source")
    data_parser.add_argument("type", help="Data source type")
    data_parser.add_argument("--id", default=None, help="Look up by id")
    data_parser.add_argument("--name", default=None, help="Look up by name")

    subparsers.add_parser("activate", help="Activate staged configuration changes")
    subparsers.add_parser("status", help="Show the activation status")

    return parser


def _load_settings() -> Settings:
    try:
        return get_settings()
    except pydantic.ValidationError as exc:
        raise ConfigurationError(
            "invalid provider settings",
            details={"errors": exc.error_count()},
        ) from exc


async def _with_provider(settings: Settings, action: Callable[[ZIAProvider], Awaitable[T]]) -> T:
    provider = ZIAProvider.from_settings(settings)
    try:
        return await action(provider)
    finally:
        await provider.aclose()


def _list_command() -> int:
    rows = [
        [spec.name, spec.kind.replace("_", " "), spec.description or ""]
        for spec in list_resources()
    ]
    ux.print_table("ZIA resources", ["Type", "Kind", "Description"], rows)
    return ExitCode.SUCCESS


def _plan_command(settings: Settings, path: str) -> int:
    desired = load_desired(path)
    results = asyncio.run(_with_provider(settings, lambda p: plan_resources(p, desired)))

    rows = []
    pending = 0
    for entry, plan in results:
        if not plan.has_changes:
            rows.append([entry.type, entry.id or (plan.metadata or {}).get("id", "-"), "no-op", ""])
            continue
        for change in plan.changes:
            pending += 1
            detail = change.details.get("attributes")
            if isinstance(detail, dict):
                detail = sorted(detail)
            rows.append(
                [
                    entry.type,
                    str(change.details.get("id") or entry.id or "-"),
                    change.action,
                    ", ".join(detail or []),
                ]
            )
    ux.print_table("Plan", ["Type", "ID", "Action", "Attributes"], rows)
    if pending:
        ux.info(f"{pending} change(s) pending")
    else:
        ux.success("No changes. Remote configuration matches the desired state.")
    return ExitCode.SUCCESS


def _apply_command(settings: Settings, path: str) -> int:
    desired = load_desired(path)
    outcomes = asyncio.run(_with_provider(settings, lambda p: apply_resources(p, desired)))

    removed = 0
    for outcome in outcomes:
        label = f"{outcome.type} {outcome.id or ''}".rstrip()
        if outcome.action == "removed":
            removed += 1
            ux.warning(f"{label}: no longer exists, dropped")
        else:
            ux.success(f"{label}: {outcome.action}")
    return ExitCode.PROVIDER_ERROR if removed else ExitCode.SUCCESS


def _import_command(settings: Settings, type_name: str, identifier: str) -> int:
    async def _run(provider: ZIAProvider) -> Any:
        return await provider.resource(type_name).import_state(identifier)

    state = asyncio.run(_with_provider(settings, _run))
    ux.print_json(state.to_dict())
    return ExitCode.SUCCESS


def _delete_command(settings: Settings, type_name: str, identifier: str) -> int:
    async def _run(provider: ZIAProvider) -> None:
        adapter = provider.resource(type_name)
        if isinstance(await adapter.read(identifier), NotFound):
            raise NotFoundError(
                f"{type_name} {identifier!r} not found",
                status_code=404,
                details={"resource_type": type_name, "id": identifier},
            )
        await adapter.delete(identifier)

    asyncio.run(_with_provider(settings, _run))
    ux.success(f"Deleted {type_name} {identifier}")
    return ExitCode.SUCCESS


def _read_data_command(settings: Settings, type_name: str, identifier: str | None, name: str | None) -> int:
    query = {key: value for key, value in (("id", identifier), ("name", name)) if value}

    async def _run(provider: ZIAProvider) -> Any:
        return await provider.data_source(type_name).read(query)

    state = asyncio.run(_with_provider(settings, _run))
    ux.print_json(state.to_dict())
    return ExitCode.SUCCESS


def _activate_command(settings: Settings) -> int:
    async def _run(provider: ZIAProvider) -> Any:
        return await provider.activation.activate(source="cli")

    result = asyncio.run(_with_provider(settings, _run))
    ux.success(f"Activation succeeded: {result.status}")
    return ExitCode.SUCCESS


def _status_command(settings: Settings) -> int:
    async def _run(provider: ZIAProvider) -> Any:
        return unwrap(await provider.resource("zia_activation_status").read("activation"))

    state = asyncio.run(_with_provider(settings, _run))
    ux.header("ZIA activation")
    ux.info(f"Activation status: {state.attributes['status'] if state else 'unknown'}")
    return ExitCode.SUCCESS


@main_with_error_handling()
def run(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "resources":
        return _list_command()

    settings = _load_settings()
    configure_logging(
        args.log_level or settings.log_level or logging.INFO,
        json=args.log_format == "json",
    )

    try:
        if args.command == "plan":
            return _plan_command(settings, args.file)
        if args.command == "apply":
            return _apply_command(settings, args.file)
        if args.command == "import":
            return _import_command(settings, args.type, args.id)
        if args.command == "delete":
            return _delete_command(settings, args.type, args.id)
        if args.command == "read-data":
            return _read_data_command(settings, args.type, args.id, args.name)
        if args.command == "activate":
            return _activate_command(settings)
        if args.command == "status":
            return _status_command(settings)
    except ZIAProviderError as exc:
        ux.error(format_error_message(exc))
        for problem in getattr(exc, "problems", []):
            ux.error(f"  {problem}")
        raise

    parser.print_help()
    return 1


def main(argv: Sequence[str] | None = None) -> None:
    sys.exit(run(argv))


if __name__ == "__main__":  # pragma: no cover - exercised via module entrypoint
    main()
