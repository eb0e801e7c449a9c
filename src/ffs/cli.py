#!/usr/bin/env python3
"""
ffs command line - drive the flat file storage backend by hand.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table

from ffs import __version__
from ffs.config import Settings
from ffs.errors import FFSError
from ffs.logging import configure_logging
from ffs.models import FORMAT_KEY, VDIInfo
from ffs.service import FlatFileStorage

console = Console()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def format_bytes(size: int) -> str:
    value = float(size)
    for unit in ["B", "KiB", "MiB", "GiB", "TiB"]:
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} PiB"


def _storage(args) -> FlatFileStorage:
    settings = Settings.load(Path(args.config) if args.config else None)
    return FlatFileStorage(settings)


def _device_config(args) -> Dict[str, str]:
    device_config = {"path": args.path}
    if args.format:
        device_config["format"] = args.format
    return device_config


def cmd_query(args) -> None:
    print(json.dumps(_storage(args).query(), indent=2))


def cmd_sr_attach(args) -> None:
    _storage(args).sr_attach(args.sr, _device_config(args))
    console.print(f"[green]✅ SR {args.sr} attached[/]")


def cmd_sr_create(args) -> None:
    _storage(args).sr_create(args.sr, _device_config(args))
    console.print(f"[green]✅ Configuration for SR {args.sr} is valid[/]")


def cmd_sr_detach(args) -> None:
    _storage(args).sr_detach(args.sr)
    console.print(f"[green]✅ SR {args.sr} detached[/]")


def cmd_sr_list(args) -> None:
    srs = _storage(args).sr_list()
    if not srs:
        console.print("[dim]No SRs attached.[/]")
        return
    for sr in srs:
        console.print(sr)


def cmd_sr_scan(args) -> None:
    vdis = _storage(args).sr_scan(args.sr)

    if args.json:
        print(json.dumps([vdi.model_dump() for vdi in vdis], indent=2))
        return

    if not vdis:
        console.print("[dim]No VDIs found.[/]")
        return

    table = Table(title=f"VDIs in {args.sr}", border_style="cyan")
    table.add_column("VDI", style="bold")
    table.add_column("Label")
    table.add_column("Format")
    table.add_column("Virtual size", justify="right")
    table.add_column("Utilisation", justify="right", style="dim")

    for vdi in sorted(vdis, key=lambda v: v.vdi):
        table.add_row(
            vdi.vdi,
            vdi.name_label,
            vdi.format_tag or "[yellow]unknown[/]",
            format_bytes(vdi.virtual_size),
            format_bytes(vdi.physical_utilisation),
        )
    console.print(table)


def cmd_vdi_create(args) -> None:
    sm_config = {FORMAT_KEY: args.format} if args.format else {}
    vdi_info = VDIInfo(
        name_label=args.label,
        name_description=args.description,
        virtual_size=args.size,
        sm_config=sm_config,
    )
    created = _storage(args).vdi_create(args.sr, vdi_info)
    console.print(f"[green]✅ Created VDI {created.vdi} ({created.format_tag})[/]")


def cmd_vdi_destroy(args) -> None:
    _storage(args).vdi_destroy(args.sr, args.vdi)
    console.print(f"[green]✅ Destroyed VDI {args.vdi}[/]")


def cmd_vdi_attach(args) -> None:
    attach_info = _storage(args).vdi_attach(args.sr, args.vdi, read_write=not args.read_only)
    console.print(f"[green]✅ {args.vdi} attached as {attach_info.params}[/]")


def cmd_vdi_detach(args) -> None:
    _storage(args).vdi_detach(args.sr, args.vdi)
    console.print(f"[green]✅ {args.vdi} detached[/]")


def cmd_vdi_activate(args) -> None:
    _storage(args).vdi_activate(args.sr, args.vdi)
    console.print(f"[green]✅ {args.vdi} activated[/]")


def cmd_vdi_deactivate(args) -> None:
    _storage(args).vdi_deactivate(args.sr, args.vdi)
    console.print(f"[green]✅ {args.vdi} deactivated[/]")


def cmd_vdi_info(args) -> None:
    info = _storage(args).vdi_image_info(args.sr, args.vdi)
    print(json.dumps(info.model_dump(), indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ffs", description="Flat File Storage repository")
    parser.add_argument("--version", action="version", version=f"ffs {__version__}")
    parser.add_argument("--config", "-c", help="Settings file (default: /etc/ffs.yaml)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level (default: WARNING)",
    )
    parser.add_argument("--json-logs", action="store_true", help="Log as JSON")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    query_parser = subparsers.add_parser("query", help="Describe this storage plugin")
    query_parser.set_defaults(func=cmd_query)

    for name, func, help_text in [
        ("sr-attach", cmd_sr_attach, "Attach an SR"),
        ("sr-create", cmd_sr_create, "Validate an SR configuration"),
    ]:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("sr", help="SR id")
        sub.add_argument("--path", "-p", required=True, help="Directory holding the VDIs")
        sub.add_argument("--format", "-f", help="Default VDI format (vhd or raw)")
        sub.set_defaults(func=func)

    sr_detach = subparsers.add_parser("sr-detach", help="Detach an SR")
    sr_detach.add_argument("sr", help="SR id")
    sr_detach.set_defaults(func=cmd_sr_detach)

    sr_list = subparsers.add_parser("sr-list", help="List attached SRs")
    sr_list.set_defaults(func=cmd_sr_list)

    sr_scan = subparsers.add_parser("sr-scan", help="List the VDIs in an SR")
    sr_scan.add_argument("sr", help="SR id")
    sr_scan.add_argument("--json", action="store_true", help="Output JSON")
    sr_scan.set_defaults(func=cmd_sr_scan)

    vdi_create = subparsers.add_parser("vdi-create", help="Create a VDI")
    vdi_create.add_argument("sr", help="SR id")
    vdi_create.add_argument("--label", "-l", default="", help="VDI name label")
    vdi_create.add_argument("--description", "-d", default="", help="VDI description")
    vdi_create.add_argument("--size", "-s", type=int, required=True, help="Virtual size in bytes")
    vdi_create.add_argument("--format", "-f", help="vhd or raw (default: the SR's)")
    vdi_create.set_defaults(func=cmd_vdi_create)

    for name, func, help_text in [
        ("vdi-destroy", cmd_vdi_destroy, "Destroy a VDI"),
        ("vdi-detach", cmd_vdi_detach, "Detach a VDI"),
        ("vdi-activate", cmd_vdi_activate, "Activate an attached VDI"),
        ("vdi-deactivate", cmd_vdi_deactivate, "Deactivate an attached VDI"),
        ("vdi-info", cmd_vdi_info, "Show image details of a VDI"),
    ]:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("sr", help="SR id")
        sub.add_argument("vdi", help="VDI filename")
        sub.set_defaults(func=func)

    vdi_attach = subparsers.add_parser("vdi-attach", help="Attach a VDI")
    vdi_attach.add_argument("sr", help="SR id")
    vdi_attach.add_argument("vdi", help="VDI filename")
    vdi_attach.add_argument("--read-only", action="store_true", help="Attach read-only")
    vdi_attach.set_defaults(func=cmd_vdi_attach)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level, json_output=args.json_logs)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(2)

    try:
        args.func(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/]")
        sys.exit(1)
    except (FFSError, OSError) as e:
        console.print(f"[red]❌ {e}[/]")
        sys.exit(1)


if __name__ == "__main__":
    main()
