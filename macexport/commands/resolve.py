import sys

from rich.table import Table

from macexport.commands.common import create_store, effective_settings
from macexport.logger import get_console
from macexport.src.archive.archive_reader import read_archive
from macexport.src.core.errors import ExportError
from macexport.src.core.models import ExportMethod, ResolvedMacSigningGroup
from macexport.src.core.resolver import ResolvedGroup, resolve_export
from macexport.src.export.export_options import (
    build_export_options,
    write_custom_export_options,
    write_export_options,
)
from macexport.src.inventory.inventory import load_inventory

DEFAULT_EXPORT_METHOD = "development"


def print_signing_group(console, group: ResolvedGroup) -> None:
    """Print the selected certificate(s) and bundle ID to profile mapping."""
    console.print("\n[bold blue]Selected code signing group:[/]")
    console.print(f"[cyan]Certificate:[/] {group.certificate.common_name}")
    if isinstance(group, ResolvedMacSigningGroup):
        console.print(
            f"[cyan]Installer certificate:[/] {group.installer_certificate.common_name}"
        )

    table = Table(title="Provisioning profiles")
    table.add_column("Bundle ID")
    table.add_column("Profile")
    table.add_column("UUID")
    table.add_column("Type")
    signing_group = group.group if isinstance(group, ResolvedMacSigningGroup) else group
    for bundle_id in sorted(signing_group.bundle_ids):
        profile = signing_group.profile_for(bundle_id)
        table.add_row(
            bundle_id, profile.name, profile.uuid, profile.distribution_type.value
        )
    console.print(table)


def main(args) -> int:
    console = get_console()

    try:
        settings = effective_settings(args)
        export_method = ExportMethod.parse(settings.export_method or DEFAULT_EXPORT_METHOD)
    except ValueError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    console.print("\n[bold blue]Export Configuration:[/]")
    console.print(f"[cyan]Archive:[/] {args.archive_path}")
    console.print(f"[cyan]Export method:[/] {export_method.value}")
    console.print(f"[cyan]Export options:[/] {args.output}")

    if args.export_options_plist_content:
        console.print("[blue]Custom export options content provided[/]")
        try:
            write_custom_export_options(args.output, args.export_options_plist_content)
        except (ValueError, OSError) as e:
            console.print(f"[red]Error:[/] {e}")
            return 1
        return 0

    if export_method == ExportMethod.NONE:
        console.print("Exporting a copy of the application without re-signing...")
        console.print("[green]No code signing group required[/]")
        return 0

    try:
        archive = read_archive(args.archive_path)
        console.print(f"[cyan]Archive signing identity:[/] {archive.signing_identity}")

        store = create_store(settings)
        group = resolve_export(archive, export_method, lambda: load_inventory(store))
    except ExportError as e:
        console.print(f"\n[red]Error during resolution:[/] {e}")
        return 1

    if group is not None:
        print_signing_group(console, group)

    options = build_export_options(export_method, group)
    try:
        write_export_options(args.output, options)
    except OSError as e:
        console.print(f"[red]Failed to write export options:[/] {e}")
        return 1
    return 0


def run_resolve_command(args):
    """Entry point for the resolve command from CLI"""
    return main(args)


# For direct script execution - route through the CLI
if __name__ == "__main__":
    from macexport.cli import main as cli_main

    sys.exit(cli_main())
