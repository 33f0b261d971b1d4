import sys

from rich.table import Table

from macexport.commands.common import create_store, effective_settings
from macexport.logger import get_console
from macexport.src.archive.archive_reader import read_archive
from macexport.src.constants.capability_mappings import capability_names
from macexport.src.core.errors import ExportError
from macexport.src.inventory.inventory import load_inventory


def print_archive(console, archive) -> None:
    table = Table(title=f"Bundles in {archive.path.name}")
    table.add_column("Bundle ID")
    table.add_column("Primary")
    table.add_column("Capabilities")
    table.add_column("Embedded profile")
    for requirement in archive.requirements:
        table.add_row(
            requirement.bundle_id,
            "yes" if requirement.is_primary else "",
            ", ".join(capability_names(requirement.entitlements)) or "-",
            requirement.embedded_profile_id or "-",
        )
    console.print(table)
    console.print(f"[cyan]Signing identity:[/] {archive.signing_identity or '-'}")
    console.print(f"[cyan]Team:[/] {archive.team_id or '-'}")


def print_inventory(console, inventory) -> None:
    table = Table(title="Signing certificates")
    table.add_column("Common Name")
    table.add_column("Kind")
    table.add_column("Team")
    table.add_column("Serial Number")
    table.add_column("Expires")
    for cert in inventory.certificates + inventory.installer_certificates:
        table.add_row(
            cert.common_name,
            cert.kind.value,
            cert.team_id,
            cert.serial_number,
            f"{cert.not_after:%Y-%m-%d}",
        )
    console.print(table)

    table = Table(title="Provisioning profiles")
    table.add_column("Name")
    table.add_column("UUID")
    table.add_column("Team")
    table.add_column("Bundle ID")
    table.add_column("Type")
    table.add_column("Certificates")
    for profile in inventory.profiles:
        table.add_row(
            profile.name,
            profile.uuid,
            profile.team_id,
            profile.bundle_id_pattern,
            profile.distribution_type.value,
            str(len(profile.certificate_fingerprints)),
        )
    console.print(table)


def run_inspect_command(args) -> int:
    """Entry point for the inspect command from CLI"""
    console = get_console()
    try:
        effective_settings(args)
        archive = read_archive(args.archive_path)
    except (ExportError, ValueError) as e:
        console.print(f"[red]Error:[/] {e}")
        return 1
    print_archive(console, archive)
    return 0


def run_inventory_command(args) -> int:
    """Entry point for the inventory command from CLI"""
    console = get_console()
    try:
        store = create_store(effective_settings(args))
        inventory = load_inventory(store)
    except (ExportError, ValueError) as e:
        console.print(f"[red]Error:[/] {e}")
        return 1
    print_inventory(console, inventory)
    return 0


# For direct script execution - route through the CLI
if __name__ == "__main__":
    from macexport.cli import main as cli_main

    sys.exit(cli_main())
