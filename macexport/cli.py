import argparse
import sys
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme
from rich_argparse import RichHelpFormatter
from macexport.arguments import (
    add_archive_argument,
    add_resolve_arguments,
    add_store_arguments,
)
from macexport.src.constants.cli_constants import (
    __version__,
    get_banner_text,
    APP_DESCRIPTION,
    APP_NAME,
)


class MacExportHelpFormatter(RichHelpFormatter):
    """Custom formatter for the macexport CLI that enhances the output with rich styling."""

    def __init__(self, prog):
        super().__init__(prog, max_help_position=30, width=100)
        self.console = Console(
            theme=Theme(
                {
                    "command": "bold cyan",
                    "argument": "green",
                    "option": "yellow",
                    "version": "blue",
                    "title": "bold magenta",
                }
            )
        )

    def start_section(self, heading):
        # Make section headings more prominent
        heading_text = Text(heading, style="title")
        super().start_section(str(heading_text))


def display_banner():
    """Display a stylish banner for macexport."""
    console = Console()
    banner = get_banner_text()

    version_info = Text(f"v{__version__}", style="version")
    tagline = Text(APP_DESCRIPTION, style="italic")

    panel = Panel.fit(
        Text.assemble(banner, "\n", tagline, "\n", version_info),
        border_style="green",
        padding=(1, 2),
    )
    console.print(panel)


def build_parser():
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=f"macexport: {APP_DESCRIPTION}",
        formatter_class=MacExportHelpFormatter,
        add_help=True,
    )

    parser.add_argument(
        "--version", action="version", version=f"macexport {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command")

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Resolve the signing group and write export options",
        formatter_class=MacExportHelpFormatter,
        description="Pick the certificate and provisioning profiles to re-sign an archive with.",
    )
    add_resolve_arguments(resolve_parser)

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Show the bundles of an archive",
        formatter_class=MacExportHelpFormatter,
        description="List every bundle ID, required entitlement and embedded profile of an archive.",
    )
    add_archive_argument(inspect_parser)
    inspect_parser.add_argument(
        "--verbose", action="store_true", default=None, help="Print debug output"
    )

    inventory_parser = subparsers.add_parser(
        "inventory",
        help="Show installed certificates and provisioning profiles",
        formatter_class=MacExportHelpFormatter,
        description="List the signing certificates and provisioning profiles usable for export.",
    )
    add_store_arguments(inventory_parser)

    return parser


def main(argv=None):
    load_dotenv()

    args_list = sys.argv[1:] if argv is None else argv
    # Display the banner before the help text
    if not args_list or "-h" in args_list or "--help" in args_list:
        display_banner()

    parser = build_parser()
    args = parser.parse_args(args_list)

    if args.command == "resolve":
        from macexport.commands.resolve import run_resolve_command

        return run_resolve_command(args)
    elif args.command == "inspect":
        from macexport.commands.inspect import run_inspect_command

        return run_inspect_command(args)
    elif args.command == "inventory":
        from macexport.commands.inspect import run_inventory_command

        return run_inventory_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
