from pathlib import Path

from macexport.src.core.models import ExportMethod


def add_archive_argument(parser):
    parser.add_argument(
        "archive_path", type=Path, help="Path to the .xcarchive to export"
    )


def add_store_arguments(parser):
    """Arguments selecting where installed certificates and profiles are read from."""
    parser.add_argument(
        "--profiles-dir",
        type=Path,
        action="append",
        dest="profiles_dirs",
        help="Directory containing provisioning profiles, may be repeated [default: system locations]",
    )

    parser.add_argument(
        "--keychain",
        type=str,
        help="Keychain to read signing identities from [default: search list]",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Print installed certificates, profiles and signing groups [default: disabled]",
    )


def add_resolve_arguments(parser):
    """Add all resolve-related arguments to an existing parser."""
    add_archive_argument(parser)

    parser.add_argument(
        "--export-method",
        choices=[m.value for m in ExportMethod],
        help="Distribution channel to export for [default: from config, else development]",
    )

    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=Path("export_options.plist"),
        help="Where to write the export options plist [default: ./export_options.plist]",
    )

    parser.add_argument(
        "--export-options-plist-content",
        type=str,
        help="Use this export options plist instead of resolving one [default: resolve]",
    )

    add_store_arguments(parser)
