from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Tuple, Union

from macexport.logger import get_console, is_verbose, log_debug
from macexport.src.core.group_construction import create_selectable_groups
from macexport.src.core.group_filters import (
    create_entitlements_filter,
    create_export_method_filter,
    filter_groups,
)
from macexport.src.core.group_selection import (
    create_mac_signing_group,
    select_signing_group,
)
from macexport.src.core.models import (
    ArchiveDescriptor,
    CertificateInfo,
    ExportMethod,
    ResolvedMacSigningGroup,
    SelectableSigningGroup,
    SigningInventory,
)

ResolvedGroup = Union[SelectableSigningGroup, ResolvedMacSigningGroup]


def _valid_certificates(
    certificates: Iterable[CertificateInfo], now: datetime
) -> Tuple[CertificateInfo, ...]:
    valid = []
    for certificate in certificates:
        if certificate.is_valid_at(now):
            valid.append(certificate)
        else:
            log_debug(f"Ignoring certificate outside its validity window: {certificate}")
    return tuple(valid)


def usable_inventory(inventory: SigningInventory, now: datetime) -> SigningInventory:
    """Restrict an inventory to certificates and profiles usable at the given time"""
    return SigningInventory(
        certificates=_valid_certificates(inventory.certificates, now),
        installer_certificates=_valid_certificates(inventory.installer_certificates, now),
        profiles=tuple(p for p in inventory.profiles if not p.is_expired_at(now)),
    )


def requires_signing_group(archive: ArchiveDescriptor, export_method: ExportMethod) -> bool:
    """Decide whether the export re-signs the app at all.

    An unsigned copy never needs a group. Archives built without an embedded
    provisioning profile are exported without re-signing, except for
    Developer ID exports which always need a profile.
    """
    if export_method == ExportMethod.NONE:
        return False
    if archive.has_embedded_profile:
        return True
    return export_method == ExportMethod.DEVELOPER_ID


def _log_groups(title: str, groups) -> None:
    if not is_verbose():
        return
    log_debug(title)
    for group in groups:
        log_debug(f"  {group.certificate.common_name}")
        for bundle_id, profiles in group.bundle_id_profiles.items():
            log_debug(f"    {bundle_id}: {', '.join(p.name for p in profiles)}")


def resolve_signing_group(
    archive: ArchiveDescriptor,
    inventory: SigningInventory,
    export_method: ExportMethod,
    now: Optional[datetime] = None,
) -> Optional[ResolvedGroup]:
    """Resolve the certificate and profiles to re-sign the archive with.

    Returns None when the export does not re-sign (see requires_signing_group),
    a ResolvedMacSigningGroup for App Store exports, and a
    SelectableSigningGroup otherwise. Raises NoSigningGroupFound or
    NoInstallerCertificateFound when nothing installed fits.
    """
    if not requires_signing_group(archive, export_method):
        return None

    inventory = usable_inventory(inventory, now or datetime.now(timezone.utc))
    requirements = archive.requirements
    groups = create_selectable_groups(
        inventory.certificates, inventory.profiles, requirements
    )
    if not groups:
        get_console().print("[red]Failed to find code signing groups for the project[/]")
    _log_groups("Constructed signing groups:", groups)

    groups = filter_groups(
        groups,
        create_entitlements_filter(requirements),
        create_export_method_filter(export_method),
    )
    _log_groups("Signing groups after filtering:", groups)

    group = select_signing_group(groups, archive.bundle_ids, export_method)
    if export_method == ExportMethod.APP_STORE:
        return create_mac_signing_group(group, inventory.installer_certificates)
    return group


def resolve_export(
    archive: ArchiveDescriptor,
    export_method: ExportMethod,
    load_inventory: Callable[[], SigningInventory],
    now: Optional[datetime] = None,
) -> Optional[ResolvedGroup]:
    """Resolve a signing group, querying the installed inventory only when needed"""
    console = get_console()
    if export_method == ExportMethod.NONE:
        console.print("Exporting a copy of the application without re-signing...")
        return None
    if not requires_signing_group(archive, export_method):
        console.print(
            "[yellow]Warning:[/] Archive was generated without provisioning profile "
            "and the export method is not developer-id"
        )
        console.print("Exporting the application without re-signing...")
        return None

    inventory = load_inventory()
    return resolve_signing_group(archive, inventory, export_method, now)
