from typing import Iterable, Sequence

from macexport.logger import get_console
from macexport.src.core.errors import NoInstallerCertificateFound, NoSigningGroupFound
from macexport.src.core.models import (
    CertificateInfo,
    CertificateKind,
    ExportMethod,
    ResolvedMacSigningGroup,
    SelectableSigningGroup,
)


def _group_order(group: SelectableSigningGroup):
    cert = group.certificate
    return (cert.common_name, cert.team_id, cert.serial_number)


def _installer_order(certificate: CertificateInfo):
    return (certificate.common_name, certificate.serial_number)


def select_signing_group(
    groups: Sequence[SelectableSigningGroup],
    bundle_ids: Iterable[str],
    export_method: ExportMethod,
) -> SelectableSigningGroup:
    """Pick exactly one group, or raise NoSigningGroupFound"""
    if not groups:
        raise NoSigningGroupFound(bundle_ids, export_method.value)

    ordered = sorted(groups, key=_group_order)
    selected = ordered[0]
    if len(ordered) > 1:
        console = get_console()
        console.print(
            f"[yellow]Warning:[/] Multiple matching code signing groups found "
            f"({len(ordered)}), using the first: {selected.certificate.common_name}"
        )
        for group in ordered[1:]:
            console.print(f"[yellow]  • skipped {group.certificate.common_name}[/]")
    return selected


def select_installer_certificate(
    group: SelectableSigningGroup, installer_certificates: Iterable[CertificateInfo]
) -> CertificateInfo:
    """Pick the App Store installer certificate of the signing certificate's team"""
    team_id = group.certificate.team_id
    candidates = sorted(
        (
            c
            for c in installer_certificates
            if c.kind == CertificateKind.INSTALLER and c.team_id == team_id
        ),
        key=_installer_order,
    )
    if not candidates:
        raise NoInstallerCertificateFound(team_id)

    if len(candidates) > 1:
        get_console().print(
            f"[yellow]Warning:[/] Multiple installer certificates found for team {team_id}, "
            f"using the first: {candidates[0].common_name}"
        )
    return candidates[0]


def create_mac_signing_group(
    group: SelectableSigningGroup, installer_certificates: Iterable[CertificateInfo]
) -> ResolvedMacSigningGroup:
    return ResolvedMacSigningGroup(
        group=group,
        installer_certificate=select_installer_certificate(
            group, installer_certificates
        ),
    )
