from typing import Iterable, List, Optional, Sequence, Tuple

from macexport.logger import log_debug
from macexport.src.core.models import (
    BundleRequirement,
    CertificateInfo,
    ProvisioningProfileInfo,
    SelectableSigningGroup,
    as_utc,
)


def _profile_rank(
    requirement: BundleRequirement, profile: ProvisioningProfileInfo
) -> Tuple:
    """Sort key for candidate profiles, best first.

    Order: the profile already embedded in the bundle, exact bundle ID
    patterns before wildcards, longer wildcard prefixes, most recently
    issued, then profile name and UUID.
    """
    embedded = (
        requirement.embedded_profile_id is not None
        and profile.uuid == requirement.embedded_profile_id
    )
    issued = (
        -as_utc(profile.creation_date).timestamp()
        if profile.creation_date is not None
        else float("inf")
    )
    return (
        0 if embedded else 1,
        1 if profile.is_wildcard else 0,
        -profile.match_length(requirement.bundle_id),
        issued,
        profile.name,
        profile.uuid,
    )


def rank_profiles(
    requirement: BundleRequirement, profiles: Iterable[ProvisioningProfileInfo]
) -> Tuple[ProvisioningProfileInfo, ...]:
    """Return the profiles matching the requirement's bundle ID, best first"""
    matching = [p for p in profiles if p.matches(requirement.bundle_id)]
    return tuple(sorted(matching, key=lambda p: _profile_rank(requirement, p)))


def profiles_for_certificate(
    certificate: CertificateInfo, profiles: Iterable[ProvisioningProfileInfo]
) -> List[ProvisioningProfileInfo]:
    """Profiles that list the certificate and belong to its team"""
    return [
        p
        for p in profiles
        if certificate.fingerprint in p.certificate_fingerprints
        and p.team_id == certificate.team_id
    ]


def create_group_for_certificate(
    certificate: CertificateInfo,
    profiles: Iterable[ProvisioningProfileInfo],
    requirements: Sequence[BundleRequirement],
) -> Optional[SelectableSigningGroup]:
    usable = profiles_for_certificate(certificate, profiles)
    if not usable:
        log_debug(f"No profiles installed for certificate: {certificate.common_name}")
        return None

    bundle_id_profiles = {}
    for requirement in requirements:
        ranked = rank_profiles(requirement, usable)
        if not ranked:
            log_debug(
                f"Certificate {certificate.common_name} has no profile for {requirement.bundle_id}"
            )
            return None
        bundle_id_profiles[requirement.bundle_id] = ranked

    return SelectableSigningGroup(
        certificate=certificate, bundle_id_profiles=bundle_id_profiles
    )


def create_selectable_groups(
    certificates: Iterable[CertificateInfo],
    profiles: Iterable[ProvisioningProfileInfo],
    requirements: Sequence[BundleRequirement],
) -> List[SelectableSigningGroup]:
    """Build one candidate signing group per certificate that covers every bundle ID"""
    profiles = list(profiles)
    groups = []
    for certificate in certificates:
        group = create_group_for_certificate(certificate, profiles, requirements)
        if group is not None:
            groups.append(group)
    return groups
