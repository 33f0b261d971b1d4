from typing import Callable, Iterable, List, Mapping, Optional

from macexport.logger import log_debug
from macexport.src.core.models import (
    EXPORT_METHOD_DISTRIBUTION_TYPES,
    BundleRequirement,
    ExportMethod,
    ProvisioningProfileInfo,
    SelectableSigningGroup,
)

# Takes a group and returns it narrowed, or None if it no longer covers every bundle ID
GroupFilter = Callable[[SelectableSigningGroup], Optional[SelectableSigningGroup]]


def narrow_group(
    group: SelectableSigningGroup,
    predicate: Callable[[str, ProvisioningProfileInfo], bool],
) -> Optional[SelectableSigningGroup]:
    """Keep only the candidate profiles that satisfy predicate(bundle_id, profile)"""
    narrowed = {}
    for bundle_id, profiles in group.bundle_id_profiles.items():
        kept = tuple(p for p in profiles if predicate(bundle_id, p))
        if not kept:
            return None
        narrowed[bundle_id] = kept
    return SelectableSigningGroup(
        certificate=group.certificate, bundle_id_profiles=narrowed
    )


def missing_entitlements(
    requirement: BundleRequirement, profile: ProvisioningProfileInfo
) -> frozenset:
    return requirement.entitlements - profile.entitlements


def create_entitlements_filter(
    requirements: Iterable[BundleRequirement],
) -> GroupFilter:
    """Profiles must grant every entitlement their bundle requires"""
    by_bundle_id: Mapping[str, BundleRequirement] = {
        r.bundle_id: r for r in requirements
    }

    def covers(bundle_id: str, profile: ProvisioningProfileInfo) -> bool:
        missing = missing_entitlements(by_bundle_id[bundle_id], profile)
        if missing:
            log_debug(
                f"Profile {profile.name} is missing entitlements for {bundle_id}: "
                f"{', '.join(sorted(missing))}"
            )
            return False
        return True

    return lambda group: narrow_group(group, covers)


def create_export_method_filter(export_method: ExportMethod) -> GroupFilter:
    """Profiles must be of the distribution type the export method signs with"""
    if export_method not in EXPORT_METHOD_DISTRIBUTION_TYPES:
        raise ValueError(f"Export method {export_method.value} does not use signing groups")
    distribution_type = EXPORT_METHOD_DISTRIBUTION_TYPES[export_method]

    def matches(bundle_id: str, profile: ProvisioningProfileInfo) -> bool:
        return profile.distribution_type == distribution_type

    return lambda group: narrow_group(group, matches)


def filter_groups(
    groups: Iterable[SelectableSigningGroup], *filters: GroupFilter
) -> List[SelectableSigningGroup]:
    """Apply every filter to every group, dropping groups any filter rejects"""
    filtered = []
    for group in groups:
        current: Optional[SelectableSigningGroup] = group
        for group_filter in filters:
            current = group_filter(current)
            if current is None:
                break
        if current is None:
            log_debug(f"Dropped signing group for {group.certificate.common_name}")
            continue
        filtered.append(current)
    return filtered
