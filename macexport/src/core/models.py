from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from macexport.src.core.errors import MalformedArchive


class ExportMethod(Enum):
    NONE = "none"  # Copy the app without re-signing
    APP_STORE = "app-store"
    DEVELOPMENT = "development"
    DEVELOPER_ID = "developer-id"

    @classmethod
    def parse(cls, value: str) -> "ExportMethod":
        """Parse an export method name, e.g. 'app-store'"""
        for method in cls:
            if method.value == value:
                return method
        allowed = ", ".join(m.value for m in cls)
        raise ValueError(f"Invalid export method: {value} (expected one of: {allowed})")


class DistributionType(Enum):
    DEVELOPMENT = "development"
    AD_HOC = "ad-hoc"
    APP_STORE = "app-store"
    ENTERPRISE = "enterprise"
    DEVELOPER_ID = "developer-id"


class CertificateKind(Enum):
    DEVELOPMENT = "development"
    DISTRIBUTION = "distribution"
    INSTALLER = "installer"  # App Store package signing
    DEVELOPER_ID_INSTALLER = "developer-id-installer"


INSTALLER_KINDS = frozenset(
    (CertificateKind.INSTALLER, CertificateKind.DEVELOPER_ID_INSTALLER)
)


# Profile distribution type each signing export method accepts
EXPORT_METHOD_DISTRIBUTION_TYPES: Dict[ExportMethod, DistributionType] = {
    ExportMethod.APP_STORE: DistributionType.APP_STORE,
    ExportMethod.DEVELOPMENT: DistributionType.DEVELOPMENT,
    ExportMethod.DEVELOPER_ID: DistributionType.DEVELOPER_ID,
}


def as_utc(value: datetime) -> datetime:
    """Plist dates are naive UTC, certificate dates are aware"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class BundleRequirement:
    """An application or extension bundle that needs a provisioning profile"""

    bundle_id: str
    entitlements: FrozenSet[str] = frozenset()  # Capability keys the profile must grant
    embedded_profile_id: Optional[str] = None  # UUID of the profile already embedded
    is_primary: bool = False


@dataclass(frozen=True)
class ArchiveDescriptor:
    """Everything the resolver needs to know about an .xcarchive"""

    path: Path
    requirements: Tuple[BundleRequirement, ...]
    signing_identity: Optional[str] = None
    team_id: Optional[str] = None

    def __post_init__(self):
        seen = set()
        for requirement in self.requirements:
            if not requirement.bundle_id:
                raise MalformedArchive(f"Bundle without identifier in {self.path}")
            if requirement.bundle_id in seen:
                raise MalformedArchive(
                    f"Duplicate bundle identifier {requirement.bundle_id} in {self.path}"
                )
            seen.add(requirement.bundle_id)

        primaries = [r for r in self.requirements if r.is_primary]
        if len(primaries) != 1:
            raise MalformedArchive(
                f"Expected exactly one application bundle in {self.path}, found {len(primaries)}"
            )

    @property
    def primary(self) -> BundleRequirement:
        return next(r for r in self.requirements if r.is_primary)

    @property
    def bundle_ids(self) -> Tuple[str, ...]:
        return tuple(r.bundle_id for r in self.requirements)

    @property
    def has_embedded_profile(self) -> bool:
        """True if the main application shipped with a provisioning profile"""
        return self.primary.embedded_profile_id is not None


@dataclass(frozen=True)
class CertificateInfo:
    """A locally installed signing identity"""

    common_name: str
    team_id: str
    serial_number: str
    not_before: datetime
    not_after: datetime
    kind: CertificateKind
    fingerprint: str  # Upper-case SHA-1 of the DER encoding

    @property
    def is_installer(self) -> bool:
        return self.kind in INSTALLER_KINDS

    def is_valid_at(self, now: datetime) -> bool:
        now = as_utc(now)
        return as_utc(self.not_before) <= now <= as_utc(self.not_after)

    def __str__(self) -> str:
        return (
            f"{self.common_name} [{self.kind.value}] team: {self.team_id} "
            f"serial: {self.serial_number} expires: {self.not_after:%Y-%m-%d}"
        )


@dataclass(frozen=True)
class ProvisioningProfileInfo:
    """A locally installed provisioning profile"""

    name: str
    uuid: str
    team_id: str
    bundle_id_pattern: str  # Exact bundle ID or a prefix ending in '*'
    distribution_type: DistributionType
    entitlements: FrozenSet[str] = frozenset()
    certificate_fingerprints: FrozenSet[str] = frozenset()
    platforms: FrozenSet[str] = frozenset()
    creation_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None

    @property
    def is_wildcard(self) -> bool:
        return self.bundle_id_pattern.endswith("*")

    def match_length(self, bundle_id: str) -> int:
        """Number of matched characters, or -1 if the pattern does not apply"""
        if self.is_wildcard:
            prefix = self.bundle_id_pattern[:-1]
            if bundle_id.startswith(prefix):
                return len(prefix)
        elif bundle_id == self.bundle_id_pattern:
            return len(self.bundle_id_pattern)
        return -1

    def matches(self, bundle_id: str) -> bool:
        return self.match_length(bundle_id) >= 0

    def is_expired_at(self, now: datetime) -> bool:
        if self.expiration_date is None:
            return False
        return as_utc(self.expiration_date) < as_utc(now)

    def __str__(self) -> str:
        return (
            f"{self.name} ({self.uuid}) [{self.distribution_type.value}] "
            f"team: {self.team_id} bundle ID: {self.bundle_id_pattern}"
        )


@dataclass(frozen=True)
class SelectableSigningGroup:
    """A certificate plus the ranked candidate profiles for every bundle ID"""

    certificate: CertificateInfo
    bundle_id_profiles: Mapping[str, Tuple[ProvisioningProfileInfo, ...]] = field(
        default_factory=dict
    )

    @property
    def bundle_id_profile_map(self) -> Dict[str, ProvisioningProfileInfo]:
        """The chosen (best ranked) profile for each bundle ID"""
        return {
            bundle_id: profiles[0]
            for bundle_id, profiles in self.bundle_id_profiles.items()
        }

    @property
    def bundle_ids(self) -> Tuple[str, ...]:
        return tuple(self.bundle_id_profiles)

    def profile_for(self, bundle_id: str) -> ProvisioningProfileInfo:
        return self.bundle_id_profiles[bundle_id][0]


@dataclass(frozen=True)
class ResolvedMacSigningGroup:
    """An App Store signing group paired with an installer certificate"""

    group: SelectableSigningGroup
    installer_certificate: CertificateInfo

    @property
    def certificate(self) -> CertificateInfo:
        return self.group.certificate

    @property
    def bundle_id_profile_map(self) -> Dict[str, ProvisioningProfileInfo]:
        return self.group.bundle_id_profile_map


@dataclass(frozen=True)
class SigningInventory:
    """Normalized snapshot of the installed certificates and profiles"""

    certificates: Tuple[CertificateInfo, ...] = ()
    installer_certificates: Tuple[CertificateInfo, ...] = ()
    profiles: Tuple[ProvisioningProfileInfo, ...] = ()
