import hashlib
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from asn1crypto import x509

from macexport.logger import get_console, log_debug
from macexport.src.core.models import (
    CertificateInfo,
    CertificateKind,
    DistributionType,
    ProvisioningProfileInfo,
    SigningInventory,
    as_utc,
)

# Common name prefixes Apple issues for each kind of signing certificate
CERTIFICATE_KIND_PREFIXES = (
    ("3rd Party Mac Developer Installer", CertificateKind.INSTALLER),
    ("Mac Installer Distribution", CertificateKind.INSTALLER),
    ("Developer ID Installer", CertificateKind.DEVELOPER_ID_INSTALLER),
    ("3rd Party Mac Developer Application", CertificateKind.DISTRIBUTION),
    ("Apple Distribution", CertificateKind.DISTRIBUTION),
    ("Developer ID Application", CertificateKind.DISTRIBUTION),
    ("iPhone Distribution", CertificateKind.DISTRIBUTION),
    ("Apple Development", CertificateKind.DEVELOPMENT),
    ("Mac Developer", CertificateKind.DEVELOPMENT),
    ("iPhone Developer", CertificateKind.DEVELOPMENT),
)


def classify_certificate(common_name: str) -> Optional[CertificateKind]:
    for prefix, kind in CERTIFICATE_KIND_PREFIXES:
        if common_name.startswith(prefix):
            return kind
    return None


def fingerprint_of(der: bytes) -> str:
    return hashlib.sha1(der).hexdigest().upper()


def certificate_info_from_der(der: bytes) -> Optional[CertificateInfo]:
    """Normalize a DER certificate, or return None if it is not a signing certificate"""
    cert = x509.Certificate.load(der)
    subject = cert.subject.native

    common_name = subject.get("common_name", "")
    kind = classify_certificate(common_name)
    if kind is None:
        return None

    team_id = subject.get("organizational_unit_name", "")
    if isinstance(team_id, list):
        team_id = team_id[0]

    validity = cert["tbs_certificate"]["validity"]
    return CertificateInfo(
        common_name=common_name,
        team_id=team_id,
        serial_number=format(cert.serial_number, "X"),
        not_before=validity["not_before"].native,
        not_after=validity["not_after"].native,
        kind=kind,
        fingerprint=fingerprint_of(der),
    )


def distribution_type_of(profile: dict) -> DistributionType:
    platforms = profile.get("Platform", [])
    if profile.get("ProvisionsAllDevices"):
        if "OSX" in platforms:
            return DistributionType.DEVELOPER_ID
        return DistributionType.ENTERPRISE
    if profile.get("ProvisionedDevices"):
        # macOS has no ad hoc distribution
        if "OSX" in platforms:
            return DistributionType.DEVELOPMENT
        if profile.get("Entitlements", {}).get("get-task-allow"):
            return DistributionType.DEVELOPMENT
        return DistributionType.AD_HOC
    return DistributionType.APP_STORE


def profile_info_from_plist(profile: dict) -> ProvisioningProfileInfo:
    """Normalize a decoded provisioning profile plist"""
    entitlements = profile.get("Entitlements", {})

    team_ids = profile.get("TeamIdentifier") or []
    team_id = team_ids[0] if team_ids else entitlements.get(
        "com.apple.developer.team-identifier", ""
    )

    app_id = entitlements.get("application-identifier") or entitlements.get(
        "com.apple.application-identifier"
    )
    if not app_id or "." not in app_id:
        raise ValueError(f"Profile {profile.get('Name')} has no application identifier")
    # App ID is '<prefix>.<bundle id pattern>'
    bundle_id_pattern = app_id.split(".", 1)[1]

    creation_date = profile.get("CreationDate")
    expiration_date = profile.get("ExpirationDate")
    return ProvisioningProfileInfo(
        name=profile["Name"],
        uuid=profile["UUID"],
        team_id=team_id,
        bundle_id_pattern=bundle_id_pattern,
        distribution_type=distribution_type_of(profile),
        entitlements=frozenset(entitlements),
        certificate_fingerprints=frozenset(
            fingerprint_of(bytes(c)) for c in profile.get("DeveloperCertificates", [])
        ),
        platforms=frozenset(profile.get("Platform", [])),
        creation_date=as_utc(creation_date) if creation_date else None,
        expiration_date=as_utc(expiration_date) if expiration_date else None,
    )


def _normalize_certificates(
    raw_certificates: Iterable[bytes], now: datetime
) -> List[CertificateInfo]:
    console = get_console()
    certificates = []
    seen = set()
    for der in raw_certificates:
        try:
            info = certificate_info_from_der(der)
        except ValueError as e:
            console.print(f"[yellow]Warning:[/] Skipping unreadable certificate: {e}")
            continue
        if info is None:
            log_debug(f"Skipping non-signing certificate {fingerprint_of(der)}")
            continue
        if info.fingerprint in seen:
            continue
        seen.add(info.fingerprint)
        if not info.is_valid_at(now):
            console.print(
                f"[yellow]Warning:[/] Dropping certificate outside its validity window: "
                f"{info.common_name} (valid {info.not_before:%Y-%m-%d} to {info.not_after:%Y-%m-%d})"
            )
            continue
        certificates.append(info)
    return certificates


def _normalize_profiles(
    raw_profiles: Iterable[dict], now: datetime, platform: Optional[str]
) -> List[ProvisioningProfileInfo]:
    console = get_console()
    profiles = []
    seen = set()
    for raw in raw_profiles:
        try:
            info = profile_info_from_plist(raw)
        except (KeyError, ValueError) as e:
            console.print(f"[yellow]Warning:[/] Skipping unreadable provisioning profile: {e}")
            continue
        if info.uuid in seen:
            continue
        seen.add(info.uuid)
        if platform and info.platforms and platform not in info.platforms:
            log_debug(f"Skipping profile for another platform: {info.name}")
            continue
        if info.is_expired_at(now):
            console.print(f"[yellow]Warning:[/] Dropping expired provisioning profile: {info.name}")
            continue
        profiles.append(info)
    return profiles


def build_inventory(
    raw_certificates: Iterable[bytes],
    raw_profiles: Iterable[dict],
    now: Optional[datetime] = None,
    platform: Optional[str] = "OSX",
) -> SigningInventory:
    """Normalize raw certificates and profiles into a time-filtered inventory"""
    now = as_utc(now) if now else datetime.now(timezone.utc)
    certificates = _normalize_certificates(raw_certificates, now)
    profiles = _normalize_profiles(raw_profiles, now, platform)
    return SigningInventory(
        certificates=tuple(
            c for c in certificates if not c.is_installer
        ),
        installer_certificates=tuple(
            c for c in certificates if c.is_installer
        ),
        profiles=tuple(profiles),
    )


def load_inventory(store, now: Optional[datetime] = None) -> SigningInventory:
    """Query the system store once and normalize the result"""
    inventory = build_inventory(
        store.identity_certificates(), store.provisioning_profiles(), now=now
    )

    log_debug("Installed certificates:")
    for certificate in inventory.certificates:
        log_debug(f"  {certificate}")
    log_debug("Installed installer certificates:")
    for certificate in inventory.installer_certificates:
        log_debug(f"  {certificate}")
    log_debug("Installed profiles:")
    for profile in inventory.profiles:
        log_debug(f"  {profile}")
    return inventory
