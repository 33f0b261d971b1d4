"""Builders shared by the test modules."""

import dataclasses
import plistlib
from datetime import datetime, timedelta, timezone
from pathlib import Path

from asn1crypto import cms, keys, x509

from macexport.src.core.models import (
    ArchiveDescriptor,
    BundleRequirement,
    CertificateInfo,
    CertificateKind,
    DistributionType,
    ProvisioningProfileInfo,
)

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
DIST_NAME = "Apple Distribution: Acme Inc (TEAM1)"


def make_certificate(
    common_name="Apple Distribution: Acme Inc (TEAM1)",
    team_id="TEAM1",
    kind=CertificateKind.DISTRIBUTION,
    serial_number="01",
    fingerprint=None,
    not_before=NOW - timedelta(days=30),
    not_after=NOW + timedelta(days=3650),
):
    return CertificateInfo(
        common_name=common_name,
        team_id=team_id,
        serial_number=serial_number,
        not_before=not_before,
        not_after=not_after,
        kind=kind,
        fingerprint=fingerprint or f"FP-{common_name}-{serial_number}",
    )


def make_installer(common_name="3rd Party Mac Developer Installer: Acme Inc (TEAM1)", **kwargs):
    kwargs.setdefault("kind", CertificateKind.INSTALLER)
    return make_certificate(common_name=common_name, **kwargs)


def make_profile(
    name,
    pattern="com.acme.*",
    certificates=(),
    team_id="TEAM1",
    distribution_type=DistributionType.APP_STORE,
    entitlements=(),
    uuid=None,
    creation_date=None,
    expiration_date=None,
    platforms=("OSX",),
):
    return ProvisioningProfileInfo(
        name=name,
        uuid=uuid or f"UUID-{name}",
        team_id=team_id,
        bundle_id_pattern=pattern,
        distribution_type=distribution_type,
        entitlements=frozenset(entitlements),
        certificate_fingerprints=frozenset(c.fingerprint for c in certificates),
        platforms=frozenset(platforms),
        creation_date=creation_date,
        expiration_date=expiration_date,
    )


def make_requirement(bundle_id, entitlements=(), embedded_profile_id=None, is_primary=False):
    return BundleRequirement(
        bundle_id=bundle_id,
        entitlements=frozenset(entitlements),
        embedded_profile_id=embedded_profile_id,
        is_primary=is_primary,
    )


def make_archive(primary, *extensions, path="/tmp/Acme.xcarchive"):
    """The first requirement becomes the archive's main application."""
    requirements = (dataclasses.replace(primary, is_primary=True),) + tuple(
        dataclasses.replace(e, is_primary=False) for e in extensions
    )
    return ArchiveDescriptor(path=Path(path), requirements=requirements)


def build_der_certificate(
    common_name,
    team_id="TEAM1",
    serial_number=0x1234,
    not_before=NOW - timedelta(days=30),
    not_after=NOW + timedelta(days=300),
):
    """A structurally valid, unsigned X.509 certificate."""
    tbs = x509.TbsCertificate(
        {
            "version": "v3",
            "serial_number": serial_number,
            "signature": {"algorithm": "sha256_rsa"},
            "issuer": x509.Name.build(
                {"common_name": "Apple Worldwide Developer Relations Certification Authority"}
            ),
            "validity": {
                "not_before": x509.Time(name="utc_time", value=not_before),
                "not_after": x509.Time(name="utc_time", value=not_after),
            },
            "subject": x509.Name.build(
                {
                    "common_name": common_name,
                    "organizational_unit_name": team_id,
                    "organization_name": "Acme Inc",
                }
            ),
            "subject_public_key_info": {
                "algorithm": {"algorithm": "rsa"},
                "public_key": keys.RSAPublicKey(
                    {"modulus": 0xC0FFEE * 0xBADF00D, "public_exponent": 65537}
                ),
            },
        }
    )
    certificate = x509.Certificate(
        {
            "tbs_certificate": tbs,
            "signature_algorithm": {"algorithm": "sha256_rsa"},
            "signature_value": b"\x00" * 16,
        }
    )
    return certificate.dump()


def profile_plist(
    name="Acme App Store",
    uuid="11111111-2222-3333-4444-555555555555",
    team_id="TEAM1",
    app_id="TEAM1.com.acme.*",
    certificates=(b"cert-der",),
    entitlements=None,
    platforms=("OSX",),
    creation_date=datetime(2026, 1, 1),
    expiration_date=datetime(2027, 1, 1),
    **extra,
):
    ents = {"com.apple.application-identifier": app_id}
    ents.update(entitlements or {})
    data = {
        "Name": name,
        "UUID": uuid,
        "TeamIdentifier": [team_id],
        "Platform": list(platforms),
        "DeveloperCertificates": list(certificates),
        "Entitlements": ents,
        "CreationDate": creation_date,
        "ExpirationDate": expiration_date,
    }
    data.update(extra)
    return data


def build_profile_bytes(plist: dict) -> bytes:
    """Wrap a profile plist in CMS signed data the way Apple ships it."""
    signed_data = cms.SignedData(
        {
            "version": "v1",
            "digest_algorithms": [],
            "encap_content_info": {
                "content_type": "data",
                "content": plistlib.dumps(plist),
            },
            "signer_infos": [],
        }
    )
    return cms.ContentInfo({"content_type": "signed_data", "content": signed_data}).dump()
