"""End to end tests for resolving a signing group from an archive and inventory."""

from datetime import timedelta

import pytest

from helpers import NOW, make_archive, make_certificate, make_installer, make_profile, make_requirement
from macexport.logger import set_verbose
from macexport.src.core.errors import NoInstallerCertificateFound, NoSigningGroupFound
from macexport.src.core.models import (
    CertificateKind,
    DistributionType,
    ExportMethod,
    ResolvedMacSigningGroup,
    SelectableSigningGroup,
    SigningInventory,
)
from macexport.src.core.resolver import (
    requires_signing_group,
    resolve_export,
    resolve_signing_group,
)

PUSH = "com.apple.developer.aps-environment"


@pytest.fixture
def c1():
    return make_certificate()


@pytest.fixture
def ic1():
    return make_installer()


@pytest.fixture
def signed_archive():
    return make_archive(make_requirement("com.acme.app", entitlements=[PUSH], embedded_profile_id="E1"))


@pytest.fixture
def inventory(c1, ic1):
    p1 = make_profile("P1", certificates=[c1], entitlements=[PUSH])
    return SigningInventory(certificates=(c1,), installer_certificates=(ic1,), profiles=(p1,))


class TestRequiresSigningGroup:
    @pytest.mark.parametrize("method", list(ExportMethod))
    def test_none_never_requires(self, signed_archive, method):
        expected = method != ExportMethod.NONE
        assert requires_signing_group(signed_archive, method) == expected

    def test_unsigned_archive_only_requires_for_developer_id(self):
        archive = make_archive(make_requirement("com.acme.app"))
        assert not requires_signing_group(archive, ExportMethod.APP_STORE)
        assert not requires_signing_group(archive, ExportMethod.DEVELOPMENT)
        assert requires_signing_group(archive, ExportMethod.DEVELOPER_ID)


class TestResolveSigningGroup:
    def test_app_store_pairs_installer(self, signed_archive, inventory, c1, ic1):
        group = resolve_signing_group(signed_archive, inventory, ExportMethod.APP_STORE)

        assert isinstance(group, ResolvedMacSigningGroup)
        assert group.certificate == c1
        assert group.installer_certificate == ic1
        assert group.bundle_id_profile_map["com.acme.app"].name == "P1"

    def test_missing_entitlement_fails(self, c1, ic1):
        archive = make_archive(
            make_requirement("com.acme.app", entitlements=[PUSH], embedded_profile_id="E1")
        )
        inventory = SigningInventory(
            certificates=(c1,),
            installer_certificates=(ic1,),
            profiles=(make_profile("P1", certificates=[c1]),),
        )
        with pytest.raises(NoSigningGroupFound):
            resolve_signing_group(archive, inventory, ExportMethod.APP_STORE)

    def test_app_store_without_installer_fails(self, signed_archive, c1):
        inventory = SigningInventory(
            certificates=(c1,),
            profiles=(make_profile("P1", certificates=[c1], entitlements=[PUSH]),),
        )
        with pytest.raises(NoInstallerCertificateFound):
            resolve_signing_group(signed_archive, inventory, ExportMethod.APP_STORE)

    def test_development_does_not_need_installer(self, signed_archive, c1):
        dev = make_profile(
            "Dev",
            certificates=[c1],
            entitlements=[PUSH],
            distribution_type=DistributionType.DEVELOPMENT,
        )
        inventory = SigningInventory(certificates=(c1,), profiles=(dev,))

        group = resolve_signing_group(signed_archive, inventory, ExportMethod.DEVELOPMENT)

        assert isinstance(group, SelectableSigningGroup)
        assert group.profile_for("com.acme.app") is dev

    def test_empty_inventory_reports_failure(self, signed_archive, capsys):
        with pytest.raises(NoSigningGroupFound):
            resolve_signing_group(signed_archive, SigningInventory(), ExportMethod.APP_STORE)
        assert "Failed to find code signing groups" in capsys.readouterr().out

    def test_extension_uses_wildcard(self, c1, ic1):
        archive = make_archive(
            make_requirement("com.acme.app", embedded_profile_id="E1"),
            make_requirement("com.acme.app.widget"),
        )
        exact = make_profile("Exact", pattern="com.acme.app", certificates=[c1])
        wildcard = make_profile("Wildcard", pattern="com.acme.*", certificates=[c1])
        inventory = SigningInventory(
            certificates=(c1,), installer_certificates=(ic1,), profiles=(wildcard, exact)
        )

        group = resolve_signing_group(archive, inventory, ExportMethod.APP_STORE)

        assert group.bundle_id_profile_map == {
            "com.acme.app": exact,
            "com.acme.app.widget": wildcard,
        }

    def test_verbose_lists_groups(self, signed_archive, inventory, capsys):
        set_verbose(True)
        resolve_signing_group(signed_archive, inventory, ExportMethod.APP_STORE)
        assert "Constructed signing groups" in capsys.readouterr().out

    def test_same_input_same_result(self, signed_archive, c1, ic1):
        c2 = make_certificate(common_name="Apple Distribution: Acme Inc (TEAM1)", serial_number="02")
        profiles = (
            make_profile("P1", certificates=[c1], entitlements=[PUSH]),
            make_profile("P2", certificates=[c2], entitlements=[PUSH]),
        )
        forward = SigningInventory(certificates=(c1, c2), installer_certificates=(ic1,), profiles=profiles)
        backward = SigningInventory(
            certificates=(c2, c1), installer_certificates=(ic1,), profiles=profiles[::-1]
        )

        first = resolve_signing_group(signed_archive, forward, ExportMethod.APP_STORE)
        second = resolve_signing_group(signed_archive, backward, ExportMethod.APP_STORE)

        assert first == second
        assert first.certificate == c1


class TestResolveExport:
    def test_none_skips_inventory(self, signed_archive):
        def load():
            raise AssertionError("inventory must not be queried")

        assert resolve_export(signed_archive, ExportMethod.NONE, load) is None

    def test_unsigned_archive_skips_inventory(self, capsys):
        archive = make_archive(make_requirement("com.acme.app"))

        def load():
            raise AssertionError("inventory must not be queried")

        assert resolve_export(archive, ExportMethod.APP_STORE, load) is None
        assert "without provisioning profile" in capsys.readouterr().out

    def test_loads_inventory_once(self, signed_archive, inventory):
        calls = []

        def load():
            calls.append(1)
            return inventory

        group = resolve_export(signed_archive, ExportMethod.APP_STORE, load)

        assert isinstance(group, ResolvedMacSigningGroup)
        assert calls == [1]


class TestInventoryValidity:
    def test_app_store_uses_mac_installer_from_inventory(self, c1):
        archive = make_archive(make_requirement("com.acme.app", embedded_profile_id="E1"))
        developer_id = make_installer(
            common_name="Developer ID Installer: Acme Inc (TEAM1)",
            kind=CertificateKind.DEVELOPER_ID_INSTALLER,
            serial_number="07",
        )
        mac_installer = make_installer(
            common_name="Mac Installer Distribution: Acme Inc (TEAM1)", serial_number="08"
        )
        inventory = SigningInventory(
            certificates=(c1,),
            installer_certificates=(mac_installer, developer_id),
            profiles=(make_profile("P1", certificates=[c1]),),
        )

        group = resolve_signing_group(archive, inventory, ExportMethod.APP_STORE, now=NOW)

        assert group.installer_certificate == mac_installer

    def test_expired_certificate_is_not_eligible(self, signed_archive, ic1):
        expired = make_certificate(not_after=NOW - timedelta(days=1))
        inventory = SigningInventory(
            certificates=(expired,),
            installer_certificates=(ic1,),
            profiles=(make_profile("P1", certificates=[expired], entitlements=[PUSH]),),
        )
        with pytest.raises(NoSigningGroupFound):
            resolve_signing_group(signed_archive, inventory, ExportMethod.APP_STORE, now=NOW)

    def test_expired_installer_is_not_eligible(self, signed_archive, c1):
        expired = make_installer(not_after=NOW - timedelta(days=1))
        inventory = SigningInventory(
            certificates=(c1,),
            installer_certificates=(expired,),
            profiles=(make_profile("P1", certificates=[c1], entitlements=[PUSH]),),
        )
        with pytest.raises(NoInstallerCertificateFound):
            resolve_signing_group(signed_archive, inventory, ExportMethod.APP_STORE, now=NOW)

    def test_expired_profile_is_not_eligible(self, signed_archive, c1, ic1):
        stale = make_profile(
            "Stale",
            pattern="com.acme.app",
            certificates=[c1],
            entitlements=[PUSH],
            expiration_date=NOW - timedelta(days=1),
        )
        current = make_profile("Current", certificates=[c1], entitlements=[PUSH])
        inventory = SigningInventory(
            certificates=(c1,), installer_certificates=(ic1,), profiles=(stale, current)
        )

        group = resolve_signing_group(signed_archive, inventory, ExportMethod.APP_STORE, now=NOW)

        assert group.bundle_id_profile_map["com.acme.app"] is current
