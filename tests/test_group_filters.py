"""Tests for narrowing signing groups by entitlements and export method."""

import pytest

from helpers import make_certificate, make_profile, make_requirement
from macexport.src.core.group_construction import create_selectable_groups
from macexport.src.core.group_filters import (
    create_entitlements_filter,
    create_export_method_filter,
    filter_groups,
    missing_entitlements,
)
from macexport.src.core.models import DistributionType, ExportMethod

PUSH = "com.apple.developer.aps-environment"
GROUPS = "com.apple.security.application-groups"


@pytest.fixture
def cert():
    return make_certificate()


def build_groups(cert, profiles, requirements):
    return create_selectable_groups([cert], profiles, requirements)


class TestEntitlementsFilter:
    def test_missing_entitlements(self):
        requirement = make_requirement("com.acme.app", entitlements=[PUSH, GROUPS])
        profile = make_profile("P", entitlements=[GROUPS])
        assert missing_entitlements(requirement, profile) == {PUSH}

    def test_drops_group_without_required_entitlement(self, cert):
        requirements = [make_requirement("com.acme.app", entitlements=[PUSH], is_primary=True)]
        groups = build_groups(cert, [make_profile("Plain", certificates=[cert])], requirements)

        assert filter_groups(groups, create_entitlements_filter(requirements)) == []

    def test_falls_back_to_lower_ranked_profile(self, cert):
        requirements = [make_requirement("com.acme.app", entitlements=[PUSH], is_primary=True)]
        exact = make_profile("Exact", pattern="com.acme.app", certificates=[cert])
        wildcard = make_profile("Wildcard", certificates=[cert], entitlements=[PUSH])
        groups = build_groups(cert, [exact, wildcard], requirements)
        assert groups[0].profile_for("com.acme.app") is exact

        (group,) = filter_groups(groups, create_entitlements_filter(requirements))

        assert group.profile_for("com.acme.app") is wildcard

    def test_extra_profile_entitlements_are_fine(self, cert):
        requirements = [make_requirement("com.acme.app", is_primary=True)]
        profile = make_profile("Rich", certificates=[cert], entitlements=[PUSH, GROUPS])
        groups = build_groups(cert, [profile], requirements)
        assert filter_groups(groups, create_entitlements_filter(requirements)) == groups


class TestExportMethodFilter:
    def test_keeps_matching_distribution_type(self, cert):
        requirements = [make_requirement("com.acme.app", is_primary=True)]
        store = make_profile("Store", certificates=[cert])
        dev = make_profile(
            "Dev", certificates=[cert], distribution_type=DistributionType.DEVELOPMENT
        )
        groups = build_groups(cert, [store, dev], requirements)

        (group,) = filter_groups(groups, create_export_method_filter(ExportMethod.DEVELOPMENT))

        assert group.bundle_id_profiles["com.acme.app"] == (dev,)

    def test_drops_group_without_matching_type(self, cert):
        requirements = [make_requirement("com.acme.app", is_primary=True)]
        groups = build_groups(cert, [make_profile("Store", certificates=[cert])], requirements)
        assert filter_groups(groups, create_export_method_filter(ExportMethod.DEVELOPER_ID)) == []

    def test_none_method_has_no_filter(self):
        with pytest.raises(ValueError):
            create_export_method_filter(ExportMethod.NONE)


def test_profile_must_pass_both_filters(cert):
    requirements = [make_requirement("com.acme.app", entitlements=[PUSH], is_primary=True)]
    # One profile has the entitlement, the other has the type; neither has both
    store_plain = make_profile("Store", certificates=[cert])
    dev_push = make_profile(
        "Dev",
        certificates=[cert],
        entitlements=[PUSH],
        distribution_type=DistributionType.DEVELOPMENT,
    )
    groups = build_groups(cert, [store_plain, dev_push], requirements)

    result = filter_groups(
        groups,
        create_entitlements_filter(requirements),
        create_export_method_filter(ExportMethod.APP_STORE),
    )

    assert result == []
