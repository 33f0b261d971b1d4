from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import plistlib
import subprocess
from xml.parsers.expat import ExpatError

from macexport.logger import log_debug
from macexport.src.constants.capability_mappings import provisioned_entitlement_keys
from macexport.src.core.errors import MalformedArchive
from macexport.src.core.models import ArchiveDescriptor, BundleRequirement
from macexport.src.inventory.profile_reader import profile_uuid

EntitlementsReader = Callable[[Path], Dict[str, Any]]
ProfileReader = Callable[[Path], str]

PLIST_ERRORS = (OSError, ValueError, ExpatError)


def codesign_entitlements(bundle: Path) -> Dict[str, Any]:
    """Extract the signed entitlements of a bundle using codesign"""
    result = subprocess.run(
        ["codesign", "-d", "--entitlements", ":-", str(bundle)],
        capture_output=True,
        check=True,
    )
    if result.stdout.strip():
        return plistlib.loads(result.stdout)
    return {}


def _load_plist(path: Path) -> Dict[str, Any]:
    with open(path, "rb") as f:
        return plistlib.load(f)


def find_application(archive_path: Path) -> Path:
    """Locate the single .app inside Products/Applications"""
    apps = sorted((archive_path / "Products" / "Applications").glob("*.app"))
    if not apps:
        raise MalformedArchive(f"No embedded app found in {archive_path}")
    if len(apps) > 1:
        raise MalformedArchive(f"Multiple embedded apps found in {archive_path}")
    return apps[0]


def find_nested_bundles(app_path: Path) -> List[Path]:
    """App extensions and login items that are signed with their own profile"""
    contents = app_path / "Contents"
    bundles = sorted((contents / "PlugIns").glob("*.appex"))
    bundles += sorted((contents / "Library" / "LoginItems").glob("*.app"))
    return bundles


class ArchiveReader:
    """Builds the bundle requirements of a macOS .xcarchive"""

    def __init__(
        self,
        archive_path: Path,
        entitlements_reader: EntitlementsReader = codesign_entitlements,
        profile_reader: ProfileReader = profile_uuid,
    ):
        self.archive_path = Path(archive_path)
        self._read_entitlements = entitlements_reader
        self._read_profile = profile_reader

    def _bundle_id(self, bundle: Path) -> str:
        info_plist = bundle / "Contents" / "Info.plist"
        try:
            info = _load_plist(info_plist)
        except PLIST_ERRORS as e:
            raise MalformedArchive(f"Failed to parse {info_plist}: {e}")
        bundle_id = info.get("CFBundleIdentifier")
        if not bundle_id:
            raise MalformedArchive(f"No CFBundleIdentifier in {info_plist}")
        return bundle_id

    def _entitlements(self, bundle: Path) -> Dict[str, Any]:
        try:
            return self._read_entitlements(bundle)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else e.stderr
            raise MalformedArchive(f"Failed to read entitlements of {bundle.name}: {stderr}")
        except PLIST_ERRORS as e:
            raise MalformedArchive(f"Failed to read entitlements of {bundle.name}: {e}")

    def _embedded_profile_id(self, bundle: Path) -> Optional[str]:
        profile_path = bundle / "Contents" / "embedded.provisionprofile"
        if not profile_path.exists():
            return None
        try:
            return self._read_profile(profile_path)
        except Exception as e:
            raise MalformedArchive(f"Failed to read embedded profile of {bundle.name}: {e}")

    def _requirement(self, bundle: Path, is_primary: bool) -> BundleRequirement:
        bundle_id = self._bundle_id(bundle)
        entitlements = self._entitlements(bundle)
        requirement = BundleRequirement(
            bundle_id=bundle_id,
            entitlements=provisioned_entitlement_keys(entitlements),
            embedded_profile_id=self._embedded_profile_id(bundle),
            is_primary=is_primary,
        )
        log_debug(
            f"{bundle_id}: entitlements={sorted(requirement.entitlements)} "
            f"embedded profile={requirement.embedded_profile_id}"
        )
        return requirement

    def _application_properties(self) -> Dict[str, Any]:
        info_plist = self.archive_path / "Info.plist"
        if not info_plist.exists():
            return {}
        try:
            return _load_plist(info_plist).get("ApplicationProperties", {})
        except PLIST_ERRORS as e:
            raise MalformedArchive(f"Failed to parse {info_plist}: {e}")

    def read(self) -> ArchiveDescriptor:
        if not self.archive_path.is_dir():
            raise MalformedArchive(f"Archive not found: {self.archive_path}")

        app_path = find_application(self.archive_path)
        requirements = [self._requirement(app_path, is_primary=True)]
        for bundle in find_nested_bundles(app_path):
            requirements.append(self._requirement(bundle, is_primary=False))

        properties = self._application_properties()
        return ArchiveDescriptor(
            path=self.archive_path,
            requirements=tuple(requirements),
            signing_identity=properties.get("SigningIdentity"),
            team_id=properties.get("Team"),
        )


def read_archive(
    archive_path: Path,
    entitlements_reader: EntitlementsReader = codesign_entitlements,
    profile_reader: ProfileReader = profile_uuid,
) -> ArchiveDescriptor:
    return ArchiveReader(archive_path, entitlements_reader, profile_reader).read()
