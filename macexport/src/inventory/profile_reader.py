from pathlib import Path
import plistlib
from asn1crypto.cms import ContentInfo

PROFILE_SUFFIXES = (".provisionprofile", ".mobileprovision")


def load_profile_bytes(content: bytes) -> dict:
    """Decode a CMS-signed provisioning profile into its plist dictionary"""
    content_info = ContentInfo.load(content)
    signed_data = content_info["content"]
    # The profile plist is the encapsulated content of the signed data
    plist_data = signed_data["encap_content_info"]["content"].native
    return plistlib.loads(plist_data)


def dump_prov(prov_file: Path) -> dict:
    """Read a provisioning profile without using macOS security command"""
    with open(prov_file, "rb") as f:
        return load_profile_bytes(f.read())


def profile_uuid(prov_file: Path) -> str:
    return dump_prov(prov_file)["UUID"]


def iter_profile_files(directory: Path):
    """Yield the provisioning profile files of a directory, sorted by name"""
    for path in sorted(directory.iterdir()):
        if path.is_file() and path.suffix in PROFILE_SUFFIXES:
            yield path
