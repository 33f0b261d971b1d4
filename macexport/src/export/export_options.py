from pathlib import Path
from typing import Any, Dict, Optional
import plistlib
from xml.parsers.expat import ExpatError

from macexport.logger import get_console
from macexport.src.core.models import (
    ExportMethod,
    ResolvedMacSigningGroup,
)
from macexport.src.core.resolver import ResolvedGroup


def build_export_options(
    export_method: ExportMethod, group: Optional[ResolvedGroup] = None
) -> Dict[str, Any]:
    """Build the exportOptions.plist dictionary consumed by xcodebuild -exportArchive.

    Without a group the export keeps the archive's own signing. With one,
    every bundle ID is mapped to the name of its provisioning profile and the
    signing certificates are named explicitly.
    """
    options: Dict[str, Any] = {"method": export_method.value}
    if group is None:
        return options

    signing_group = group.group if isinstance(group, ResolvedMacSigningGroup) else group
    certificate = signing_group.certificate
    options["signingStyle"] = "manual"
    options["teamID"] = certificate.team_id
    options["signingCertificate"] = certificate.common_name
    options["provisioningProfiles"] = {
        bundle_id: signing_group.profile_for(bundle_id).name
        for bundle_id in sorted(signing_group.bundle_ids)
    }
    if isinstance(group, ResolvedMacSigningGroup):
        options["installerSigningCertificate"] = group.installer_certificate.common_name
    return options


def parse_custom_export_options(content: str) -> Dict[str, Any]:
    """Validate user supplied export options plist content"""
    try:
        options = plistlib.loads(content.encode())
    except (ValueError, ExpatError) as e:
        raise ValueError(f"Invalid export options plist content: {e}")
    if not isinstance(options, dict):
        raise ValueError("Export options plist must contain a dictionary")
    return options


def write_export_options(path: Path, options: Dict[str, Any]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        plistlib.dump(options, f)
    get_console().print(f"[green]Wrote export options:[/] {path}")
    return path


def write_custom_export_options(path: Path, content: str) -> Path:
    """Write custom export options verbatim once they parse"""
    parse_custom_export_options(content)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    get_console().print(f"[green]Wrote custom export options:[/] {path}")
    return path
