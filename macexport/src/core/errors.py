from typing import Iterable


class ExportError(Exception):
    """Base class for failures that terminate an export run"""


class MalformedArchive(ExportError):
    pass


class InventoryUnavailable(ExportError):
    pass


class NoSigningGroupFound(ExportError):
    def __init__(self, bundle_ids: Iterable[str], export_method: str):
        self.bundle_ids = tuple(sorted(bundle_ids))
        self.export_method = export_method
        super().__init__(
            f"No code signing group found for export method '{export_method}' "
            f"covering bundle IDs: {', '.join(self.bundle_ids)}. "
            "Install a certificate and matching provisioning profiles for every bundle ID."
        )


class NoInstallerCertificateFound(ExportError):
    def __init__(self, team_id: str):
        self.team_id = team_id
        super().__init__(
            f"No installer certificate found for team {team_id}. "
            "Install a Mac Installer Distribution certificate to export for the App Store."
        )
