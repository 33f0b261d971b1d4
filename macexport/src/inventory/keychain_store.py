from pathlib import Path
from typing import Callable, List, Optional, Sequence
import re
import subprocess

from asn1crypto import pem

from macexport.logger import get_console, log_debug
from macexport.src.core.errors import InventoryUnavailable
from macexport.src.inventory.inventory import fingerprint_of
from macexport.src.inventory.profile_reader import dump_prov, iter_profile_files

DEFAULT_PROFILES_DIRS = (
    Path.home() / "Library" / "MobileDevice" / "Provisioning Profiles",
    Path.home() / "Library" / "Developer" / "Xcode" / "UserData" / "Provisioning Profiles",
)

_IDENTITY_LINE_RE = re.compile(r'^\s*\d+\)\s+([0-9A-Fa-f]{40})\s+"(.*)"')


class KeychainStore:
    """Reads installed signing identities and provisioning profiles from the system"""

    def __init__(
        self,
        keychain: Optional[str] = None,
        profiles_dirs: Optional[Sequence[Path]] = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.console = get_console()
        self.keychain = keychain
        self.profiles_dirs = [
            Path(d) for d in (profiles_dirs if profiles_dirs else DEFAULT_PROFILES_DIRS)
        ]
        self._runner = runner

    def _security(self, *args: str) -> str:
        cmd = ["security", *args]
        if self.keychain:
            cmd.append(self.keychain)
        try:
            result = self._runner(cmd, capture_output=True, text=True, check=True)
        except FileNotFoundError as e:
            raise InventoryUnavailable(f"security tool not available: {e}")
        except subprocess.CalledProcessError as e:
            raise InventoryUnavailable(
                f"Command failed: {' '.join(cmd)}\nstdout: {e.stdout}\nstderr: {e.stderr}"
            )
        return result.stdout

    def identity_fingerprints(self) -> set:
        """SHA-1 fingerprints of certificates that have a private key"""
        output = self._security("find-identity", "-p", "basic")
        fingerprints = set()
        for line in output.splitlines():
            match = _IDENTITY_LINE_RE.match(line)
            if match:
                fingerprints.add(match.group(1).upper())
        return fingerprints

    def all_certificates(self) -> List[bytes]:
        """DER encodings of every certificate in the keychain search list"""
        output = self._security("find-certificate", "-a", "-p")
        data = output.encode()
        if not pem.detect(data):
            return []
        return [der for _, _, der in pem.unarmor(data, multiple=True)]

    def identity_certificates(self) -> List[bytes]:
        """DER encodings of the certificates usable for signing"""
        identities = self.identity_fingerprints()
        certificates = [
            der for der in self.all_certificates() if fingerprint_of(der) in identities
        ]
        log_debug(f"Found {len(certificates)} signing identities")
        return certificates

    def provisioning_profiles(self) -> List[dict]:
        """Decoded plists of every installed provisioning profile"""
        profiles = []
        for directory in self.profiles_dirs:
            if not directory.exists():
                log_debug(f"Profiles directory not found: {directory}")
                continue
            try:
                files = list(iter_profile_files(directory))
            except OSError as e:
                raise InventoryUnavailable(f"Failed to list {directory}: {e}")

            for path in files:
                try:
                    profiles.append(dump_prov(path))
                except Exception as e:
                    self.console.print(
                        f"[yellow]Warning:[/] Failed to read provisioning profile {path.name}: {e}"
                    )
        return profiles
