from macexport.logger import set_verbose
from macexport.src.inventory.keychain_store import KeychainStore
from macexport.src.utils.config_loader import ExportSettings, get_export_settings


def effective_settings(args) -> ExportSettings:
    """Merge command line arguments over the config file and environment."""
    settings = get_export_settings()

    export_method = getattr(args, "export_method", None)
    if export_method:
        settings.export_method = export_method
    profiles_dirs = getattr(args, "profiles_dirs", None)
    if profiles_dirs:
        settings.profiles_dirs = list(profiles_dirs)
    keychain = getattr(args, "keychain", None)
    if keychain:
        settings.keychain = keychain
    verbose = getattr(args, "verbose", None)
    if verbose is not None:
        settings.verbose = verbose

    set_verbose(settings.verbose)
    return settings


def create_store(settings: ExportSettings) -> KeychainStore:
    return KeychainStore(
        keychain=settings.keychain, profiles_dirs=settings.profiles_dirs or None
    )
