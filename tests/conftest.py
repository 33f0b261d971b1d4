import pytest

from macexport.logger import set_verbose


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep the user's config, environment and verbosity out of the tests."""
    monkeypatch.setenv("MACEXPORT_CONFIG", str(tmp_path / "no-config.toml"))
    for name in (
        "MACEXPORT_EXPORT_METHOD",
        "MACEXPORT_PROFILES_DIR",
        "MACEXPORT_KEYCHAIN",
        "MACEXPORT_VERBOSE",
    ):
        monkeypatch.delenv(name, raising=False)
    set_verbose(False)
    yield
    set_verbose(False)
