from rich.text import Text

__version__ = "0.1.0"

APP_NAME = "macexport"
APP_DESCRIPTION = "Resolve certificates and provisioning profiles to export macOS archives"


def get_banner_text() -> Text:
    """Return the banner shown above the help text"""
    return Text("macexport", style="bold green")
