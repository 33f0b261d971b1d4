# Capabilities a macOS provisioning profile grants, keyed by their portal name.
# Entitlements outside this table (sandbox, hardened runtime, identifiers)
# are signed into the binary directly and never checked against a profile.
CAPABILITY_MAPPING = {
    "Access Wi-Fi Information": ["com.apple.developer.networking.wifi-info"],
    "App Attest": ["com.apple.developer.devicecheck.appattest-environment"],
    "App Groups": ["com.apple.security.application-groups"],
    "Apple Pay Payment Processing": ["com.apple.developer.in-app-payments"],
    "Associated Domains": [
        "com.apple.developer.associated-domains",
        "com.apple.developer.associated-domains.mdm-managed",
    ],
    "AutoFill Credential Provider": [
        "com.apple.developer.authentication-services.autofill-credential-provider"
    ],
    "ClassKit": ["com.apple.developer.ClassKit-environment"],
    "Communication Notifications": [
        "com.apple.developer.usernotifications.communication"
    ],
    "Custom Network Protocol": ["com.apple.developer.networking.custom-protocol"],
    "Data Protection": ["com.apple.developer.default-data-protection"],
    "DriverKit": [
        "com.apple.developer.driverkit",
        "com.apple.developer.driverkit.allow-third-party-userclients",
        "com.apple.developer.driverkit.communicates-with-drivers",
        "com.apple.developer.driverkit.family.audio",
        "com.apple.developer.driverkit.family.hid.device",
        "com.apple.developer.driverkit.family.hid.eventservice",
        "com.apple.developer.driverkit.family.networking",
        "com.apple.developer.driverkit.family.serial",
        "com.apple.developer.driverkit.transport.hid",
        "com.apple.developer.driverkit.transport.usb",
    ],
    "Family Controls": ["com.apple.developer.family-controls"],
    "FileProvider Testing Mode": ["com.apple.developer.fileprovider.testing-mode"],
    "Fonts": ["com.apple.developer.user-fonts"],
    "FSKit Module": ["com.apple.developer.fskit.fsmodule"],
    "Game Center": ["com.apple.developer.game-center"],
    "Group Activities": ["com.apple.developer.group-session"],
    "HealthKit": [
        "com.apple.developer.healthkit",
        "com.apple.developer.healthkit.access",
    ],
    "HomeKit": ["com.apple.developer.homekit"],
    "iCloud": [
        "com.apple.developer.ubiquity-kvstore-identifier",
        "com.apple.developer.ubiquity-container-identifiers",
        "com.apple.developer.icloud-services",
        "com.apple.developer.icloud-container-environment",
        "com.apple.developer.icloud-container-identifiers",
        "com.apple.developer.icloud-container-development-container-identifiers",
    ],
    "Mac Catalyst": ["com.apple.developer.associated-application-identifier"],
    "Maps": ["com.apple.developer.maps"],
    "Media Extension Format Reader": ["com.apple.developer.mediaextension.formatreader"],
    "Media Extension Video Decoder": ["com.apple.developer.mediaextension.videodecoder"],
    "Network Extensions": ["com.apple.developer.networking.networkextension"],
    "Personal VPN": ["com.apple.developer.networking.vpn.api"],
    "Push Notifications": ["com.apple.developer.aps-environment", "aps-environment"],
    "Sign In with Apple": ["com.apple.developer.applesignin"],
    "Siri": ["com.apple.developer.siri"],
    "System Extension": ["com.apple.developer.system-extension.install"],
    "Time Sensitive Notifications": [
        "com.apple.developer.usernotifications.time-sensitive"
    ],
    "User Management": ["com.apple.developer.user-management"],
    "VMNet": ["com.apple.developer.networking.vmnet"],
    "Wallet": ["com.apple.developer.pass-type-identifiers"],
    "WeatherKit": ["com.apple.developer.weatherkit"],
}

PROFILE_ENTITLEMENT_KEYS = frozenset(
    key for keys in CAPABILITY_MAPPING.values() for key in keys
)


def provisioned_entitlement_keys(entitlements: dict) -> frozenset:
    """Keys of the given entitlements that must be granted by a provisioning profile"""
    return frozenset(key for key in entitlements if key in PROFILE_ENTITLEMENT_KEYS)


def capability_names(entitlement_keys) -> list:
    """Portal capability names enabled by a set of entitlement keys"""
    return sorted(
        name
        for name, keys in CAPABILITY_MAPPING.items()
        if any(key in entitlement_keys for key in keys)
    )
