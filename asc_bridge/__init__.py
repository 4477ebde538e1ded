"""App Store Connect bridge: signed, paced access to the App Store Connect API."""

__version__ = "1.0.0"
