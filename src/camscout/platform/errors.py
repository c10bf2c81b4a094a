from __future__ import annotations


class TransportUnavailableError(RuntimeError):
    """A scan technology is switched off or missing on this host."""


class WifiUnavailableError(TransportUnavailableError):
    pass


class BluetoothUnavailableError(TransportUnavailableError):
    pass


class WifiScanError(RuntimeError):
    """A fresh WiFi scan could not be completed; cached results may still exist."""
