"""Domain-specific errors for buscmd."""


class BuscmdError(Exception):
    """Base error for buscmd."""


class CatalogError(BuscmdError):
    """Base error for command catalog problems."""


class CatalogMalformedError(CatalogError):
    """Raised when a catalog source is not a well-formed list of command records."""


class CatalogLoadError(CatalogError):
    """Raised when reading a catalog file fails."""


class CommandNotFoundError(CatalogError):
    """Raised when a command index or name does not resolve."""


class EncodeError(BuscmdError):
    """Base error for command encoding failures."""


class ExtraValueOutOfRangeError(EncodeError):
    """Raised when a command parameter is missing or outside its [min, max] range."""


class InvalidAddressError(EncodeError):
    """Raised when a bus address is missing or outside 0x0-0xF."""


class SendError(BuscmdError):
    """Base error for transmission failures."""


class NoAddressSelectedError(SendError):
    """Raised when an addressable command is fired without any target address."""


class TransportFailureError(SendError):
    """Raised when the byte sink fails mid-sequence.

    ``sent`` holds the frames written before the failure; they are not undone.
    """

    def __init__(self, message: str, *, cause: BaseException, sent: tuple = ()) -> None:
        super().__init__(message)
        self.cause = cause
        self.sent = sent


class TransportError(BuscmdError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised when the serial port cannot be opened."""


class TransportSendError(TransportError):
    """Raised when writing bytes fails."""


class TransportReceiveError(TransportError):
    """Raised when reading bytes fails."""


class SettingsError(BuscmdError):
    """Raised when the settings file is unreadable or invalid."""
