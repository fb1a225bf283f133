"""Error taxonomy shared by the service adapters and routers."""


class CatalystError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(CatalystError):
    """A required credential or identifier is missing."""


class UpstreamError(CatalystError):
    """The AI provider, spreadsheet service or mail transport failed."""


class ParseError(CatalystError):
    """Provider text did not decode into the expected JSON shape."""
