"""
Error taxonomy for the TLS library bindings

Bindings raise these internally. The public TLSLibrary operations convert
them into failure return codes and keep the last one in ``last_error``.
"""


class HarnessError(Exception):
    """Base class for expected, reported failures of the library under test"""

    kind = "HarnessError"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self):
        if self.message:
            return f"{self.kind}: {self.message}"
        return self.kind


class AllocationFailure(HarnessError):
    """Resource exhaustion or a feature disabled at build time"""
    kind = "AllocationFailure"


class InvalidArgument(HarnessError):
    """Null, destroyed or malformed input"""
    kind = "InvalidArgument"


class NotFound(HarnessError):
    """Missing credential or trust file"""
    kind = "NotFound"


class UnsupportedEncoding(HarnessError):
    """Unrecognized file type tag, or content not in the requested encoding"""
    kind = "UnsupportedEncoding"


class PreconditionUnmet(HarnessError):
    """Session requested on an under-configured context"""
    kind = "PreconditionUnmet"
