"""
Boundary of the TLS library under test

The harness never talks to a TLS library directly. Each library is wrapped in
a TLSLibrary subclass (a binding) that exposes the same handle-based
lifecycle: methods, contexts and sessions are allocated, consumed and
released explicitly, and every handle is tracked in a ResourceLedger so that
leaks and double releases are observable.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .errors import AllocationFailure, HarnessError, InvalidArgument, UnsupportedEncoding


class Protocol(Enum):
    """Protocol versions a method can be allocated for"""
    SSLV2 = "sslv2"
    SSLV3 = "sslv3"
    TLSV1 = "tlsv1"
    TLSV1_1 = "tlsv1_1"
    TLSV1_2 = "tlsv1_2"
    TLSV1_3 = "tlsv1_3"
    DTLSV1 = "dtlsv1"
    SSLV23 = "sslv23"  # version-flexible

    @property
    def label(self) -> str:
        return _PROTOCOL_LABELS[self]

    @classmethod
    def from_name(cls, name: str) -> 'Protocol':
        try:
            return cls(str(name).lower())
        except ValueError:
            known = ', '.join(p.value for p in cls)
            raise ValueError(f"Unknown protocol '{name}' (known: {known})") from None


_PROTOCOL_LABELS = {
    Protocol.SSLV2: "SSLv2",
    Protocol.SSLV3: "SSLv3",
    Protocol.TLSV1: "TLSv1",
    Protocol.TLSV1_1: "TLSv1.1",
    Protocol.TLSV1_2: "TLSv1.2",
    Protocol.TLSV1_3: "TLSv1.3",
    Protocol.DTLSV1: "DTLSv1",
    Protocol.SSLV23: "SSLv23",
}


class Role(Enum):
    SERVER = "server"
    CLIENT = "client"


class FileType(IntEnum):
    """Encoding tags accepted by the credential loaders"""
    PEM = 1
    ASN1 = 2

    @classmethod
    def recognize(cls, value: Any) -> 'FileType':
        """Return the matching tag or raise UnsupportedEncoding"""
        if isinstance(value, bool):
            raise UnsupportedEncoding(f"file type {value!r} not recognized")
        try:
            return cls(value)
        except (ValueError, TypeError):
            raise UnsupportedEncoding(f"file type {value!r} not recognized") from None


class ReturnCode(IntEnum):
    FAILURE = 0
    SUCCESS = 1


class ContextState(Enum):
    UNCONFIGURED = "unconfigured"
    CREDENTIALED_SERVER = "credentialed-server"
    TRUSTED_CLIENT = "trusted-client"
    DESTROYED = "destroyed"


class ResourceLedger:
    """Record of every live handle, keyed by handle id"""

    def __init__(self):
        self._next_id = 1
        self._live: Dict[int, str] = {}
        self.double_releases = 0

    def track(self, kind: str) -> int:
        handle_id = self._next_id
        self._next_id += 1
        self._live[handle_id] = kind
        return handle_id

    def release(self, handle_id: int) -> bool:
        """
        Mark a handle released

        Returns:
            False if the handle was not live (a double release)
        """
        if handle_id not in self._live:
            self.double_releases += 1
            return False
        del self._live[handle_id]
        return True

    def is_live(self, handle_id: int) -> bool:
        return handle_id in self._live

    def outstanding(self, kind: Optional[str] = None) -> List[Tuple[int, str]]:
        return sorted((i, k) for i, k in self._live.items() if kind is None or k == kind)

    def __repr__(self):
        return f"ResourceLedger({len(self._live)} live, {self.double_releases} double releases)"


class ProtocolMethod:
    """Descriptor of a protocol version and role, plus the binding's native value"""

    def __init__(self, protocol: Protocol, role: Role, native: Any, handle_id: int):
        self.protocol = protocol
        self.role = role
        self.native = native
        self.handle_id = handle_id
        self.owner: Optional['Context'] = None
        self.released = False

    @property
    def name(self) -> str:
        return f"{self.protocol.label} {self.role.value}"

    def __repr__(self):
        owner = f"context#{self.owner.handle_id}" if self.owner else "caller"
        return f"ProtocolMethod#{self.handle_id}({self.name}, owner={owner})"


class Context:
    """Configuration object owning one method, credentials and trust material"""

    def __init__(self, method: ProtocolMethod, native: Any, handle_id: int):
        self.method = method
        self.native = native
        self.handle_id = handle_id
        self.certificate: Any = None
        self.private_key: Any = None
        self.trust_material: Any = None
        # Trust loads replaced by a later load; their material is never released.
        self.superseded_trust_loads = 0
        self.destroyed = False

    @property
    def role(self) -> Role:
        return self.method.role

    @property
    def has_credentials(self) -> bool:
        return self.certificate is not None and self.private_key is not None

    @property
    def state(self) -> ContextState:
        if self.destroyed:
            return ContextState.DESTROYED
        trusted = self.trust_material is not None
        if self.has_credentials and (self.role is Role.SERVER or not trusted):
            return ContextState.CREDENTIALED_SERVER
        if trusted:
            return ContextState.TRUSTED_CLIENT
        return ContextState.UNCONFIGURED

    def __repr__(self):
        return f"Context#{self.handle_id}({self.method.name}, {self.state.value})"


class Session:
    """Per-connection object bound to exactly one context"""

    def __init__(self, context: Context, native: Any, handle_id: int):
        self.context = context
        self.native = native
        self.handle_id = handle_id
        self.released = False

    @property
    def role(self) -> Role:
        return self.context.role

    def __repr__(self):
        return f"Session#{self.handle_id}(context#{self.context.handle_id}, {self.role.value})"


@dataclass(frozen=True)
class OwningContext:
    """Context creation succeeded; the context now owns the method"""
    context: Context

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ContextFailure:
    """Context creation failed; ownership of ``method`` stays with the caller"""
    method: Optional[ProtocolMethod]
    error: HarnessError

    @property
    def ok(self) -> bool:
        return False

    @property
    def context(self) -> None:
        return None


ContextResult = Union[OwningContext, ContextFailure]


class TLSLibrary(ABC):
    """
    Handle-based lifecycle API of a TLS library

    Public operations never raise HarnessError: expected failures come back as
    ReturnCode.FAILURE, None or ContextFailure, and the cause is kept in
    ``last_error``. Any other exception escaping an operation is a crash of
    the library under test.

    Subclasses implement the underscore hooks and signal expected failures by
    raising HarnessError subclasses.
    """

    name = "abstract"

    def __init__(self):
        self.ledger = ResourceLedger()
        self.last_error: Optional[HarnessError] = None
        self.initialized = False
        self._fail_next_allocation = False

    @property
    @abstractmethod
    def version(self) -> str:
        """Version string of the wrapped library"""

    # Library-wide lifecycle

    def init(self) -> ReturnCode:
        self.last_error = None
        try:
            self._init()
        except HarnessError as e:
            return self._fail(e)
        self.initialized = True
        return ReturnCode.SUCCESS

    def cleanup(self) -> ReturnCode:
        self.last_error = None
        try:
            self._cleanup()
        except HarnessError as e:
            return self._fail(e)
        self.initialized = False
        return ReturnCode.SUCCESS

    def fail_next_allocation(self):
        """Make the next context creation fail as if memory were exhausted"""
        self._fail_next_allocation = True

    # Methods

    def allocate_method(self, protocol: Protocol, role: Role) -> Optional[ProtocolMethod]:
        self.last_error = None
        try:
            native = self._allocate_method(protocol, role)
        except HarnessError as e:
            self.last_error = e
            return None
        return ProtocolMethod(protocol, role, native, self.ledger.track("method"))

    def free_method(self, method: Optional[ProtocolMethod]) -> ReturnCode:
        """Release a caller-owned method; context-owned or released methods are rejected"""
        self.last_error = None
        if method is None:
            return self._fail(InvalidArgument("method is None"))
        if method.owner is not None:
            return self._fail(InvalidArgument(
                f"method is owned by context #{method.owner.handle_id}"))
        if method.released:
            return self._fail(InvalidArgument(f"method #{method.handle_id} already released"))
        method.released = True
        self.ledger.release(method.handle_id)
        return ReturnCode.SUCCESS

    # Contexts

    def create_context(self, method: Optional[ProtocolMethod]) -> ContextResult:
        self.last_error = None
        if method is None:
            return self._context_failure(None, InvalidArgument("method is None"))
        if method.released:
            return self._context_failure(
                method, InvalidArgument(f"method #{method.handle_id} already released"))
        if method.owner is not None:
            return self._context_failure(method, InvalidArgument(
                f"method is already owned by context #{method.owner.handle_id}"))
        if self._fail_next_allocation:
            self._fail_next_allocation = False
            return self._context_failure(method, AllocationFailure("injected allocation failure"))

        try:
            native = self._create_context(method)
        except HarnessError as e:
            return self._context_failure(method, e)

        context = Context(method, native, self.ledger.track("context"))
        method.owner = context
        return OwningContext(context)

    def free_context(self, context: Optional[Context]):
        """Destroy a context and everything it owns; repeated calls are no-ops"""
        if context is None or context.destroyed:
            return
        self._free_context(context)
        context.destroyed = True
        context.certificate = None
        context.private_key = None
        context.trust_material = None

        method = context.method
        method.owner = None
        method.released = True
        self.ledger.release(method.handle_id)
        self.ledger.release(context.handle_id)

    # Credentials and trust material

    def load_certificate(self, context: Optional[Context], path: Any, filetype: Any) -> ReturnCode:
        self.last_error = None
        try:
            self._require_context(context)
            material = self._use_certificate(context, path, filetype)
        except HarnessError as e:
            return self._fail(e)
        context.certificate = material
        return ReturnCode.SUCCESS

    def load_private_key(self, context: Optional[Context], path: Any, filetype: Any) -> ReturnCode:
        self.last_error = None
        try:
            self._require_context(context)
            material = self._use_private_key(context, path, filetype)
        except HarnessError as e:
            return self._fail(e)
        context.private_key = material
        return ReturnCode.SUCCESS

    def load_trust_store(self, context: Optional[Context], cafile: Any, capath: Any) -> ReturnCode:
        """
        Load verify locations onto a context

        A later successful load replaces the earlier material instead of
        adding to it; the replaced material is counted, not released.
        """
        self.last_error = None
        try:
            self._require_context(context)
            material = self._load_trust_store(context, cafile, capath)
        except HarnessError as e:
            return self._fail(e)
        if context.trust_material is not None:
            context.superseded_trust_loads += 1
        context.trust_material = material
        return ReturnCode.SUCCESS

    # Sessions

    def new_session(self, context: Optional[Context]) -> Optional[Session]:
        self.last_error = None
        try:
            self._require_context(context)
            native = self._new_session(context)
        except HarnessError as e:
            self.last_error = e
            return None
        return Session(context, native, self.ledger.track("session"))

    def free_session(self, session: Optional[Session]):
        if session is None or session.released:
            return
        self._free_session(session)
        session.released = True
        self.ledger.release(session.handle_id)

    # Helpers

    def _fail(self, error: HarnessError) -> ReturnCode:
        self.last_error = error
        return ReturnCode.FAILURE

    def _context_failure(self, method, error: HarnessError) -> ContextFailure:
        self.last_error = error
        return ContextFailure(method=method, error=error)

    @staticmethod
    def _require_context(context: Optional[Context]):
        if context is None:
            raise InvalidArgument("context is None")
        if context.destroyed:
            raise InvalidArgument(f"context #{context.handle_id} is destroyed")

    # Binding hooks

    def _init(self):
        pass

    def _cleanup(self):
        pass

    @abstractmethod
    def _allocate_method(self, protocol: Protocol, role: Role) -> Any:
        """Return the native method value or raise AllocationFailure"""

    @abstractmethod
    def _create_context(self, method: ProtocolMethod) -> Any:
        """Return the native context"""

    def _free_context(self, context: Context):
        pass

    @abstractmethod
    def _use_certificate(self, context: Context, path: Any, filetype: Any) -> Any:
        """Return the loaded certificate material"""

    @abstractmethod
    def _use_private_key(self, context: Context, path: Any, filetype: Any) -> Any:
        """Return the loaded private key material"""

    @abstractmethod
    def _load_trust_store(self, context: Context, cafile: Any, capath: Any) -> Any:
        """Return the loaded trust material"""

    @abstractmethod
    def _new_session(self, context: Context) -> Any:
        """Return the native session"""

    def _free_session(self, session: Session):
        pass

    def __repr__(self):
        return f"{type(self).__name__}({self.name} {self.version})"


@contextmanager
def managed_context(library: TLSLibrary, protocol: Protocol, role: Role) -> Iterator[Optional[Context]]:
    """
    Allocate a method and a context from it, releasing both on exit

    Yields None when either step fails; ``library.last_error`` then holds the
    cause. A method refused by context creation is released here, since
    ownership stays with the caller.
    """
    method = library.allocate_method(protocol, role)
    if method is None:
        yield None
        return

    result = library.create_context(method)
    if result.context is None:
        library.free_method(result.method)
        library.last_error = result.error
        yield None
        return

    try:
        yield result.context
    finally:
        library.free_context(result.context)


def create_library(backend: str) -> TLSLibrary:
    """
    Instantiate a binding by backend name

    Args:
        backend: 'tlslite' or 'pyopenssl'

    Raises:
        ValueError: If the backend is unknown
    """
    if backend == 'tlslite':
        from .tlslite_library import TlsliteLibrary
        return TlsliteLibrary()
    if backend == 'pyopenssl':
        from .pyopenssl_library import PyOpenSSLLibrary
        return PyOpenSSLLibrary()
    raise ValueError(f"Unknown library backend '{backend}'")
