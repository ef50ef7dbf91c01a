"""
Binding over pyOpenSSL

Every call is handed to OpenSSL as-is, so argument checking and session
preconditions are whatever the linked OpenSSL build enforces. OpenSSL does
not require credentials or trust material at SSL_new() time, which the
session checks report as failures.
"""

import os

import OpenSSL
from OpenSSL import SSL

from .errors import AllocationFailure, InvalidArgument, NotFound, UnsupportedEncoding
from .library import FileType, Protocol, Role, TLSLibrary

# Candidate pyOpenSSL constants per protocol, most specific first.
# "{role}" expands to SERVER or CLIENT.
METHOD_CONSTANTS = {
    Protocol.SSLV2: ('SSLv2_METHOD',),
    Protocol.SSLV3: ('SSLv3_METHOD',),
    Protocol.TLSV1: ('TLSv1_METHOD',),
    Protocol.TLSV1_1: ('TLSv1_1_METHOD',),
    Protocol.TLSV1_2: ('TLSv1_2_METHOD',),
    Protocol.TLSV1_3: (),
    Protocol.DTLSV1: ('DTLS_{role}_METHOD', 'DTLS_METHOD'),
    Protocol.SSLV23: ('TLS_{role}_METHOD', 'SSLv23_METHOD'),
}


class PyOpenSSLLibrary(TLSLibrary):
    """TLSLibrary binding backed by pyOpenSSL"""

    name = "pyOpenSSL"

    @property
    def version(self) -> str:
        return OpenSSL.__version__

    def _allocate_method(self, protocol, role):
        for template in METHOD_CONSTANTS[protocol]:
            constant = getattr(SSL, template.format(role=role.name), None)
            if constant is None:
                continue
            # Probe: OpenSSL builds without a protocol still define the constant
            try:
                SSL.Context(constant)
            except (ValueError, SSL.Error) as e:
                raise AllocationFailure(f"{protocol.label} is disabled in this OpenSSL build: {e}") from e
            return constant
        raise AllocationFailure(f"pyOpenSSL has no {protocol.label} method")

    def _create_context(self, method):
        try:
            return SSL.Context(method.native)
        except (ValueError, TypeError, SSL.Error) as e:
            raise AllocationFailure(f"SSL.Context({method.name}) failed: {e}") from e

    def _use_certificate(self, context, path, filetype):
        encoding = FileType.recognize(filetype)
        try:
            context.native.use_certificate_file(path, int(encoding))
        except (SSL.Error, TypeError, ValueError) as e:
            raise _classify(path, e) from e
        return os.fspath(path)

    def _use_private_key(self, context, path, filetype):
        encoding = FileType.recognize(filetype)
        try:
            context.native.use_privatekey_file(path, int(encoding))
        except (SSL.Error, TypeError, ValueError) as e:
            raise _classify(path, e) from e
        return os.fspath(path)

    def _load_trust_store(self, context, cafile, capath):
        try:
            context.native.load_verify_locations(cafile, capath)
        except (SSL.Error, TypeError, ValueError) as e:
            if cafile is None and capath is None:
                raise InvalidArgument("neither CA file nor CA directory given") from e
            raise _classify(cafile if cafile is not None else capath, e) from e
        return (cafile, capath)

    def _new_session(self, context):
        try:
            connection = SSL.Connection(context.native, None)
        except SSL.Error as e:
            raise AllocationFailure(f"SSL.Connection failed: {e}") from e

        if context.role is Role.SERVER:
            connection.set_accept_state()
        else:
            connection.set_connect_state()
        return connection


def _classify(path, error):
    if path is None or isinstance(error, TypeError):
        return InvalidArgument(str(error) or "invalid argument")
    if not os.path.exists(path):
        return NotFound(f"{path} does not exist")
    return UnsupportedEncoding(f"OpenSSL rejected {path}: {error}")
