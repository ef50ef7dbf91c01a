"""
Reference binding over tlslite-ng

Methods map to protocol version ranges checked against tlslite's
KNOWN_VERSIONS, contexts are validated HandshakeSettings, and credentials are
parsed with tlslite's X509 / X509CertChain / parsePEMKey. Session creation
enforces the role preconditions before handing back the parameters a
TLSConnection handshake would be driven with.
"""

import base64
from collections import namedtuple
from pathlib import Path

import tlslite
from tlslite.api import HandshakeSettings, X509, X509CertChain, parsePEMKey
from tlslite.handshakesettings import KNOWN_VERSIONS

from .errors import AllocationFailure, InvalidArgument, NotFound, PreconditionUnmet, UnsupportedEncoding
from .library import FileType, Protocol, Role, TLSLibrary

# Record-layer version tuples as tlslite spells them
PROTOCOL_VERSIONS = {
    Protocol.SSLV2: (2, 0),
    Protocol.SSLV3: (3, 0),
    Protocol.TLSV1: (3, 1),
    Protocol.TLSV1_1: (3, 2),
    Protocol.TLSV1_2: (3, 3),
    Protocol.TLSV1_3: (3, 4),
    Protocol.DTLSV1: (254, 255),
}

# Malformed input surfaces from tlslite's parsers as one of these
PARSE_ERRORS = (SyntaxError, ValueError, TypeError, IndexError)

VersionRange = namedtuple('VersionRange', ['min_version', 'max_version'])

SessionParams = namedtuple('SessionParams', ['role', 'settings', 'cert_chain', 'private_key', 'trust_anchors'])


class TlsliteLibrary(TLSLibrary):
    """TLSLibrary binding backed by tlslite-ng"""

    name = "tlslite-ng"

    @property
    def version(self) -> str:
        return getattr(tlslite, '__version__', 'unknown')

    def _allocate_method(self, protocol, role):
        if protocol is Protocol.SSLV23:
            return VersionRange(None, None)

        version = PROTOCOL_VERSIONS[protocol]
        if version not in KNOWN_VERSIONS:
            raise AllocationFailure(f"{protocol.label} is not supported by tlslite-ng")
        return VersionRange(version, version)

    def _create_context(self, method):
        settings = HandshakeSettings()
        if method.native.min_version is not None:
            settings.minVersion = method.native.min_version
            settings.maxVersion = method.native.max_version
        try:
            return settings.validate()
        except ValueError as e:
            raise AllocationFailure(f"{method.name} settings rejected: {e}") from e

    def _use_certificate(self, context, path, filetype):
        encoding = FileType.recognize(filetype)
        data = _read_file(path)
        if not data.strip():
            raise NotFound(f"no certificate found in {path}")

        if encoding is FileType.PEM:
            chain = X509CertChain()
            try:
                chain.parsePemList(data.decode('ascii'))
            except PARSE_ERRORS as e:
                raise UnsupportedEncoding(f"{path} is not a PEM certificate: {e}") from e
            if not chain.x509List:
                raise UnsupportedEncoding(f"{path} holds no PEM certificate")
            return chain

        x509 = X509()
        try:
            x509.parseBinary(bytearray(data))
        except PARSE_ERRORS as e:
            raise UnsupportedEncoding(f"{path} is not a DER certificate: {e}") from e
        return X509CertChain([x509])

    def _use_private_key(self, context, path, filetype):
        encoding = FileType.recognize(filetype)
        data = _read_file(path)
        if not data.strip():
            raise NotFound(f"no private key found in {path}")

        if encoding is FileType.PEM:
            try:
                return parsePEMKey(data.decode('ascii'), private=True, implementations=["python"])
            except PARSE_ERRORS as e:
                raise UnsupportedEncoding(f"{path} is not a PEM private key: {e}") from e

        # tlslite only reads armored keys; try PKCS#8 first, then PKCS#1
        last_error = None
        for label in ("PRIVATE KEY", "RSA PRIVATE KEY"):
            try:
                return parsePEMKey(_armor(data, label), private=True, implementations=["python"])
            except PARSE_ERRORS as e:
                last_error = e
        raise UnsupportedEncoding(f"{path} is not a DER private key: {last_error}")

    def _load_trust_store(self, context, cafile, capath):
        if cafile is None and capath is None:
            raise InvalidArgument("neither CA file nor CA directory given")

        anchors = []
        if cafile is not None:
            anchors.extend(_read_anchors(cafile))
        if capath is not None:
            try:
                anchors.extend(_read_anchor_dir(capath))
            except (NotFound, InvalidArgument):
                # an unusable directory is ignored once the file supplied anchors
                if not anchors:
                    raise
        return tuple(anchors)

    def _new_session(self, context):
        if context.method is None:
            raise PreconditionUnmet("context has no method")

        if context.role is Role.SERVER:
            if context.certificate is None:
                raise PreconditionUnmet("server context has no certificate")
            if context.private_key is None:
                raise PreconditionUnmet("server context has no private key")
        elif not context.trust_material:
            raise PreconditionUnmet("client context has no trust store")

        return SessionParams(
            role=context.role,
            settings=context.native,
            cert_chain=context.certificate,
            private_key=context.private_key,
            trust_anchors=context.trust_material,
        )


def _read_file(path) -> bytes:
    if path is None:
        raise InvalidArgument("path is None")
    try:
        with open(path, 'rb') as f:
            return f.read()
    except FileNotFoundError as e:
        raise NotFound(f"{path} does not exist") from e
    except OSError as e:
        raise InvalidArgument(f"cannot read {path}: {e}") from e


def _armor(der: bytes, label: str) -> str:
    body = base64.encodebytes(der).decode('ascii')
    return f"-----BEGIN {label}-----\n{body}-----END {label}-----\n"


def _read_anchors(path):
    data = _read_file(path)
    if not data.strip():
        raise NotFound(f"no CA certificate found in {path}")
    chain = X509CertChain()
    try:
        chain.parsePemList(data.decode('ascii'))
    except PARSE_ERRORS as e:
        raise UnsupportedEncoding(f"{path} is not a PEM CA bundle: {e}") from e
    if not chain.x509List:
        raise UnsupportedEncoding(f"{path} holds no PEM CA certificate")
    return chain.x509List


def _read_anchor_dir(path):
    directory = Path(path)
    if not directory.is_dir():
        raise NotFound(f"{path} is not a directory")

    anchors = []
    for entry in sorted(directory.iterdir()):
        if not entry.is_file():
            continue
        try:
            anchors.extend(_read_anchors(entry))
        except (NotFound, UnsupportedEncoding, InvalidArgument):
            continue
    if not anchors:
        raise NotFound(f"no CA certificates found in {path}")
    return anchors
