from pathlib import Path

import pytest

from api_test_framework import config as cfg
from api_test_framework.library import Protocol
from api_test_framework.recorder import SubTestRecorder
from api_test_framework.tlslite_library import TlsliteLibrary

ROOT = Path(__file__).resolve().parent.parent
CERTS = ROOT / 'certs'
CONFIG_PATH = ROOT / 'config.yaml'


@pytest.fixture
def fixtures():
    return cfg.FixturePaths(
        cert=str(CERTS / 'server-cert.pem'),
        key=str(CERTS / 'server-key.pem'),
        ca=str(CERTS / 'ca-cert.pem'),
        bogus='/dev/null',
        ca_dir=str(CERTS / 'ca'),
        cert_der=str(CERTS / 'server-cert.der'),
        key_der=str(CERTS / 'server-key.der'),
        missing=str(CERTS / 'does-not-exist.pem'),
    )


@pytest.fixture
def target(fixtures):
    return cfg.TargetConfig(
        key='tlslite',
        name='tlslite-ng',
        backend='tlslite',
        enabled_protocols=[Protocol.TLSV1, Protocol.TLSV1_1, Protocol.TLSV1_2, Protocol.TLSV1_3,
                           Protocol.SSLV23],
        disabled_protocols=[Protocol.SSLV2, Protocol.DTLSV1],
        fixtures=fixtures,
    )


@pytest.fixture
def library():
    return TlsliteLibrary()


@pytest.fixture
def repo_config():
    return cfg.TestConfig(str(CONFIG_PATH))


@pytest.fixture
def make_recorder(library):
    def factory(check_id='check', lib=None):
        return SubTestRecorder(check_id, lib or library, 'tlslite-ng', 'test')
    return factory
