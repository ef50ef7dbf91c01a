"""
TLS Library API Test Framework

This package checks the lifecycle API of a TLS library: method allocation,
context creation and destruction, credential and trust-store loading, and
session instantiation for server and client roles.
"""

__version__ = "1.0.0"
__all__ = ['config', 'errors', 'library', 'test_registry', 'recorder', 'results', 'test_runner',
           'method_tests', 'context_tests', 'credential_tests', 'trust_store_tests',
           'session_tests', 'library_tests', 'reports']
