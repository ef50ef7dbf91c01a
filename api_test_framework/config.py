"""
Configuration loader for the TLS API test framework
"""

import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, List, Optional

from .library import Protocol

REQUIRED_FIXTURES = ('cert', 'key', 'ca', 'bogus')
OPTIONAL_FIXTURES = ('ca_dir', 'cert_der', 'key_der', 'missing')


@dataclass(frozen=True)
class FixturePaths:
    """Credential and trust-store files the checkers load"""
    cert: str
    key: str
    ca: str
    bogus: str
    ca_dir: Optional[str] = None
    cert_der: Optional[str] = None
    key_der: Optional[str] = None
    missing: Optional[str] = None

    @staticmethod
    def from_dict(data: Dict[str, Any], base_dir: Path) -> 'FixturePaths':
        """
        Build fixture paths from a configuration mapping

        Args:
            data: Mapping with at least 'cert', 'key', 'ca' and 'bogus'
            base_dir: Directory relative paths are resolved against

        Raises:
            ValueError: If a required fixture is missing
        """
        missing = [k for k in REQUIRED_FIXTURES if not data.get(k)]
        if missing:
            raise ValueError(f"Fixture(s) missing from configuration: {', '.join(missing)}")

        paths = {}
        for key in REQUIRED_FIXTURES + OPTIONAL_FIXTURES:
            value = data.get(key)
            paths[key] = _resolve(value, base_dir) if value else None

        if paths['missing'] is None:
            paths['missing'] = str(Path(paths['cert']).with_name('does-not-exist.pem'))
        return FixturePaths(**paths)


@dataclass(frozen=True)
class TargetConfig:
    """One library under test and what its build is expected to support"""
    key: str
    name: str
    backend: str
    enabled_protocols: List[Protocol]
    disabled_protocols: List[Protocol]
    fixtures: FixturePaths


def _resolve(value: str, base_dir: Path) -> str:
    path = Path(value)
    if not path.is_absolute():
        path = base_dir / path
    return str(path)


class TestConfig:
    """Load and manage testing configuration from YAML file"""

    def __init__(self, config_path: str = 'config.yaml'):
        """
        Initialize configuration loader

        Args:
            config_path: Path to YAML configuration file

        Raises:
            FileNotFoundError: If the file does not exist
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(self.config_path) as f:
            self.config = yaml.safe_load(f) or {}

        self.base_dir = self.config_path.resolve().parent

    def get_implementation(self, name: str) -> Dict[str, Any]:
        """
        Get configuration for a specific TLS implementation

        Args:
            name: Implementation name (e.g., 'tlslite', 'pyopenssl')

        Returns:
            Dictionary with implementation configuration

        Raises:
            ValueError: If implementation not found or disabled
        """
        impl = self.config.get('implementations', {}).get(name)
        if not impl:
            raise ValueError(f"Implementation '{name}' not found in configuration")
        if not impl.get('enabled', True):
            raise ValueError(f"Implementation '{name}' is disabled")
        return impl

    def list_implementations(self, enabled_only: bool = True) -> List[str]:
        """
        List all available implementations

        Args:
            enabled_only: If True, only return enabled implementations

        Returns:
            List of implementation names
        """
        impls = []
        for name, config in self.config.get('implementations', {}).items():
            if enabled_only and not config.get('enabled', True):
                continue
            impls.append(name)
        return impls

    def get_fixtures(self, impl: Optional[Dict[str, Any]] = None) -> FixturePaths:
        """
        Get fixture paths, with per-implementation overrides applied

        Args:
            impl: Optional implementation configuration with a 'fixtures' mapping
        """
        data = dict(self.config.get('fixtures', {}))
        if impl and impl.get('fixtures'):
            data.update(impl['fixtures'])
        return FixturePaths.from_dict(data, self.base_dir)

    def get_target(self, name: str) -> TargetConfig:
        """
        Resolve an implementation into a TargetConfig

        Raises:
            ValueError: If the implementation is unknown, disabled, or lists
                an unknown protocol
        """
        impl = self.get_implementation(name)
        protocols = impl.get('protocols', {})
        return TargetConfig(
            key=name,
            name=impl.get('name', name),
            backend=impl.get('backend', name),
            enabled_protocols=[Protocol.from_name(p) for p in protocols.get('enabled', [])],
            disabled_protocols=[Protocol.from_name(p) for p in protocols.get('disabled', [])],
            fixtures=self.get_fixtures(impl)
        )

    def get_test_execution_settings(self) -> Dict[str, Any]:
        """Get test execution settings"""
        settings = {'continue_on_error': True}
        settings.update(self.config.get('test_execution', {}))
        return settings

    def get_reporting_settings(self) -> Dict[str, Any]:
        """Get reporting settings"""
        settings = {'strict_exit': False}
        settings.update(self.config.get('reporting', {}))
        return settings
