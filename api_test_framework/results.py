"""
Test result data structures
"""

from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime
from typing import Optional, List, Dict


class TestStatus(Enum):
    """Sub-test outcome"""
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"          # the library raised instead of reporting failure
    UNDEFINED = "undefined"  # stubbed, never exercised


@dataclass(frozen=True)
class TestResult:
    """Result of a single sub-test"""
    check_id: str
    name: str
    target: str
    target_version: str
    status: TestStatus
    duration: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)
    detail: Optional[str] = None
    error_message: Optional[str] = None
    traceback: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status == TestStatus.PASSED

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization"""
        return {
            'check_id': self.check_id,
            'name': self.name,
            'target': self.target,
            'target_version': self.target_version,
            'status': self.status.value,
            'duration': round(self.duration, 6),
            'timestamp': self.timestamp.isoformat(),
            'detail': self.detail,
            'error_message': self.error_message,
            'traceback': self.traceback
        }

    def __repr__(self):
        return f"TestResult({self.name}: {self.status.value})"


@dataclass
class TestSuiteResult:
    """Aggregated results for one run against one target"""
    target: str
    target_version: str
    checks_run: List[str]
    total_tests: int
    passed: int
    failed: int
    error: int
    undefined: int
    total_duration: float
    results: List[TestResult]
    timestamp: datetime = field(default_factory=datetime.now)

    @staticmethod
    def from_results(target: str, target_version: str, checks_run: List[str],
                     results: List[TestResult]) -> 'TestSuiteResult':
        """
        Create TestSuiteResult from a list of TestResult objects

        Args:
            target: Target implementation name
            target_version: Target version
            checks_run: Check ids in the order they ran
            results: List of TestResult objects

        Returns:
            TestSuiteResult object with aggregated statistics
        """
        return TestSuiteResult(
            target=target,
            target_version=target_version,
            checks_run=list(checks_run),
            total_tests=len(results),
            passed=sum(1 for r in results if r.status == TestStatus.PASSED),
            failed=sum(1 for r in results if r.status == TestStatus.FAILED),
            error=sum(1 for r in results if r.status == TestStatus.ERROR),
            undefined=sum(1 for r in results if r.status == TestStatus.UNDEFINED),
            total_duration=sum(r.duration for r in results),
            results=list(results)
        )

    def failures(self) -> List[TestResult]:
        return [r for r in self.results if r.status in (TestStatus.FAILED, TestStatus.ERROR)]

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization"""
        return {
            'target': self.target,
            'target_version': self.target_version,
            'checks_run': self.checks_run,
            'timestamp': self.timestamp.isoformat(),
            'summary': {
                'total': self.total_tests,
                'passed': self.passed,
                'failed': self.failed,
                'error': self.error,
                'undefined': self.undefined
            },
            'total_duration': round(self.total_duration, 6),
            'results': [r.to_dict() for r in self.results]
        }

    def is_success(self) -> bool:
        """Check if no sub-test failed or crashed"""
        return self.failed == 0 and self.error == 0

    def __repr__(self):
        return f"TestSuiteResult({self.target}: {self.passed}/{self.total_tests} passed)"
