"""
Sub-test recording for checkers

A checker calls the library through a SubTestRecorder. Each call is timed,
and an exception escaping the library is recorded as a crash (status ERROR)
instead of propagating, so one misbehaving call never hides the rest of the
matrix.
"""

import time
import traceback
from typing import Any, Callable, Iterable, List, Optional

from .library import ReturnCode, TLSLibrary
from .results import TestResult, TestStatus

# Returned by SubTestRecorder.call when the library raised
CRASHED = object()


class SubTestRecorder:
    """Append-only collector of TestResult records for one checker"""

    def __init__(self, check_id: str, library: TLSLibrary, target: str, target_version: str,
                 verbose: bool = False):
        self.check_id = check_id
        self.library = library
        self.target = target
        self.target_version = target_version
        self.verbose = verbose
        self.results: List[TestResult] = []
        self._last_duration = 0.0

    def call(self, name: str, func: Callable, *args) -> Any:
        """
        Invoke a library operation

        Returns:
            The operation's return value, or CRASHED after recording an ERROR
        """
        start = time.time()
        try:
            value = func(*args)
        except Exception as e:
            self._last_duration = time.time() - start
            self.record(name, TestStatus.ERROR,
                        error_message=f"{type(e).__name__}: {e}",
                        tb=traceback.format_exc())
            return CRASHED
        self._last_duration = time.time() - start
        return value

    def record(self, name: str, status, detail: Optional[str] = None,
               error_message: Optional[str] = None, tb: Optional[str] = None) -> TestResult:
        """Append one result; ``status`` may be a TestStatus or a bool (passed/failed)"""
        if isinstance(status, bool):
            status = TestStatus.PASSED if status else TestStatus.FAILED
        result = TestResult(
            check_id=self.check_id,
            name=name,
            target=self.target,
            target_version=self.target_version,
            status=status,
            duration=self._last_duration,
            detail=detail,
            error_message=error_message,
            traceback=tb
        )
        self._last_duration = 0.0
        self.results.append(result)

        if self.verbose:
            suffix = f" ({error_message})" if error_message else ""
            print(f"    {name}: {status.value}{suffix}")
        return result

    def expect_code(self, name: str, expected: ReturnCode, func: Callable, *args) -> Any:
        """Run a load-style operation and compare its return code"""
        code = self.call(name, func, *args)
        if code is CRASHED:
            return code

        cause = self._cause()
        if code == expected:
            self.record(name, True, detail=cause)
        else:
            self.record(name, False, detail=cause,
                        error_message=f"returned {_code_name(code)}, expected {_code_name(expected)}")
        return code

    def expect_null(self, name: str, func: Callable, *args,
                    release: Optional[Callable] = None, defect: Optional[str] = None) -> None:
        """
        Run a constructor that must refuse

        An unexpected object is released with ``release`` and the sub-test
        fails; ``defect`` is reported as its error message when given.
        """
        value = self.call(name, func, *args)
        if value is CRASHED:
            return
        if value is None:
            self.record(name, True, detail=self._cause())
            return

        if release is not None:
            release(value)
        self.record(name, False, error_message=defect or f"expected failure, got {value!r}")

    def expect_object(self, name: str, func: Callable, *args) -> Any:
        """
        Run a constructor that must succeed

        Returns:
            The object, or None when it was refused or the call crashed
        """
        value = self.call(name, func, *args)
        if value is CRASHED:
            return None
        if value is None:
            self.record(name, False, error_message=f"returned None: {self._cause()}")
            return None
        self.record(name, True, detail=repr(value))
        return value

    def fail_all(self, names: Iterable[str], reason: str):
        """Mark sub-tests whose prerequisites could not be built as failed"""
        for name in names:
            self.record(name, False, error_message=f"prerequisite unavailable: {reason}")

    def undefined(self, name: str, reason: str):
        self.record(name, TestStatus.UNDEFINED, detail=reason)

    def crash(self, name: str, error: Exception):
        """Record an exception that escaped a whole checker"""
        self.record(name, TestStatus.ERROR,
                    error_message=f"{type(error).__name__}: {error}",
                    tb=traceback.format_exc())

    def _cause(self) -> Optional[str]:
        error = self.library.last_error
        return str(error) if error is not None else None


def _code_name(code) -> str:
    try:
        return ReturnCode(code).name
    except ValueError:
        return repr(code)
