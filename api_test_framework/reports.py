"""
Report generation for the TLS API test framework
"""

import json
from jinja2 import Template
from pathlib import Path
from typing import List
from .results import TestResult, TestSuiteResult, TestStatus

DEFAULT_TEMPLATE = Path(__file__).parent / 'templates' / 'report_template.html'


def status_label(result: TestResult) -> str:
    """Text shown after the sub-test name in the line report"""
    if result.status == TestStatus.ERROR:
        kind = (result.error_message or "Exception").split(':', 1)[0]
        return f"failed (error: {kind})"
    return result.status.value


class ReportGenerator:
    """Generate test reports in various formats"""

    def __init__(self, template_path: str = None):
        """
        Initialize report generator

        Args:
            template_path: Path to HTML template file; defaults to the
                template shipped with the package
        """
        self.template_path = Path(template_path) if template_path else DEFAULT_TEMPLATE

    def render_lines(self, suite_result: TestSuiteResult) -> List[str]:
        """
        Line-oriented report: one line per sub-test between the Begin and
        End markers, then the aggregate
        """
        lines = [" Begin API Tests"]
        for result in suite_result.results:
            lines.append(f"   {result.name}: {status_label(result)}")
        lines.append(" End API Tests")
        lines.append(
            f" {suite_result.passed}/{suite_result.total_tests} passed, "
            f"{suite_result.failed} failed, {suite_result.error} errors, "
            f"{suite_result.undefined} undefined"
        )
        return lines

    def print_report(self, suite_result: TestSuiteResult):
        for line in self.render_lines(suite_result):
            print(line)

    def generate_html(self, suite_result: TestSuiteResult, output_path: str):
        """
        Generate HTML report

        Args:
            suite_result: TestSuiteResult object
            output_path: Path to output HTML file
        """
        if not self.template_path.exists():
            print(f"Warning: Template not found at {self.template_path}, skipping HTML report")
            return

        with open(self.template_path) as f:
            template = Template(f.read())

        html = template.render(
            target_name=suite_result.target,
            target_version=suite_result.target_version,
            timestamp=suite_result.timestamp.strftime('%Y-%m-%d %H:%M:%S'),
            total_duration=suite_result.total_duration,
            total=suite_result.total_tests,
            passed=suite_result.passed,
            failed=suite_result.failed,
            error=suite_result.error,
            undefined=suite_result.undefined,
            results=suite_result.results,
            status_label=status_label
        )

        with open(output_path, 'w') as f:
            f.write(html)

        print(f"\nHTML report generated: {output_path}")

    def generate_json(self, suite_result: TestSuiteResult, output_path: str):
        """
        Generate JSON report

        Args:
            suite_result: TestSuiteResult object
            output_path: Path to output JSON file
        """
        with open(output_path, 'w') as f:
            json.dump(suite_result.to_dict(), f, indent=2)

        print(f"JSON report generated: {output_path}")

    def print_console_summary(self, suite_result: TestSuiteResult):
        """
        Print summary to console

        Args:
            suite_result: TestSuiteResult object
        """
        print("\n" + "=" * 70)
        print(f"API Test Summary: {suite_result.target} {suite_result.target_version}")
        print("=" * 70)
        print(f"Total Tests:    {suite_result.total_tests}")
        print(f"✓ Passed:       {suite_result.passed}")
        print(f"✗ Failed:       {suite_result.failed}")
        print(f"⚠ Error:        {suite_result.error}")
        print(f"○ Undefined:    {suite_result.undefined}")
        print(f"Duration:       {suite_result.total_duration:.3f}s")
        print("=" * 70)

        failures = suite_result.failures()
        if failures:
            print("\nFailed Tests:")
            for result in failures:
                print(f"  ✗ [{result.check_id}] {result.name}: {result.error_message}")

        print()

    def print_detailed_results(self, suite_result: TestSuiteResult):
        """
        Print detailed test results to console

        Args:
            suite_result: TestSuiteResult object
        """
        print("\nDetailed Test Results:")
        print("-" * 70)

        for result in suite_result.results:
            status_symbol = {
                TestStatus.PASSED: "✓",
                TestStatus.FAILED: "✗",
                TestStatus.ERROR: "⚠",
                TestStatus.UNDEFINED: "○"
            }.get(result.status, "?")

            print(f"\n{status_symbol} [{result.check_id}] {result.name}")
            print(f"   Status: {result.status.value.upper()}")

            if result.detail:
                print(f"   Detail: {result.detail}")

            if result.error_message:
                print(f"   Error: {result.error_message}")

            if result.traceback:
                print(f"   Traceback:")
                for line in result.traceback.split('\n'):
                    if line.strip():
                        print(f"     {line}")

        print("-" * 70)
