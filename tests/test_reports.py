import json

import pytest

from api_test_framework import results as res
from api_test_framework.reports import ReportGenerator, status_label


def make_result(name, status, **kwargs):
    return res.TestResult(check_id='check', name=name, target='tlslite-ng',
                          target_version='0.8.0', status=status, **kwargs)


@pytest.fixture
def suite():
    return res.TestSuiteResult.from_results('tlslite-ng', '0.8.0', ['check'], [
        make_result("allocate(TLSv1.2, server)", res.TestStatus.PASSED, duration=0.5),
        make_result("load_certificate(ctx, valid, PEM)", res.TestStatus.FAILED,
                    error_message="returned FAILURE, expected SUCCESS"),
        make_result("new_session(ctx) client", res.TestStatus.ERROR,
                    error_message="RuntimeError: boom", traceback="Traceback ..."),
        make_result("read and write", res.TestStatus.UNDEFINED),
    ])


def test_suite_counts(suite):
    assert (suite.total_tests, suite.passed, suite.failed, suite.error, suite.undefined) == (4, 1, 1, 1, 1)
    assert [r.name for r in suite.failures()] == ["load_certificate(ctx, valid, PEM)", "new_session(ctx) client"]
    assert not suite.is_success()


def test_status_label(suite):
    assert [status_label(r) for r in suite.results] == [
        "passed", "failed", "failed (error: RuntimeError)", "undefined"]


def test_line_report(suite):
    lines = ReportGenerator().render_lines(suite)

    assert lines == [
        " Begin API Tests",
        "   allocate(TLSv1.2, server): passed",
        "   load_certificate(ctx, valid, PEM): failed",
        "   new_session(ctx) client: failed (error: RuntimeError)",
        "   read and write: undefined",
        " End API Tests",
        " 1/4 passed, 1 failed, 1 errors, 1 undefined",
    ]


def test_json_report(suite, tmp_path):
    output = tmp_path / 'report.json'

    ReportGenerator().generate_json(suite, str(output))

    data = json.loads(output.read_text())
    assert data['summary'] == {'total': 4, 'passed': 1, 'failed': 1, 'error': 1, 'undefined': 1}
    assert data['results'][2]['status'] == 'error'
    assert data['results'][0]['duration'] == 0.5


def test_html_report(suite, tmp_path):
    output = tmp_path / 'report.html'

    ReportGenerator().generate_html(suite, str(output))

    html = output.read_text()
    assert "API Tests: tlslite-ng 0.8.0" in html
    assert "failed (error: RuntimeError)" in html
    assert "returned FAILURE, expected SUCCESS" in html


def test_html_report_skipped_without_template(suite, tmp_path, capsys):
    output = tmp_path / 'report.html'

    ReportGenerator(str(tmp_path / 'missing.html')).generate_html(suite, str(output))

    assert not output.exists()
    assert "Template not found" in capsys.readouterr().out


def test_console_summary_lists_failures(suite, capsys):
    ReportGenerator().print_console_summary(suite)

    out = capsys.readouterr().out
    assert "✗ [check] load_certificate(ctx, valid, PEM): returned FAILURE, expected SUCCESS" in out
    assert "Total Tests:    4" in out
