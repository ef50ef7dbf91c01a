import json

import run_api_tests
from conftest import CONFIG_PATH


def test_list_checks(capsys):
    assert run_api_tests.main(['--list-checks']) == 0

    out = capsys.readouterr().out
    assert "session_instantiation" in out
    assert "* always runs" in out


def test_list_targets(capsys):
    assert run_api_tests.main(['--config', str(CONFIG_PATH), '--list-targets']) == 0

    out = capsys.readouterr().out
    assert "tlslite" in out
    assert "pyopenssl" in out


def test_missing_config(tmp_path, capsys):
    assert run_api_tests.main(['--config', str(tmp_path / 'none.yaml')]) == 1
    assert "Configuration file not found" in capsys.readouterr().out


def test_unknown_target(capsys):
    assert run_api_tests.main(['--config', str(CONFIG_PATH), '--target', 'gnutls']) == 1
    assert "not found in configuration" in capsys.readouterr().out


def test_unknown_check(capsys):
    assert run_api_tests.main(['--config', str(CONFIG_PATH), '--check', 'nope']) == 1
    assert "Unknown check" in capsys.readouterr().out


def test_run_prints_line_report_and_writes_json(tmp_path, capsys):
    output = tmp_path / 'report.json'

    code = run_api_tests.main(['--config', str(CONFIG_PATH), '--target', 'tlslite',
                               '--check', 'trust_store_loading', '--json', str(output)])

    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == " Begin API Tests"
    assert "   init(): passed" in lines
    assert "   second load_trust_store supersedes the first: passed" in lines
    assert " End API Tests" in lines

    data = json.loads(output.read_text())
    assert data['checks_run'] == ['library_init', 'trust_store_loading', 'resource_ledger', 'library_cleanup']
    assert data['summary']['failed'] == 0


def test_strict_exit_reflects_failures(capsys, monkeypatch):
    # a binding that cannot create contexts fails dependent sub-tests
    from api_test_framework import test_runner
    from test_checkers import NoContextLibrary

    monkeypatch.setattr(test_runner, 'create_library', lambda backend: NoContextLibrary())
    args = ['--config', str(CONFIG_PATH), '--check', 'session_instantiation']

    assert run_api_tests.main(args) == 0
    assert run_api_tests.main(args + ['--strict']) == 1
    assert "Some sub-tests failed" in capsys.readouterr().out
