from api_test_framework import results as res
from api_test_framework.library import Protocol, ReturnCode, Role
from api_test_framework.recorder import CRASHED

PASSED = res.TestStatus.PASSED
FAILED = res.TestStatus.FAILED
ERROR = res.TestStatus.ERROR


def boom(*args):
    raise ZeroDivisionError("division by zero")


def test_call_records_crash(make_recorder):
    recorder = make_recorder()

    assert recorder.call("crashes", boom, 1) is CRASHED

    [result] = recorder.results
    assert result.status is ERROR
    assert result.error_message == "ZeroDivisionError: division by zero"
    assert "Traceback" in result.traceback


def test_call_returns_value_without_recording(make_recorder):
    recorder = make_recorder()

    assert recorder.call("adds", lambda a, b: a + b, 1, 2) == 3
    assert recorder.results == []


def test_record_accepts_bool(make_recorder):
    recorder = make_recorder('some_check')

    result = recorder.record("ok", True)
    recorder.record("not ok", False, error_message="nope")

    assert result.check_id == 'some_check'
    assert result.target == 'tlslite-ng'
    assert [r.status for r in recorder.results] == [PASSED, FAILED]


def test_expect_code_mismatch_names_both_codes(make_recorder, library):
    recorder = make_recorder()

    recorder.expect_code("free_method(None)", ReturnCode.SUCCESS, library.free_method, None)

    [result] = recorder.results
    assert result.status is FAILED
    assert result.error_message == "returned FAILURE, expected SUCCESS"
    assert result.detail == "InvalidArgument: method is None"


def test_expect_null_releases_unexpected_object(make_recorder, library):
    recorder = make_recorder()

    recorder.expect_null("allocate", library.allocate_method, Protocol.TLSV1_2, Role.SERVER,
                         release=library.free_method, defect="should not allocate")

    [result] = recorder.results
    assert result.status is FAILED
    assert result.error_message == "should not allocate"
    assert library.ledger.outstanding() == []


def test_expect_object(make_recorder, library):
    recorder = make_recorder()

    method = recorder.expect_object("allocate", library.allocate_method, Protocol.SSLV23, Role.CLIENT)
    refused = recorder.expect_object("allocate sslv2", library.allocate_method, Protocol.SSLV2, Role.CLIENT)

    assert method is not None
    assert refused is None
    assert [r.status for r in recorder.results] == [PASSED, FAILED]
    assert recorder.results[1].error_message.startswith("returned None: AllocationFailure")
    library.free_method(method)


def test_fail_all_and_undefined(make_recorder):
    recorder = make_recorder()

    recorder.fail_all(["a", "b"], "no context")
    recorder.undefined("read and write", "not exercised")

    assert [r.error_message for r in recorder.results[:2]] == ["prerequisite unavailable: no context"] * 2
    assert recorder.results[2].status is res.TestStatus.UNDEFINED


def test_verbose_prints_each_sub_test(make_recorder, capsys):
    recorder = make_recorder()
    recorder.verbose = True

    recorder.record("loud", False, error_message="why")

    assert capsys.readouterr().out == "    loud: failed (why)\n"
