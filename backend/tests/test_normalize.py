import pytest

from taskpay.tasks.normalize import answer_matches, is_substantive, normalize_answer


@pytest.mark.parametrize(
    "raw",
    [
        "Hello   World",
        "  “Quoted”  text\r\n with ‘single’ quotes ",
        "ALREADY normal",
        "",
        "tabs\tand\nnewlines",
    ],
)
def test_normalization_is_idempotent(raw):
    once = normalize_answer(raw)
    assert normalize_answer(once) == once


def test_normalization_rules():
    assert normalize_answer("  Agent:\r\n  “Please”  CONFIRM ‘it’ ") == "agent: \"please\" confirm 'it'"
    assert normalize_answer(None) == ""


def test_answer_matching_is_exact_after_normalization():
    reference = "Agent: Please confirm withdrawal of KSH 100 to M-Pesa (ref TXN-1001)."

    assert answer_matches("agent:  please confirm withdrawal of ksh 100 to m-pesa (ref txn-1001).", reference)
    assert not answer_matches("Agent: Please confirm withdrawal of KSH 100 to M-Pesa", reference)
    assert not answer_matches("Agent: Please confirm withdrawl of KSH 100 to M-Pesa (ref TXN-1001).", reference)


def test_substantive_answers_need_two_characters():
    assert not is_substantive("")
    assert not is_substantive("  a  ")
    assert not is_substantive(None)
    assert is_substantive("ok")
