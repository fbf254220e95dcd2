import pytest

from oauth_mcp_server.oauth.pkce import (
    CODE_ALPHABET,
    UnsupportedMethodError,
    compute_pkce_challenge,
    generate_auth_code,
    generate_random_string,
    verify_pkce_challenge,
)

from conftest import CODE_CHALLENGE, CODE_VERIFIER


def test_alphabet_has_66_unreserved_characters():
    assert len(CODE_ALPHABET) == 66
    assert len(set(CODE_ALPHABET)) == 66


def test_generate_random_string_length_and_alphabet():
    value = generate_random_string(128)
    assert len(value) == 128
    assert set(value) <= set(CODE_ALPHABET)


def test_auth_codes_are_32_chars_and_unique():
    codes = {generate_auth_code() for _ in range(200)}
    assert len(codes) == 200
    assert all(len(code) == 32 for code in codes)
    # no shared 8-char prefix between any two codes
    assert len({code[:8] for code in codes}) == 200


def test_challenge_matches_rfc7636_example():
    assert compute_pkce_challenge(CODE_VERIFIER) == CODE_CHALLENGE
    assert verify_pkce_challenge(CODE_VERIFIER, CODE_CHALLENGE, "S256") is True


def test_any_single_bit_mutation_of_verifier_fails():
    for position, char in enumerate(CODE_VERIFIER):
        for bit in range(7):
            mutated = CODE_VERIFIER[:position] + chr(ord(char) ^ (1 << bit)) + CODE_VERIFIER[position + 1:]
            assert verify_pkce_challenge(mutated, CODE_CHALLENGE, "S256") is False


def test_wrong_challenge_fails():
    assert verify_pkce_challenge(CODE_VERIFIER, CODE_CHALLENGE[:-1], "S256") is False
    assert verify_pkce_challenge(CODE_VERIFIER, "", "S256") is False


@pytest.mark.parametrize("method", ["plain", "s256", "S512", ""])
def test_unsupported_methods_are_rejected(method):
    with pytest.raises(UnsupportedMethodError):
        verify_pkce_challenge(CODE_VERIFIER, CODE_VERIFIER, method)
