import base64
import json
import time
from datetime import timedelta

import jwt
import pytest

from oauth_mcp_server.oauth.jwt_utils import (
    InvalidSignatureError,
    MalformedTokenError,
    TokenError,
    TokenExpiredError,
    create_access_token,
    sign_token,
    verify_token,
)

from conftest import ISSUER, OTHER_SECRET, TEST_SECRET


def _claims(**overrides):
    now = int(time.time())
    claims = {
        "sub": "c1",
        "iss": ISSUER,
        "aud": "mcp-server",
        "iat": now,
        "exp": now + 3600,
        "scope": "mcp",
    }
    claims.update(overrides)
    return claims


def _b64(data):
    return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()


def test_round_trip_returns_claims_unchanged():
    claims = _claims()
    token = sign_token(claims, TEST_SECRET)
    assert token.count(".") == 2
    assert verify_token(token, TEST_SECRET) == claims


def test_header_is_hs256_jwt():
    header = jwt.get_unverified_header(sign_token(_claims(), TEST_SECRET))
    assert header["alg"] == "HS256"
    assert header["typ"] == "JWT"


def test_different_secret_fails_signature():
    token = sign_token(_claims(), TEST_SECRET)
    with pytest.raises(InvalidSignatureError):
        verify_token(token, OTHER_SECRET)


def test_tampered_claims_fail_signature():
    header, _, signature = sign_token(_claims(), TEST_SECRET).split(".")
    forged = ".".join([header, _b64(_claims(sub="admin")), signature])
    with pytest.raises(InvalidSignatureError):
        verify_token(forged, TEST_SECRET)


def test_expired_token_fails_even_with_valid_signature():
    now = int(time.time())
    token = sign_token(_claims(iat=now - 7200, exp=now - 10), TEST_SECRET)
    with pytest.raises(TokenExpiredError):
        verify_token(token, TEST_SECRET)


def test_expired_token_with_bad_signature_reports_signature():
    now = int(time.time())
    token = sign_token(_claims(iat=now - 7200, exp=now - 10), OTHER_SECRET)
    with pytest.raises(InvalidSignatureError):
        verify_token(token, TEST_SECRET)


@pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d", "x.y.z", "..", None])
def test_malformed_tokens(token):
    with pytest.raises(MalformedTokenError):
        verify_token(token, TEST_SECRET)


def test_token_without_exp_is_malformed():
    claims = _claims()
    del claims["exp"]
    token = sign_token(claims, TEST_SECRET)
    with pytest.raises(MalformedTokenError):
        verify_token(token, TEST_SECRET)


def test_unsigned_token_is_rejected():
    token = ".".join([_b64({"alg": "none", "typ": "JWT"}), _b64(_claims()), ""])
    with pytest.raises(TokenError):
        verify_token(token, TEST_SECRET)


def test_create_access_token_claims():
    token = create_access_token(
        client_id="c1",
        issuer=ISSUER,
        audience="mcp-server",
        secret=TEST_SECRET,
        expires_delta=timedelta(hours=1),
        scope="mcp",
    )
    claims = verify_token(token, TEST_SECRET)
    assert claims["sub"] == "c1"
    assert claims["iss"] == ISSUER
    assert claims["aud"] == "mcp-server"
    assert claims["scope"] == "mcp"
    assert claims["exp"] - claims["iat"] == 3600


def test_create_access_token_omits_missing_scope():
    token = create_access_token("c1", ISSUER, "mcp-server", TEST_SECRET)
    assert "scope" not in verify_token(token, TEST_SECRET)
