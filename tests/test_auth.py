import base64

import pytest

from scriptserve.auth import BasicAuth, decode_basic


def _basic(user, password):
    return "Basic " + base64.b64encode(f"{user}:{password}".encode()).decode()


def test_decode_basic():
    assert decode_basic(_basic("alice", "s3:cret")) == ("alice", "s3:cret")
    assert decode_basic("basic " + base64.b64encode(b"a:b").decode()) == ("a", "b")


@pytest.mark.parametrize("header", [None, "", "Bearer abc", "Basic", "Basic !!!notbase64", "Basic " + base64.b64encode(b"nocolon").decode()])
def test_decode_basic_rejects(header):
    assert decode_basic(header) is None


def test_basic_auth_checks_both_fields():
    check = BasicAuth("alice", "pw")
    assert check(_basic("alice", "pw"))
    assert not check(_basic("alice", "wrong"))
    assert not check(_basic("bob", "pw"))
    assert not check(None)


def test_parse_credentials():
    check = BasicAuth.parse("admin:a:b")
    assert check.username == "admin"
    assert check.password == "a:b"
    with pytest.raises(ValueError):
        BasicAuth.parse("no-colon")
