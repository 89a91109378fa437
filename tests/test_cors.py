from rpckit.cors import (
    HTTP,
    HTTPS,
    AccessControlAllowHeaders,
    AccessControlAllowOrigin,
    AllowCors,
    Origin,
    get_cors_allow_headers,
    get_cors_allow_origin,
)
from rpckit.hosts import Host


def value(text):
    return AccessControlAllowOrigin.from_string(text)


def test_should_parse_origin():
    assert Origin.parse("http://parity.io") == Origin(HTTP, "parity.io", None)
    assert Origin.parse("https://parity.io:8443") == Origin(HTTPS, "parity.io", 8443)
    assert Origin.parse("chrome-extension://124.0.0.1") == Origin(
        "chrome-extension", "124.0.0.1", None
    )
    assert Origin.parse("parity.io/somepath") == Origin(HTTP, "parity.io", None)
    assert Origin.parse("127.0.0.1:8545/somepath") == Origin(HTTP, "127.0.0.1", 8545)


def test_origin_str_round_trip():
    origin = Origin.parse("https://parity.io:8443")
    assert str(origin) == "https://parity.io:8443"
    assert Origin.parse(str(origin)) == origin


def test_should_not_allow_partially_matching_origin():
    origin1 = str(Origin.parse("http://subdomain.somedomain.io"))
    origin2 = str(Origin.parse("http://somedomain.io:8080"))
    host = str(Host.parse("http://somedomain.io"))

    assert get_cors_allow_origin(origin1, host, []) == AllowCors.INVALID
    assert get_cors_allow_origin(origin2, host, []) == AllowCors.INVALID


def test_should_allow_origins_that_matches_hosts():
    origin = str(Origin.parse("http://127.0.0.1:8080"))
    host = str(Host.parse("http://127.0.0.1:8080"))
    assert get_cors_allow_origin(origin, host, None) == AllowCors.NOT_REQUIRED


def test_should_return_none_when_there_are_no_cors_domains_and_no_origin():
    assert get_cors_allow_origin(None, None, None) == AllowCors.NOT_REQUIRED


def test_should_return_domain_when_all_are_allowed():
    res = get_cors_allow_origin("parity.io", None, None)
    assert res == AllowCors.ok(value("parity.io"))


def test_should_return_none_for_empty_origin():
    res = get_cors_allow_origin(None, None, [value("http://ethereum.org")])
    assert res == AllowCors.NOT_REQUIRED


def test_should_return_none_for_empty_list():
    assert get_cors_allow_origin(None, None, []) == AllowCors.NOT_REQUIRED


def test_should_return_none_for_not_matching_origin():
    res = get_cors_allow_origin("http://parity.io", None, [value("http://ethereum.org")])
    assert res == AllowCors.INVALID


def test_should_return_specific_origin_if_we_allow_any():
    res = get_cors_allow_origin("http://parity.io", None, [AccessControlAllowOrigin.ANY])
    assert res == AllowCors.ok(value("http://parity.io"))


def test_should_return_none_if_origin_is_not_defined():
    res = get_cors_allow_origin(None, None, [AccessControlAllowOrigin.NULL])
    assert res == AllowCors.NOT_REQUIRED


def test_should_return_null_if_origin_is_null():
    res = get_cors_allow_origin("null", None, [AccessControlAllowOrigin.NULL])
    assert res == AllowCors.ok(AccessControlAllowOrigin.NULL)


def test_null_origin_rejected_when_null_not_allowed():
    res = get_cors_allow_origin("null", None, [AccessControlAllowOrigin.ANY])
    assert res == AllowCors.INVALID


def test_null_origin_allowed_without_whitelist():
    res = get_cors_allow_origin("null", None, None)
    assert res == AllowCors.ok(AccessControlAllowOrigin.NULL)


def test_should_return_specific_origin_if_there_is_a_match():
    res = get_cors_allow_origin(
        "http://parity.io",
        None,
        [value("http://ethereum.org"), value("http://parity.io")],
    )
    assert res == AllowCors.ok(value("http://parity.io"))


def test_should_support_wildcards():
    allowed = [value("http://*.io"), value("chrome-extension://*")]

    assert get_cors_allow_origin("http://parity.io", None, allowed) == AllowCors.ok(
        value("http://parity.io")
    )
    assert get_cors_allow_origin("http://parity.iot", None, allowed) == AllowCors.INVALID
    assert get_cors_allow_origin(
        "chrome-extension://test", None, allowed
    ) == AllowCors.ok(value("chrome-extension://test"))


def test_from_string_special_values():
    assert AccessControlAllowOrigin.from_string("*") == AccessControlAllowOrigin.ANY
    assert AccessControlAllowOrigin.from_string("all") == AccessControlAllowOrigin.ANY
    assert AccessControlAllowOrigin.from_string("any") == AccessControlAllowOrigin.ANY
    assert AccessControlAllowOrigin.from_string("null") == AccessControlAllowOrigin.NULL


def test_allow_origin_display():
    assert str(AccessControlAllowOrigin.ANY) == "*"
    assert str(AccessControlAllowOrigin.NULL) == "null"
    assert str(value("http://parity.io")) == "http://parity.io"


def test_allow_cors_map_and_value():
    assert AllowCors.ok("x").map(str.upper) == AllowCors.ok("X")
    assert AllowCors.INVALID.map(str.upper) == AllowCors.INVALID
    assert AllowCors.ok("x").value_or_none() == "x"
    assert AllowCors.INVALID.value_or_none() is None
    assert AllowCors.NOT_REQUIRED.value_or_none() is None


def test_should_return_invalid_if_header_not_allowed():
    res = get_cors_allow_headers(
        ["Access-Control-Request-Headers"],
        ["x-not-allowed"],
        AccessControlAllowHeaders.only(["x-allowed"]),
        lambda x: x,
    )
    assert res == AllowCors.INVALID


def test_should_return_valid_if_header_allowed():
    res = get_cors_allow_headers(
        ["Access-Control-Request-Headers"],
        ["x-allowed"],
        AccessControlAllowHeaders.only(["x-allowed"]),
        lambda x: x,
    )
    assert res == AllowCors.ok(["x-allowed"])


def test_should_return_no_allowed_headers_if_none_in_request():
    res = get_cors_allow_headers(
        [], [], AccessControlAllowHeaders.only(["x-allowed"]), lambda x: x
    )
    assert res == AllowCors.NOT_REQUIRED


def test_should_return_not_required_if_any_header_allowed():
    res = get_cors_allow_headers([], [], AccessControlAllowHeaders.ANY, lambda x: x)
    assert res == AllowCors.NOT_REQUIRED


def test_disallowed_request_header_is_invalid():
    res = get_cors_allow_headers(
        ["x-not-allowed"], [], AccessControlAllowHeaders.only(["x-allowed"])
    )
    assert res == AllowCors.INVALID


def test_header_names_compared_without_case():
    res = get_cors_allow_headers(
        ["content-type"],
        ["X-ALLOWED"],
        AccessControlAllowHeaders.only(["x-allowed"]),
    )
    assert res == AllowCors.ok(["X-ALLOWED"])


def test_any_headers_passes_requested_through_converter():
    res = get_cors_allow_headers(
        [], ["x-one", "x-two"], AccessControlAllowHeaders.ANY, str.upper
    )
    assert res == AllowCors.ok(["X-ONE", "X-TWO"])