import pytest

from rpckit.hosts import DomainsValidation, Host, is_host_valid, update


def test_should_parse_host():
    assert Host.parse("http://parity.io") == Host("parity.io", None)
    assert Host.parse("https://parity.io:8443") == Host("parity.io", 8443)
    assert Host.parse("chrome-extension://124.0.0.1") == Host("124.0.0.1", None)
    assert Host.parse("parity.io/somepath") == Host("parity.io", None)
    assert Host.parse("127.0.0.1:8545/somepath") == Host("127.0.0.1", 8545)


def test_parse_keeps_non_numeric_port_as_pattern():
    host = Host.parse("*.web3.site:*")
    assert host.port == "*"
    assert str(host) == "*.web3.site:*"


def test_str_round_trip():
    host = Host.parse("https://parity.io:8443")
    assert Host.parse(str(host)) == host


def test_hostname_is_lowercased():
    assert Host.parse("PARITY.IO") == Host("parity.io", None)


def test_port_out_of_range_rejected():
    with pytest.raises(ValueError):
        Host("parity.io", 70000)


def test_should_reject_when_there_is_no_header():
    assert is_host_valid(None, []) is False


def test_should_reject_when_validation_is_disabled():
    assert is_host_valid("any", None) is True


def test_should_reject_if_header_not_on_the_list():
    assert is_host_valid("parity.io", []) is False


def test_should_accept_if_on_the_list():
    assert is_host_valid("parity.io", [Host.parse("parity.io")]) is True


def test_should_accept_if_on_the_list_with_port():
    assert is_host_valid("parity.io:443", [Host.parse("parity.io:443")]) is True


def test_should_support_wildcards():
    assert is_host_valid("parity.web3.site:8180", [Host.parse("*.web3.site:*")]) is True


def test_hosts_equal_hash_equal():
    assert hash(Host.parse("parity.io:80")) == hash(Host("parity.io", 80))


def test_update_adds_address_and_localhost():
    result = update([Host.parse("parity.io")], "127.0.0.1:8080")
    assert set(result) == {
        Host.parse("parity.io"),
        Host.parse("127.0.0.1:8080"),
        Host.parse("localhost:8080"),
    }


def test_update_accepts_tuple_address():
    result = update([], ("127.0.0.1", 8545))
    assert Host("127.0.0.1", 8545) in result
    assert Host("localhost", 8545) in result


def test_update_keeps_disabled_validation():
    assert update(None, "127.0.0.1:8080") is None


def test_domains_validation():
    assert DomainsValidation.allow_only(["a", "b"]).as_list() == ["a", "b"]
    assert DomainsValidation.disabled().as_list() is None
    assert DomainsValidation.allow_only([]) == DomainsValidation.allow_only(())