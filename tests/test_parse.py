import pytest

from reconkit.parse import ParseASNs, ParseCIDRs, ParseInts, ParseIPs, ParseStrings


@pytest.mark.parametrize("cls", [ParseStrings, ParseInts, ParseIPs, ParseCIDRs, ParseASNs])
def test_empty_value_prints_empty(cls):
    assert str(cls()) == ""


@pytest.mark.parametrize(
    "text, ok, expected",
    [
        ("", False, None),
        ("234,foo,bar", True, "234,foo,bar"),
        ("234,foo,bar,", True, "234,foo,bar,"),
        ("234  , foo ,\tbar", True, "234,foo,bar"),
    ],
)
def test_parse_strings(text, ok, expected):
    values = ParseStrings()
    if ok:
        values.set(text)
        assert str(values) == expected
    else:
        with pytest.raises(ValueError):
            values.set(text)


@pytest.mark.parametrize(
    "text, ok, expected",
    [
        ("", False, None),
        ("1,sdfg,2,3", False, None),
        ("-1,2,,", False, None),
        ("-1,10,42", True, "-1,10,42"),
        ("-1, 10 ,\t42", True, "-1,10,42"),
    ],
)
def test_parse_ints(text, ok, expected):
    values = ParseInts()
    if ok:
        values.set(text)
        assert str(values) == expected
    else:
        with pytest.raises(ValueError):
            values.set(text)


@pytest.mark.parametrize(
    "text, ok, expected",
    [
        ("", False, None),
        ("127.0.0.1", True, "127.0.0.1"),
        ("2001:0db8:85a3:0000:0000:8a2e:0370:7334", True, "2001:db8:85a3::8a2e:370:7334"),
        ("256.0.0.1", False, None),
        ("127.0.0.1-3", True, "127.0.0.1,127.0.0.2,127.0.0.3"),
        ("127.0.0.1-127.0.0.3", True, "127.0.0.1,127.0.0.2,127.0.0.3"),
        ("127.0.0.2-127.0.0.1", False, None),
        ("0.0.0.0-256", False, None),
        ("0.0.0.0-1-sdfgkjhsdfg", False, None),
        ("foo-3", False, None),
        ("127.0.0.1-3,255.0.0.0", True, "127.0.0.1,127.0.0.2,127.0.0.3,255.0.0.0"),
        ("127.0.0.1-3,255.0.0.0,", False, None),
        ("127.0.0.1-3, 255.0.0.0", False, None),
        ("127.0.0.1-3 ,255.0.0.0", False, None),
        ("127.0.0.1-3,255.0.0.0 ", False, None),
        (" 127.0.0.1-3,255.0.0.0", False, None),
    ],
)
def test_parse_ips(text, ok, expected):
    values = ParseIPs()
    if ok:
        values.set(text)
        assert str(values) == expected
    else:
        with pytest.raises(ValueError):
            values.set(text)


@pytest.mark.parametrize(
    "text, ok, expected",
    [
        ("", False, None),
        ("192.0.2.1/24,193.0.2.1/16", True, "192.0.2.0/24,193.0.0.0/16"),
        ("192.0.2.1/24,193.0.2.1/66", False, None),
        ("\t192.0.2.1/24, 193.0.2.1/16 ", False, None),
        ("192.0.2.1/24,193.0.2.1/16,", False, None),
    ],
)
def test_parse_cidrs(text, ok, expected):
    values = ParseCIDRs()
    if ok:
        values.set(text)
        assert str(values) == expected
    else:
        with pytest.raises(ValueError):
            values.set(text)


@pytest.mark.parametrize(
    "text, ok, expected",
    [
        ("", False, None),
        ("AS1234,AS4567,7777", True, "1234,4567,7777"),
        ("AS1234,4567,ASABC", False, None),
        ("\tAS1234 , 4567 ", True, "1234,4567"),
        ("AS1234,", False, None),
    ],
)
def test_parse_asns(text, ok, expected):
    values = ParseASNs()
    if ok:
        values.set(text)
        assert str(values) == expected
    else:
        with pytest.raises(ValueError):
            values.set(text)


def test_repeated_set_appends():
    values = ParseASNs()
    values.set("AS1234")
    values.set("7777")
    assert list(values) == [1234, 7777]


def test_parse_ips_range_count_matches_bounds():
    values = ParseIPs()
    values.set("127.0.0.1-127.0.0.3")
    assert len(values) == 3
    assert str(values[0]) == "127.0.0.1"
    assert str(values[-1]) == "127.0.0.3"