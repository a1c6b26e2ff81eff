import pytest

from alb_wsgi import DecodeError, ParseError, build_url, parse_target


def pairs(url):
    return set(url.query.split("&")) if url.query else set()


def test_query_pairs_all_present():
    url = build_url("/foo/bar", {"a": "1", "b": "2"})
    assert url.path == "/foo/bar"
    assert pairs(url) == {"a=1", "b=2"}


def test_no_query_keeps_path_and_drops_question_mark():
    url = build_url("/foo/bar", {})
    assert url.path == "/foo/bar"
    assert url.query == ""
    assert url.geturl() == "/foo/bar"


def test_none_query_same_as_empty():
    assert build_url("/foo/bar", None).query == ""


def test_escaped_values_pass_through_untouched():
    url = build_url("/search", {"q": "caf%C3%A9%20au%20lait", "tag": "a%2Bb"})
    assert pairs(url) == {"q=caf%C3%A9%20au%20lait", "tag=a%2Bb"}


def test_escaped_path_is_not_unescaped():
    assert build_url("/a%2Fb/c", {}).path == "/a%2Fb/c"


def test_leading_double_slash_stays_in_path():
    url = parse_target("//cdn/asset.js")
    assert url.netloc == ""
    assert url.path == "//cdn/asset.js"


def test_fragment_is_split_off():
    url = parse_target("/page?x=1#top")
    assert (url.path, url.query, url.fragment) == ("/page", "x=1", "top")


@pytest.mark.parametrize("value", ["100%", "%zz", "%4"])
def test_fast_path_passes_bad_query_escapes_through(value):
    url = build_url("/x", {"q": value})
    assert url.query == f"q={value}"


@pytest.mark.parametrize("path", ["/100%", "/a%zzb", "/end%4"])
def test_bad_path_escape_is_parse_error(path):
    with pytest.raises(ParseError):
        build_url(path, {"q": "1"})


@pytest.mark.parametrize("path", ["/foo\nbar", "/foo bar", "/tab\there", "/del\x7f"])
def test_rejects_control_characters_and_spaces(path):
    with pytest.raises(ParseError):
        build_url(path, {})


def test_fast_path_rejects_raw_space_in_value():
    with pytest.raises(ParseError):
        build_url("/x", {"q": "a b"})


def test_conservative_path_reencodes():
    url = build_url("/search", {"q": "a%20b", "x": "1+2", "e": "%C3%A9"}, trust_escaping=False)
    assert url.path == "/search"
    assert pairs(url) == {"q=a+b", "x=1+2", "e=%C3%A9"}


def test_conservative_path_accepts_unescaped_input():
    url = build_url("/search", {"q": "a b"}, trust_escaping=False)
    assert pairs(url) == {"q=a+b"}


@pytest.mark.parametrize("value", ["100%", "%zz", "%4"])
def test_conservative_path_bad_escape_is_decode_error(value):
    with pytest.raises(DecodeError):
        build_url("/x", {"q": value}, trust_escaping=False)


def test_parse_error_carries_target():
    with pytest.raises(ParseError) as exc:
        parse_target("/bad%g0")
    assert exc.value.target == "/bad%g0"
    assert "escape" in exc.value.reason


def test_conservative_path_keeps_non_utf8_octets():
    url = build_url("/x", {"q": "%FF", "k%FE": "a%00b"}, trust_escaping=False)
    assert pairs(url) == {"q=%FF", "k%FE=a%00b"}


def test_conservative_and_fast_paths_agree_on_well_formed_input():
    query = {"q": "%FF", "e": "%C3%A9", "t": "a%2Bb"}
    assert pairs(build_url("/x", query)) == pairs(build_url("/x", query, trust_escaping=False))
