"""Pattern compiler tests."""

import pytest
from roadweb_core.routing.pattern import (
    MissingSegmentValue,
    PatternCompiler,
    PatternError,
    Segment,
    SegmentValueMismatch,
    parse_pattern,
)


class TestParsePattern:
    """Test template tokenizing."""

    def test_literal_only(self):
        """Test a template without segments."""
        assert parse_pattern("/about") == ["/about"]

    def test_segments_and_literals(self):
        """Test splitting literals from segments."""
        parts = parse_pattern("/user/{name}/{id:[0-9]+}")
        assert parts == [
            "/user/",
            Segment("name"),
            "/",
            Segment("id", "[0-9]+"),
        ]

    def test_whitespace_around_name_and_expr(self):
        """Test whitespace inside braces is ignored."""
        assert parse_pattern("{ id : [0-9]+ }") == [Segment("id", "[0-9]+")]

    def test_nested_braces(self):
        """Test typed segment with a quantifier in braces."""
        assert parse_pattern("/archive/{year:\\d{4}}") == [
            "/archive/",
            Segment("year", "\\d{4}"),
        ]

    @pytest.mark.parametrize(
        "pattern",
        [
            "/user/{id",
            "/user/id}",
            "/user/{1id}",
            "/user/{}",
            "/user/{na-me}",
            "/user/{id:}",
            "/user/{id}/{id}",
            "/archive/{year:\\d{4}",
        ],
    )
    def test_malformed(self, pattern):
        """Test malformed templates are rejected."""
        with pytest.raises(PatternError):
            parse_pattern(pattern)

    def test_non_string(self):
        """Test a non-string pattern is rejected."""
        with pytest.raises(PatternError):
            parse_pattern(None)


class TestCompile:
    """Test compiling templates to regexes."""

    def test_regex(self):
        """Test the anchored regex with named groups."""
        compiled = PatternCompiler().compile("/user/{name}/{id:[0-9]+}")
        assert compiled.regex.pattern == "^/user/(?P<name>[^/]+)/(?P<id>[0-9]+)$"
        assert compiled.names == ["name", "id"]

    def test_match_params_in_template_order(self):
        """Test extracted parameters follow the template."""
        compiled = PatternCompiler().compile("/user/{name}/{id:[0-9]+}")
        params = compiled.match("/user/bob/42")
        assert params == {"name": "bob", "id": "42"}
        assert list(params) == ["name", "id"]

    def test_partial_path_rejected(self):
        """Test extra trailing segments do not match."""
        compiled = PatternCompiler().compile("/user/{id}")
        assert compiled.match("/user/1/extra") is None
        assert compiled.match("/prefix/user/1") is None

    def test_generic_segment_needs_one_char(self):
        """Test a generic segment never matches an empty string or a slash."""
        compiled = PatternCompiler().compile("/user/{id}")
        assert compiled.match("/user/") is None
        assert compiled.match("/user/a/b") is None

    def test_typed_segment_negative(self):
        """Test a typed segment rejects non-matching values."""
        compiled = PatternCompiler().compile("/user/{id:[0-9]+}")
        assert compiled.match("/user/abc") is None
        assert compiled.match("/user/12a") is None

    def test_nested_brace_expression(self):
        """Test a quantifier inside a typed segment."""
        compiled = PatternCompiler().compile("/archive/{year:\\d{4}}")
        assert compiled.match("/archive/2024") == {"year": "2024"}
        assert compiled.match("/archive/24") is None

    def test_literal_text_is_escaped(self):
        """Test regex metacharacters in literals match literally."""
        compiled = PatternCompiler().compile("/feed.json")
        assert compiled.match("/feed.json") == {}
        assert compiled.match("/feedXjson") is None

    def test_default_conditions(self):
        """Test default conditions apply to untyped segments."""
        compiler = PatternCompiler(default_conditions={"id": "[0-9]+"})
        compiled = compiler.compile("/user/{id}")
        assert compiled.match("/user/42") == {"id": "42"}
        assert compiled.match("/user/abc") is None

    def test_inline_expression_beats_default(self):
        """Test an inline expression overrides the default condition."""
        compiler = PatternCompiler(default_conditions={"id": "[0-9]+"})
        compiled = compiler.compile("/user/{id:[a-z]+}")
        assert compiled.match("/user/abc") == {"id": "abc"}
        assert compiled.match("/user/42") is None

    def test_unnamed_groups_dropped(self):
        """Test only segment names survive into parameters."""
        compiled = PatternCompiler().compile("/page/{slug:(foo|bar)}")
        assert compiled.match("/page/bar") == {"slug": "bar"}

    def test_values_are_url_decoded(self):
        """Test parameters are URL-decoded."""
        compiled = PatternCompiler().compile("/user/{name}")
        assert compiled.match("/user/john%20doe") == {"name": "john doe"}
        assert compiled.match("/user/a%2Fb") == {"name": "a/b"}
        assert compiled.match("/user/a+b") == {"name": "a b"}

    def test_decode_disabled(self):
        """Test raw values when decoding is off."""
        compiled = PatternCompiler().compile("/user/{name}")
        assert compiled.match("/user/john%20doe", decode=False) == {"name": "john%20doe"}

    def test_invalid_expression(self):
        """Test an expression that is not a valid regex."""
        with pytest.raises(PatternError):
            PatternCompiler().compile("/user/{id:[0-9}")

    def test_invalid_default_condition(self):
        """Test a broken default condition fails at compile time."""
        compiler = PatternCompiler(default_conditions={"id": "("})
        with pytest.raises(PatternError):
            compiler.compile("/user/{id}")

    def test_compilation_is_cached(self):
        """Test compiling the same template twice."""
        compiler = PatternCompiler()
        first = compiler.compile("/user/{id}")
        assert compiler.compile("/user/{id}") is first
        assert len(compiler) == 1

        compiler.clear()
        assert len(compiler) == 0


class TestBuildUrl:
    """Test reverse URL building."""

    def test_substitutes_segments(self):
        """Test segment values are substituted."""
        compiler = PatternCompiler()
        url = compiler.build_url("/user/{name}/{id:[0-9]+}", {"name": "bob", "id": 7})
        assert url == "/user/bob/7"

    def test_query_string(self):
        """Test query parameters are appended."""
        compiler = PatternCompiler()
        url = compiler.build_url("/user/{id}", {"id": "42"}, {"tab": "posts", "page": 2})
        assert url == "/user/42?tab=posts&page=2"

    def test_empty_query_omitted(self):
        """Test no question mark without query parameters."""
        assert PatternCompiler().build_url("/user/{id}", {"id": "1"}, {}) == "/user/1"

    def test_missing_segment(self):
        """Test a missing value raises."""
        with pytest.raises(MissingSegmentValue) as exc_info:
            PatternCompiler().build_url("/user/{name}/{id}", {"name": "bob"})
        assert exc_info.value.segment == "id"

    def test_typed_segment_not_validated_by_default(self):
        """Test values are not checked against typed segments."""
        url = PatternCompiler().build_url("/user/{id:[0-9]+}", {"id": "abc"})
        assert url == "/user/abc"

    def test_strict_validation(self):
        """Test strict mode checks values against their segment."""
        compiler = PatternCompiler(strict=True)
        assert compiler.build_url("/user/{id:[0-9]+}", {"id": "42"}) == "/user/42"
        with pytest.raises(SegmentValueMismatch):
            compiler.build_url("/user/{id:[0-9]+}", {"id": "abc"})

    def test_strict_per_call(self):
        """Test strict mode can be chosen per call."""
        compiler = PatternCompiler()
        with pytest.raises(SegmentValueMismatch):
            compiler.build_url("/user/{id:[0-9]+}", {"id": "abc"}, strict=True)

    def test_values_are_quoted(self):
        """Test values are percent-encoded into one segment."""
        compiler = PatternCompiler()
        assert compiler.build_url("/user/{name}", {"name": "john doe"}) == "/user/john%20doe"
        assert compiler.build_url("/user/{name}", {"name": "a/b"}) == "/user/a%2Fb"

    def test_catch_all_segment_keeps_one_segment(self):
        """Test a slash in a catch-all value is percent-encoded and decoded back."""
        compiler = PatternCompiler()
        url = compiler.build_url("/files/{path:.+}", {"path": "a/b"})

        assert url == "/files/a%2Fb"
        assert compiler.compile("/files/{path:.+}").match(url) == {"path": "a/b"}

    @pytest.mark.parametrize(
        "pattern,params",
        [
            ("/user/{name}/{id:[0-9]+}", {"name": "bob", "id": "42"}),
            ("/user/{name}", {"name": "john doe+jane/x"}),
            ("/archive/{year:\\d{4}}/{slug}", {"year": "2024", "slug": "hello-world"}),
        ],
    )
    def test_round_trip(self, pattern, params):
        """Test a built URL matches back to the same parameters."""
        compiler = PatternCompiler()
        url = compiler.build_url(pattern, params)
        assert compiler.compile(pattern).match(url) == params
