"""Router tests."""

import threading

import pytest
from roadweb_core.http.message import Request, Response
from roadweb_core.middleware.stack import CircularMiddleware
from roadweb_core.routing.pattern import (
    MissingSegmentValue,
    PatternError,
    SegmentValueMismatch,
)
from roadweb_core.routing.router import (
    DispatchStatus,
    MethodNotAllowed,
    NotFound,
    RouteMatch,
    Router,
    RouterLockedError,
    UnknownRoute,
)
from roadweb_core.utils.config import AppConfig


def handler(request, response, *args):
    return "ok"


def tracing(trace, label):
    def middleware(request, response, next):
        trace.append(label)
        return next(request, response)

    return middleware


class TestRegistration:
    """Test adding routes."""

    def test_map_returns_route(self):
        """Test map returns the new route."""
        router = Router()
        route = router.map(["get", "post"], "/users", handler, name="users")

        assert route.methods == ["GET", "POST"]
        assert route.pattern == "/users"
        assert route.name == "users"
        assert router.get("users") is route
        assert len(router) == 1

    def test_register_by_identifier(self):
        """Test register takes the identifier first."""
        router = Router()
        route = router.register("user.show", ["GET"], "/user/{id}", handler)
        assert route.name == "user.show"
        assert "user.show" in router

    def test_generated_names(self):
        """Test routes without a name get one."""
        router = Router()
        first = router.map(["GET"], "/a", handler)
        second = router.map(["GET"], "/b", handler)
        assert first.name == "route0"
        assert second.name == "route1"

    def test_generated_name_skips_explicit_names(self):
        """Test an unnamed route never replaces an explicitly named one."""
        router = Router()
        account = router.map(["GET"], "/account", handler, name="route0")
        other = router.map(["GET"], "/other", handler)

        assert other.name == "route1"
        assert router.routes() == [account, other]
        assert router.url_for("route0") == "/account"
        assert router.dispatch("GET", "/account").route is account

    def test_non_string_pattern_in_group(self):
        """Test a non-string pattern inside a group is a pattern error."""
        router = Router()
        router.push_group("/api")
        with pytest.raises(PatternError):
            router.map(["GET"], None, handler)

    def test_malformed_pattern_fails_at_registration(self):
        """Test pattern errors surface when the route is added."""
        router = Router()
        with pytest.raises(PatternError):
            router.map(["GET"], "/user/{id", handler)
        assert len(router) == 0

    def test_handler_must_be_callable(self):
        """Test a non-callable handler is rejected."""
        with pytest.raises(TypeError):
            Router().map(["GET"], "/", "not a handler")

    def test_same_name_replaces_route(self):
        """Test re-registering a name replaces it and moves it last."""
        router = Router()
        router.map(["GET"], "/a", handler, name="dup")
        other = router.map(["GET"], "/a", handler, name="other")
        replacement = router.map(["POST"], "/a", handler, name="dup")

        assert router.routes() == [other, replacement]
        assert router.get("dup") is replacement

        result = router.dispatch("GET", "/a")
        assert result.route is other

    def test_frozen_after_dispatch(self):
        """Test registration is refused once dispatch started."""
        router = Router()
        router.map(["GET"], "/a", handler)
        router.dispatch("GET", "/a")

        assert router.frozen
        with pytest.raises(RouterLockedError):
            router.map(["GET"], "/b", handler)


class TestDispatch:
    """Test resolving requests to routes."""

    def test_found(self):
        """Test a matching route and method."""
        router = Router()
        route = router.map(["GET"], "/user/{id:[0-9]+}", handler, name="user.show")

        result = router.dispatch("GET", "/user/42")

        assert isinstance(result, RouteMatch)
        assert result.status is DispatchStatus.FOUND
        assert result.route is route
        assert result.params == {"id": "42"}

    def test_not_found(self):
        """Test no pattern matches."""
        router = Router()
        router.map(["GET"], "/user/{id:[0-9]+}", handler)

        result = router.dispatch("GET", "/user/abc")

        assert isinstance(result, NotFound)
        assert result.status is DispatchStatus.NOT_FOUND

    def test_method_not_allowed(self):
        """Test the pattern matches but the method does not."""
        router = Router()
        router.map(["GET", "HEAD"], "/user/{id:[0-9]+}", handler)

        result = router.dispatch("POST", "/user/42")

        assert isinstance(result, MethodNotAllowed)
        assert result.status is DispatchStatus.METHOD_NOT_ALLOWED
        assert list(result.allowed_methods) == ["GET", "HEAD"]

    def test_first_match_wins_over_later_method(self):
        """Test only the first matching route is checked for the method."""
        router = Router()
        router.map(["GET"], "/items", handler, name="list")
        router.map(["POST"], "/items", handler, name="create")

        result = router.dispatch("POST", "/items")

        assert isinstance(result, MethodNotAllowed)
        assert list(result.allowed_methods) == ["GET"]

    def test_registration_order_is_precedence(self):
        """Test an earlier literal route shadows a later parameter route."""
        router = Router()
        me = router.map(["GET"], "/users/me", handler)
        router.map(["GET"], "/users/{id}", handler)

        assert router.dispatch("GET", "/users/me").route is me
        assert router.dispatch("GET", "/users/7").params == {"id": "7"}

    def test_method_is_case_insensitive(self):
        """Test lower-case request methods."""
        router = Router()
        router.map(["GET"], "/", handler)
        assert isinstance(router.dispatch("get", "/"), RouteMatch)

    def test_params_are_decoded(self):
        """Test parameters are URL-decoded."""
        router = Router()
        router.map(["GET"], "/tag/{name}", handler)
        assert router.dispatch("GET", "/tag/new%20york").params == {"name": "new york"}

    def test_decoding_can_be_disabled(self):
        """Test raw parameters when decode_params is off."""
        router = Router(config=AppConfig(decode_params=False))
        router.map(["GET"], "/tag/{name}", handler)
        assert router.dispatch("GET", "/tag/new%20york").params == {"name": "new%20york"}

    def test_default_conditions_from_config(self):
        """Test default conditions come from the config."""
        router = Router(config=AppConfig(default_conditions={"id": "[0-9]+"}))
        router.map(["GET"], "/user/{id}", handler)

        assert isinstance(router.dispatch("GET", "/user/5"), RouteMatch)
        assert isinstance(router.dispatch("GET", "/user/x"), NotFound)

    def test_round_trip_through_url_for(self):
        """Test a generated URL dispatches back to its route."""
        router = Router()
        route = router.map(
            ["GET", "PUT"], "/user/{name}/{id:[0-9]+}", handler, name="user"
        )
        params = {"name": "Zoë Smith", "id": "9"}
        url = router.url_for("user", params)

        for method in route.methods:
            result = router.dispatch(method, url)
            assert result.route is route
            assert result.params == params

    def test_concurrent_dispatch(self):
        """Test dispatch from many threads at once."""
        router = Router()
        for i in range(20):
            router.map(["GET"], f"/r{i}/{{id:[0-9]+}}", handler, name=f"r{i}")
        errors = []

        def worker(n):
            for i in range(20):
                result = router.dispatch("GET", f"/r{i}/{n}")
                if result.route.name != f"r{i}" or result.params != {"id": str(n)}:
                    errors.append((n, i))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []


class TestGroups:
    """Test route groups."""

    def test_prefix(self):
        """Test group prefixes are prepended."""
        router = Router()
        router.push_group("/api/")
        router.push_group("v1")
        route = router.map(["GET"], "/users", handler)
        router.pop_group()
        router.pop_group()
        outside = router.map(["GET"], "/users", handler)

        assert route.pattern == "/api/v1/users"
        assert outside.pattern == "/users"

    def test_root_prefix(self):
        """Test a "/" group adds nothing."""
        router = Router()
        router.push_group("/")
        assert router.map(["GET"], "/x", handler).pattern == "/x"

    def test_group_middleware_wraps_route_middleware(self):
        """Test group middleware stays outermost whenever use is called."""
        trace = []
        group_mw = tracing(trace, "group")
        first = tracing(trace, "first")
        second = tracing(trace, "second")

        router = Router()
        router.push_group("/g", [group_mw])
        route = router.map(["GET"], "/x", handler)
        router.pop_group()

        route.use(first)
        assert route.middleware == (group_mw, first)
        route.use(second)
        assert route.middleware == (group_mw, second, first)

        response = route.run(Request("GET", "/g/x"), Response())

        assert trace == ["group", "second", "first"]
        assert response.body == b"ok"

    def test_nested_group_reuses_middleware(self):
        """Test the same middleware in nested groups fails when entering the group."""
        middleware = tracing([], "x")
        router = Router()
        router.push_group("/a", [middleware])

        with pytest.raises(CircularMiddleware):
            router.push_group("/b", [middleware])

        route = router.map(["GET"], "/c", handler)
        assert route.pattern == "/a/c"
        assert isinstance(router.dispatch("GET", "/a/c"), RouteMatch)
        assert router.frozen

    def test_route_reuses_group_middleware(self):
        """Test a group middleware cannot also be route middleware."""
        middleware = tracing([], "x")
        router = Router()
        router.push_group("/a", [middleware])
        route = router.map(["GET"], "/c", handler)

        with pytest.raises(CircularMiddleware):
            route.use(middleware)

    def test_pop_without_group(self):
        """Test popping with no open group."""
        with pytest.raises(RuntimeError):
            Router().pop_group()


class TestUrlFor:
    """Test reverse routing."""

    def test_url_with_query(self):
        """Test building a named route with query parameters."""
        router = Router()
        router.map(["GET"], "/user/{id:[0-9]+}", handler, name="user.show")
        assert router.url_for("user.show", {"id": "42"}, {"tab": "posts"}) == "/user/42?tab=posts"

    def test_unknown_route(self):
        """Test an unknown name raises."""
        with pytest.raises(UnknownRoute) as exc_info:
            Router().url_for("missing")
        assert exc_info.value.name == "missing"

    def test_missing_segment(self):
        """Test a missing segment value raises."""
        router = Router()
        router.map(["GET"], "/user/{id}", handler, name="user.show")
        with pytest.raises(MissingSegmentValue):
            router.url_for("user.show")

    def test_root_path(self):
        """Test the configured root path is prefixed."""
        router = Router(config=AppConfig(root_path="/base/"))
        router.map(["GET"], "/user/{id}", handler, name="user.show")
        assert router.url_for("user.show", {"id": 1}) == "/base/user/1"

    def test_strict_from_config(self):
        """Test strict URL parameters from the config."""
        router = Router(config=AppConfig(strict_url_params=True))
        router.map(["GET"], "/user/{id:[0-9]+}", handler, name="user.show")
        with pytest.raises(SegmentValueMismatch):
            router.url_for("user.show", {"id": "abc"})
