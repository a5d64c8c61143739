"""Tests for AuthCoordinator: reconciliation, session recording and logout."""

from __future__ import annotations

from typing import Any, Optional

import pytest

from userauth.auth import (
    AuthCoordinator,
    AuthStrategy,
    Failure,
    MemorySession,
    RequestContext,
    SessionRegistry,
    Success,
    create_default_coordinator,
)
from userauth.exceptions import StrategyConfigError
from userauth.models import DEFAULT_CONFLICT_MESSAGE, AuthSettings, SessionConfig
from userauth.strategies import PasswordStrategy, RememberMeStrategy, RememberMeToken


class FixedStrategy(AuthStrategy):
    """Always applicable; returns a canned result and records hook calls."""

    def __init__(self, name: str, result: Any, applicable: bool = True) -> None:
        self._name = name
        self.result = result
        self.applicable = applicable
        self.attempts = 0
        self.after_calls: list[Optional[str]] = []
        self.logout_calls: list[Optional[str]] = []

    @property
    def name(self) -> str:
        return self._name

    def is_applicable(self, ctx: RequestContext) -> bool:
        return self.applicable

    def attempt(self, ctx: RequestContext, validate_credentials: Any) -> Any:
        self.attempts += 1
        return self.result

    def after_auth_processing(self, ctx: RequestContext) -> None:
        self.after_calls.append(ctx.identity_id)

    def before_logout(self, ctx: RequestContext) -> None:
        self.logout_calls.append(ctx.identity_id)


def _coordinator(directory: Any, strategies: list[AuthStrategy], **kwargs: Any) -> AuthCoordinator:
    return AuthCoordinator(
        strategies,
        identity_id=directory.identity_id,
        identity_for_id=directory.get,
        validate_credentials=directory.check_password,
        **kwargs,
    )


def _login_params(username: str = "alice", password: str = "secret", **extra: str) -> dict:
    return {"username": username, "password": password, **extra}


class TestPasswordLogin:
    def test_success_records_session_and_registry(
        self,
        coordinator: AuthCoordinator,
        make_ctx: Any,
        session: MemorySession,
        registry: SessionRegistry,
        alice: Any,
    ) -> None:
        ctx = make_ctx(session=session, params=_login_params())
        assert coordinator.authenticate(ctx) == Success(alice)

        assert session.get("UserID") == "A1"
        assert registry.get("A1") is session
        assert coordinator.user_option(session) == alice
        assert coordinator.is_authenticated(session) is True
        assert ctx.identity == alice
        assert ctx.identity_id == "A1"

    def test_wrong_password_is_silent_failure(
        self, coordinator: AuthCoordinator, make_ctx: Any, session: MemorySession
    ) -> None:
        ctx = make_ctx(session=session, params=_login_params(password="wrong"))
        assert coordinator.authenticate(ctx) == Failure("")
        assert session.get("UserID") is None
        assert coordinator.is_authenticated(session) is False

    def test_nothing_applicable(
        self, coordinator: AuthCoordinator, make_ctx: Any, registry: SessionRegistry
    ) -> None:
        assert coordinator.authenticate(make_ctx()) == Failure("")
        assert len(registry) == 0

    def test_custom_session_key(self, directory: Any, make_ctx: Any, session: MemorySession) -> None:
        settings = AuthSettings(session=SessionConfig(user_key="uid"))
        coordinator = create_default_coordinator(
            identity_id=directory.identity_id,
            identity_for_id=directory.get,
            validate_credentials=directory.check_password,
            settings=settings,
        )
        coordinator.authenticate(make_ctx(session=session, params=_login_params()))
        assert session.get("uid") == "A1"
        assert session.get("UserID") is None


class TestRememberMeLogin:
    def test_ticked_checkbox_issues_cookie(
        self,
        coordinator: AuthCoordinator,
        make_ctx: Any,
        cookie_headers: Any,
        token_store: Any,
        alice: Any,
    ) -> None:
        ctx = make_ctx(params=_login_params(rememberMe="yes"))
        assert coordinator.authenticate(ctx) == Success(alice)

        [header] = cookie_headers(ctx)
        value = header.split(";")[0].split("=", 1)[1]
        assert RememberMeToken.parse(value).identity_id == "A1"
        assert token_store.validate_remember_me_token("A1", value) == alice

    def test_returning_visitor_is_logged_in_from_cookie(
        self,
        coordinator: AuthCoordinator,
        make_ctx: Any,
        cookie_headers: Any,
        registry: SessionRegistry,
        alice: Any,
    ) -> None:
        first = make_ctx(params=_login_params(rememberMe="yes"))
        coordinator.authenticate(first)
        value = cookie_headers(first)[0].split(";")[0].split("=", 1)[1]

        later = MemorySession("s-later")
        ctx = make_ctx(session=later, cookies={"rememberMe": value})
        assert coordinator.authenticate(ctx) == Success(alice)
        assert registry.get("A1") is later

    def test_stale_cookie_is_cleared(
        self, coordinator: AuthCoordinator, make_ctx: Any, cookie_headers: Any
    ) -> None:
        ctx = make_ctx(cookies={"rememberMe": "deadbeef-1234-A1"})
        assert coordinator.authenticate(ctx) == Failure("")
        [header] = cookie_headers(ctx)
        assert header.startswith("rememberMe=; Max-Age=0")

    def test_identity_id_with_separator_still_logs_in(
        self,
        directory: Any,
        token_store: Any,
        make_ctx: Any,
        cookie_headers: Any,
        session: MemorySession,
        registry: SessionRegistry,
    ) -> None:
        carol = directory.add("c-3", "carol", "pw")
        logins: list[Any] = []
        coordinator = create_default_coordinator(
            identity_id=directory.identity_id,
            identity_for_id=directory.get,
            validate_credentials=directory.check_password,
            token_store=token_store,
            registry=registry,
            post_login=logins.append,
        )
        ctx = make_ctx(session=session, params=_login_params("carol", "pw", rememberMe="yes"))

        assert coordinator.authenticate(ctx) == Success(carol)
        assert cookie_headers(ctx) == []
        assert token_store.get("c-3") is None
        assert session.get("UserID") == "c-3"
        assert registry.get("c-3") is session
        assert logins == [carol]

    def test_same_user_from_both_strategies(
        self,
        directory: Any,
        token_store: Any,
        make_ctx: Any,
        session: MemorySession,
        alice: Any,
    ) -> None:
        value = str(RememberMeToken.generate("A1"))
        token_store.store_remember_me_token(alice, value)
        logins: list[Any] = []
        coordinator = create_default_coordinator(
            identity_id=directory.identity_id,
            identity_for_id=directory.get,
            validate_credentials=directory.check_password,
            token_store=token_store,
            post_login=logins.append,
        )
        ctx = make_ctx(session=session, params=_login_params(), cookies={"rememberMe": value})
        assert coordinator.authenticate(ctx) == Success(alice)
        assert logins == [alice]


class TestConflict:
    def test_different_users_clear_the_session(
        self,
        coordinator: AuthCoordinator,
        token_store: Any,
        make_ctx: Any,
        session: MemorySession,
        registry: SessionRegistry,
        bob: Any,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        session.set("UserID", "A1")
        registry.put("A1", session)
        value = str(RememberMeToken.generate("B2"))
        token_store.store_remember_me_token(bob, value)

        ctx = make_ctx(session=session, params=_login_params(), cookies={"rememberMe": value})
        with caplog.at_level("ERROR"):
            result = coordinator.authenticate(ctx)

        assert result == Failure(DEFAULT_CONFLICT_MESSAGE)
        assert session.get("UserID") is None
        assert "A1" not in registry
        assert "B2" not in registry
        assert ctx.identity is None
        assert "different users" in caplog.text

    def test_custom_conflict_message(
        self, directory: Any, make_ctx: Any, alice: Any, bob: Any
    ) -> None:
        coordinator = _coordinator(
            directory,
            [FixedStrategy("one", Success(alice)), FixedStrategy("two", Success(bob))],
            settings=AuthSettings(conflict_message="conflict"),
        )
        assert coordinator.authenticate(make_ctx()) == Failure("conflict")


class TestReconciliation:
    def test_every_applicable_strategy_runs(
        self, directory: Any, make_ctx: Any, alice: Any
    ) -> None:
        first = FixedStrategy("first", Success(alice))
        second = FixedStrategy("second", Failure())
        skipped = FixedStrategy("skipped", Success(alice), applicable=False)
        coordinator = _coordinator(directory, [first, second, skipped])

        assert coordinator.authenticate(make_ctx()) == Success(alice)
        assert (first.attempts, second.attempts, skipped.attempts) == (1, 1, 0)

    def test_failure_messages_are_joined(self, directory: Any, make_ctx: Any) -> None:
        coordinator = _coordinator(
            directory,
            [
                FixedStrategy("a", Failure("locked")),
                FixedStrategy("b", Failure()),
                FixedStrategy("c", Failure("expired")),
            ],
        )
        assert coordinator.authenticate(make_ctx()) == Failure("locked, expired")

    def test_after_hooks_run_on_failure_too(self, directory: Any, make_ctx: Any, alice: Any) -> None:
        failing = FixedStrategy("failing", Failure())
        skipped = FixedStrategy("skipped", Success(alice), applicable=False)
        coordinator = _coordinator(directory, [failing, skipped])

        coordinator.authenticate(make_ctx())
        assert failing.after_calls == [None]
        assert skipped.after_calls == [None]

    def test_after_hooks_see_the_identity(self, directory: Any, make_ctx: Any, alice: Any) -> None:
        strategy = FixedStrategy("fixed", Success(alice))
        coordinator = _coordinator(directory, [strategy])
        coordinator.authenticate(make_ctx())
        assert strategy.after_calls == ["A1"]


class TestLoginIntercept:
    def test_rejection_clears_session(
        self, directory: Any, make_ctx: Any, session: MemorySession, alice: Any
    ) -> None:
        logins: list[Any] = []
        session.set("UserID", "A1")
        coordinator = _coordinator(
            directory,
            [PasswordStrategy()],
            login_intercept=lambda user: Failure(f"{user.name} is locked"),
            post_login=logins.append,
        )
        ctx = make_ctx(session=session, params=_login_params())
        assert coordinator.authenticate(ctx) == Failure("alice is locked")
        assert session.get("UserID") is None
        assert logins == []

    def test_intercept_can_substitute_identity(
        self, directory: Any, make_ctx: Any, session: MemorySession, bob: Any
    ) -> None:
        coordinator = _coordinator(
            directory, [PasswordStrategy()], login_intercept=lambda user: Success(bob)
        )
        ctx = make_ctx(session=session, params=_login_params())
        assert coordinator.authenticate(ctx) == Success(bob)
        assert session.get("UserID") == "B2"


class TestLogout:
    def test_logout_clears_everything(
        self,
        coordinator: AuthCoordinator,
        token_store: Any,
        make_ctx: Any,
        cookie_headers: Any,
        session: MemorySession,
        registry: SessionRegistry,
    ) -> None:
        login = make_ctx(session=session, params=_login_params(rememberMe="yes"))
        coordinator.authenticate(login)
        value = cookie_headers(login)[0].split(";")[0].split("=", 1)[1]

        ctx = make_ctx(session=session, cookies={"rememberMe": value})
        coordinator.logout(ctx)

        assert session.get("UserID") is None
        assert "A1" not in registry
        assert token_store.get("A1").revoked is True
        assert cookie_headers(ctx)[0].startswith("rememberMe=; Max-Age=0")
        assert ctx.identity is None

    def test_before_logout_sees_user_then_post_logout(
        self, directory: Any, make_ctx: Any, session: MemorySession, alice: Any
    ) -> None:
        strategy = FixedStrategy("fixed", Success(alice))
        logouts: list[Any] = []
        coordinator = _coordinator(directory, [strategy], post_logout=logouts.append)
        coordinator.authenticate(make_ctx(session=session))

        coordinator.logout(make_ctx(session=session))
        assert strategy.logout_calls == ["A1"]
        assert logouts == [alice]

    def test_anonymous_logout(self, directory: Any, make_ctx: Any) -> None:
        logouts: list[Any] = []
        coordinator = _coordinator(directory, [PasswordStrategy()], post_logout=logouts.append)
        coordinator.logout(make_ctx())
        assert logouts == []

    def test_logout_elsewhere_keeps_newer_login_tracked(
        self, coordinator: AuthCoordinator, make_ctx: Any, registry: SessionRegistry
    ) -> None:
        old, new = MemorySession("old"), MemorySession("new")
        coordinator.authenticate(make_ctx(session=old, params=_login_params()))
        coordinator.authenticate(make_ctx(session=new, params=_login_params()))
        assert registry.get("A1") is new

        coordinator.logout(make_ctx(session=old))
        assert registry.get("A1") is new
        assert old.get("UserID") is None


class TestSessionState:
    def test_invalidate_all_sessions_for_identity(
        self,
        coordinator: AuthCoordinator,
        make_ctx: Any,
        session: MemorySession,
        registry: SessionRegistry,
        alice: Any,
    ) -> None:
        coordinator.authenticate(make_ctx(session=session, params=_login_params()))

        assert coordinator.invalidate_all_sessions_for_identity(alice) is True
        assert session.get("UserID") is None
        assert "A1" not in registry
        assert coordinator.invalidate_all_sessions_for_identity(alice) is False

    def test_invalidated_session_reads_as_anonymous(
        self, coordinator: AuthCoordinator, session: MemorySession
    ) -> None:
        session.set("UserID", "A1")
        session.invalidate()
        assert coordinator.user_option(session) is None
        coordinator.record_in_session(session, None)

    def test_no_session(self, coordinator: AuthCoordinator) -> None:
        assert coordinator.user_option(None) is None
        coordinator.record_in_session(None, None)

    def test_unknown_id_in_session(self, coordinator: AuthCoordinator, session: MemorySession) -> None:
        session.set("UserID", "Z9")
        assert coordinator.is_authenticated(session) is False


class TestConfiguration:
    def test_default_strategy_order(self, coordinator: AuthCoordinator) -> None:
        assert coordinator.strategy_names() == ["password", "remember_me"]

    def test_remember_me_only_with_store(self, directory: Any) -> None:
        coordinator = create_default_coordinator(
            identity_id=directory.identity_id,
            identity_for_id=directory.get,
            validate_credentials=directory.check_password,
        )
        assert coordinator.strategy_names() == ["password"]

    def test_duplicate_names_rejected(self, directory: Any) -> None:
        with pytest.raises(StrategyConfigError, match="registered twice"):
            _coordinator(directory, [PasswordStrategy(), PasswordStrategy()])

    def test_remember_me_without_store_rejected(self, directory: Any) -> None:
        with pytest.raises(StrategyConfigError, match="requires a token store"):
            _coordinator(directory, [RememberMeStrategy()])
