from datetime import timedelta

import pytest

from auth.principals import Admin, ApiClient, Principal, PrincipalStore, User
from auth.timeoutable import NotTimeoutAware, TimeoutAware, TimeoutConfig, supports_timeout


class TestCapabilities:
    def test_timeout_aware_types(self):
        assert supports_timeout(User(id="alice")) is True
        assert supports_timeout(Admin(id="root")) is True

    def test_not_timeout_aware_types(self):
        assert supports_timeout(ApiClient(id="bot")) is False
        assert supports_timeout(Principal(id="ghost")) is False
        assert supports_timeout(object()) is False

    def test_capability_is_explicit_opt_in(self):
        class Kiosk(Principal, NotTimeoutAware):
            pass

        class Operator(Principal, TimeoutAware):
            pass

        assert supports_timeout(Kiosk(id="lobby")) is False
        assert supports_timeout(Operator(id="op")) is True

    def test_timeout_aware_principal_outside_store_is_rejected(self, clock):
        user = User(id="alice")

        with pytest.raises(RuntimeError, match="no timeout policy attached"):
            user.timed_out(clock() - timedelta(days=30))
        with pytest.raises(RuntimeError, match="no timeout policy attached"):
            user.timeout_in


class TestPrincipalStore:
    def test_add_attaches_policy_for_type(self, principal_store, clock):
        user = principal_store.add(User(id="alice"))
        admin = principal_store.add(Admin(id="root"))

        assert user.timeout_in == timedelta(minutes=30)
        assert admin.timeout_in == timedelta(minutes=10)
        assert admin.timed_out(clock() - timedelta(minutes=10)) is True
        assert user.timed_out(clock() - timedelta(minutes=10)) is False

    def test_policy_is_shared_per_type(self, principal_store):
        first = principal_store.add(User(id="alice"))
        second = principal_store.add(User(id="bob"))
        assert first.timeout_policy is second.timeout_policy

    def test_create_and_get(self, principal_store):
        created = principal_store.create("admin", "root")
        assert isinstance(created, Admin)
        assert principal_store.get("admin", "root") is created
        assert principal_store.get("user", "root") is None

    def test_create_unknown_type_raises(self, principal_store):
        with pytest.raises(ValueError, match="Unknown principal type 'robot'"):
            principal_store.create("robot", "r2")

    def test_restore_returns_registered_principal(self, principal_store):
        created = principal_store.create("user", "alice")
        assert principal_store.restore("user", "alice", remember_token="other") is created
        assert created.remember_token is None

    def test_restore_rebuilds_unknown_principal(self, principal_store, clock):
        restored = principal_store.restore("admin", "root", remember_token="tok", remember_created_at=clock())

        assert isinstance(restored, Admin)
        assert restored.timeout_in == timedelta(minutes=10)
        assert restored.remember_token == "tok"
        assert restored.remember_created_at == clock()
        assert principal_store.get("admin", "root") is restored

    def test_restore_unknown_type_raises(self, principal_store):
        with pytest.raises(ValueError, match="Unknown principal type"):
            principal_store.restore("robot", "r2")

    def test_type_missing_from_config_never_times_out(self, clock):
        store = PrincipalStore(TimeoutConfig(), now=clock)
        user = store.create("user", "alice")
        assert user.timed_out(clock() - timedelta(days=1)) is False
