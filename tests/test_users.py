import pytest

from workflow_agent.db.backend import BackendError
from workflow_agent.middleware.auth import AuthenticationError
from workflow_agent.schemas.execution import Role
from workflow_agent.tools.users import normalize_roles, resolve_caller


class TestNormalizeRoles:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (["ROLE_OPERATOR"], {Role.OPERATOR}),
            (["role_supervisor", "ROLE_OPERATOR"], {Role.OPERATOR, Role.SUPERVISOR}),
            (["Supervisor"], {Role.SUPERVISOR}),
            (["ROLE_ADMIN", "ROLE_"], set()),
            ([], set()),
            (None, set()),
        ],
    )
    def test_normalization(self, raw, expected):
        assert normalize_roles(raw) == frozenset(expected)

    def test_non_string_entries_ignored(self):
        assert normalize_roles(["ROLE_OPERATOR", 7, None]) == frozenset({Role.OPERATOR})


class TestResolveCaller:
    def test_profile(self, supervisor_backend):
        assert resolve_caller(supervisor_backend) == ("sam", frozenset({Role.SUPERVISOR}))

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_rejected_credential(self, fake_backend_cls, status_code):
        backend = fake_backend_cls(me_error=BackendError("denied", status_code=status_code))
        with pytest.raises(AuthenticationError):
            resolve_caller(backend)

    def test_other_failure_degrades_to_no_roles(self, fake_backend_cls):
        backend = fake_backend_cls(me_error=BackendError("Workflow backend unreachable: timeout"))
        assert resolve_caller(backend) == ("", frozenset())

    def test_malformed_profile_degrades(self, fake_backend_cls):
        backend = fake_backend_cls()
        backend.me = lambda: {"roles": ["ROLE_SUPERVISOR"]}
        assert resolve_caller(backend) == ("", frozenset())
