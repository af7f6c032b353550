"""Role resolution for the calling user."""
import logging
from typing import FrozenSet, Iterable, Optional, Tuple

from pydantic import ValidationError

from workflow_agent.db.backend import BackendError
from workflow_agent.middleware.auth import AuthenticationError
from workflow_agent.schemas.execution import Role
from workflow_agent.schemas.workflow import CallerProfile

logger = logging.getLogger(__name__)

ROLE_PREFIX = "role_"
_KNOWN_ROLES = {role.value: role for role in Role}


def normalize_roles(raw_roles: Optional[Iterable[str]]) -> FrozenSet[Role]:
    """Strip the ``ROLE_`` prefix, case-fold and keep only recognized roles."""
    roles = set()
    for raw in raw_roles or []:
        if not isinstance(raw, str):
            continue
        name = raw.strip().lower()
        if name.startswith(ROLE_PREFIX):
            name = name[len(ROLE_PREFIX):]
        role = _KNOWN_ROLES.get(name)
        if role is not None:
            roles.add(role)
    return frozenset(roles)


def resolve_caller(backend) -> Tuple[str, FrozenSet[Role]]:
    """
    Look up the caller's username and recognized roles.

    A 401/403 from the backend means the credential is invalid and the request
    must be rejected. Any other failure degrades to an empty role set, which
    puts the request in question-answering-only mode.

    Raises:
        AuthenticationError: If the backend rejects the credential
    """
    try:
        profile = CallerProfile.model_validate(backend.me())
    except BackendError as e:
        if e.is_auth_failure:
            raise AuthenticationError(str(e)) from e
        logger.warning("Could not resolve caller roles, continuing without actions: %s", e)
        return "", frozenset()
    except ValidationError as e:
        logger.warning("Caller profile has an unexpected shape, continuing without actions: %s", e)
        return "", frozenset()

    roles = normalize_roles(profile.roles)
    logger.debug("Resolved caller %s with roles %s", profile.username, sorted(r.value for r in roles))
    return profile.username, roles
