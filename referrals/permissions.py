"""
Role based access control.

Every role-restricted route uses :func:`require_roles`, which builds a
permission class accepting only the listed roles.  Anonymous callers are
left to DRF's ``NotAuthenticated`` handling (401); authenticated callers
with the wrong role get a :class:`RoleRequired` error (403) that names the
roles the route accepts.
"""
from __future__ import annotations

import logging

from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import BasePermission

logger = logging.getLogger(__name__)

CLINICIAN = 'clinician'
RECRUITER = 'recruiter'
LEADERSHIP = 'leadership'
PIPELINE_ROLES = (RECRUITER, LEADERSHIP)


class RoleRequired(PermissionDenied):
    default_detail = 'Access denied'
    default_code = 'access_denied'

    def __init__(self, required_roles, detail=None):
        self.required_roles = tuple(required_roles)
        super().__init__(detail or f"Requires role: {', '.join(self.required_roles)}")


class HasRole(BasePermission):
    """Allow access only to users whose role is in ``roles``."""
    roles: tuple[str, ...] = ()

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, 'user', None)
        if not (user and user.is_authenticated):
            return False
        role = getattr(user, 'role', None)
        if role in self.roles:
            return True
        logger.warning(
            'role check failed',
            extra={'context': {
                'userId': user.pk,
                'role': role,
                'requiredRoles': list(self.roles),
                'path': request.path,
            }},
        )
        raise RoleRequired(self.roles)


def require_roles(*roles: str) -> type[HasRole]:
    """Return a permission class that admits only ``roles``."""
    if not roles:
        raise ValueError('at least one role is required')
    name = 'Has' + ''.join(r.title() for r in roles) + 'Role'
    return type(name, (HasRole,), {'roles': tuple(roles)})


IsPipelineStaff = require_roles(*PIPELINE_ROLES)


def has_role(user, *roles: str) -> bool:
    return bool(user and user.is_authenticated and getattr(user, 'role', None) in roles)
