"""Role-based access control.

Hierarchy:
- ADMIN (level 3): everything, including certificate revocation
- INSTRUCTOR (level 2): author assessments, grade, approve own courses
- STUDENT (level 1): enroll, study, take assessments
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles. A higher level includes every lower one."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.STUDENT: 1,
    UserRole.INSTRUCTOR: 2,
    UserRole.ADMIN: 3,
}


def get_role_level(role: UserRole | str) -> int:
    """Permission level for a role; unknown roles get 0."""
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.INSTRUCTOR)
        True
        >>> has_permission("student", "instructor")
        False
    """
    required = get_role_level(required_role)
    return required > 0 and get_role_level(user_role) >= required


def is_admin(role: UserRole | str) -> bool:
    return get_role_level(role) == ROLE_HIERARCHY[UserRole.ADMIN]


def is_instructor(role: UserRole | str) -> bool:
    """Exactly INSTRUCTOR (admins excluded)."""
    return get_role_level(role) == ROLE_HIERARCHY[UserRole.INSTRUCTOR]


def can_manage_course(
    role: UserRole | str,
    user_id: object,
    instructor_id: object,
) -> bool:
    """Course owner check: the course's instructor, or any admin."""
    if is_admin(role):
        return True
    return is_instructor(role) and str(user_id) == str(instructor_id)
