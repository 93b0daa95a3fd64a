"""Errores de dominio.

Las rutas los atrapan, hacen `flash(str(e), "error")` y redirigen.
Una autorización denegada NO es un error: la resuelve el guard.
"""


class SchedulerError(Exception):
    message = "Operation failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class InvalidCredentials(SchedulerError):
    message = "Invalid email or password."


class MalformedSession(SchedulerError):
    message = "Stored session data is not a valid principal."


class UnknownRole(SchedulerError):
    message = "Role not found."


class RoleInUse(SchedulerError):
    def __init__(self, user_count: int):
        self.user_count = user_count
        super().__init__(
            f"This role is assigned to {user_count} user(s). Please reassign them first."
        )


class SystemRoleImmutable(SchedulerError):
    message = "System-defined roles cannot be modified or deleted. You can clone them instead."


class ValidationError(SchedulerError):
    message = "Please fill in all required fields."


class DuplicateEmail(SchedulerError):
    message = "An account with that email already exists."


class DepartmentInUse(SchedulerError):
    def __init__(self, employee_count: int):
        self.employee_count = employee_count
        super().__init__(
            f"This department has {employee_count} employees. Please reassign them first."
        )


class RoleSwitchingDisabled(SchedulerError):
    message = "Role switching is only available in demo builds."


class RequestNotPending(SchedulerError):
    message = "This request has already been reviewed."


class ShiftSwappingDisabled(SchedulerError):
    message = "Shift swapping is disabled for this company."
