"""Request-scoped context stored in contextvars.

Every request gets a request id; authentication adds the acting user and role.
The logging processors read these values so that every log line emitted while
handling a request carries them without passing them around explicitly.
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
user_role_var: ContextVar[str | None] = ContextVar("user_role", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Order matters for log readability
_CONTEXT_VARS: dict[str, ContextVar[Any]] = {
    "request_id": request_id_var,
    "user_id": user_id_var,
    "user_role": user_role_var,
    "trace_id": trace_id_var,
    "correlation_id": correlation_id_var,
}


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID, generating one when none is given.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_user_id() -> str | None:
    """Get the acting user ID."""
    return user_id_var.get()


def set_user_id(user_id: str | UUID | None) -> None:
    """Set the acting user ID (string or UUID)."""
    user_id_var.set(str(user_id) if user_id is not None else None)


def get_user_role() -> str | None:
    """Get the acting user's role."""
    return user_role_var.get()


def set_user_role(role: str | None) -> None:
    """Set the acting user's role."""
    user_role_var.set(role)


def get_trace_id() -> str | None:
    """Get the distributed trace ID."""
    return trace_id_var.get()


def set_trace_id(trace_id: str | None) -> None:
    """Set the distributed trace ID."""
    trace_id_var.set(trace_id)


def get_correlation_id() -> str | None:
    """Get the correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID."""
    correlation_id_var.set(correlation_id)


def get_context() -> dict[str, Any]:
    """Return the non-empty context values as a dictionary."""
    return {name: var.get() for name, var in _CONTEXT_VARS.items() if var.get()}


def clear_context() -> None:
    """Reset all context variables at the end of a request."""
    request_id_var.set("")
    for name, var in _CONTEXT_VARS.items():
        if name != "request_id":
            var.set(None)


class RequestContext:
    """Context manager that scopes context values to a block.

    Used by background code and tests that log outside an HTTP request:

        with RequestContext(user_id=student_id):
            logger.info("course_progress_updated")
    """

    def __init__(
        self,
        request_id: str | None = None,
        user_id: str | UUID | None = None,
        user_role: str | None = None,
        trace_id: str | None = None,
    ) -> None:
        self._values: dict[str, Any] = {
            "request_id": request_id or generate_request_id(),
            "user_id": str(user_id) if user_id is not None else None,
            "user_role": user_role,
            "trace_id": trace_id,
        }
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "RequestContext":
        for name, value in self._values.items():
            if value is not None:
                self._tokens[name] = _CONTEXT_VARS[name].set(value)
        return self

    def __exit__(self, *_: object) -> None:
        for name, token in self._tokens.items():
            _CONTEXT_VARS[name].reset(token)
        self._tokens.clear()
