"""Invocation logging for engine public API methods.

Every engine entry point is wrapped once, so each call produces one start
line and one completion line carrying the catalog object it targeted.
"""

from __future__ import annotations

from functools import wraps
from time import perf_counter
from typing import Any, Callable

from . import fields
from .context import log_context


def public_api_logged(
    *,
    logger: Any,
    component_id: str,
    api_name: str | None = None,
    id_fields: tuple[str, ...] = (),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate one public API method with invocation/completion logging.

    ``id_fields`` names keyword arguments whose values are bound into the log
    context for the duration of the call, e.g. ``("schema_name", "table")``.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        method_name = api_name or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            references = {
                _field_name(name): kwargs[name]
                for name in id_fields
                if kwargs.get(name) not in (None, "")
            }
            context: dict[str, object] = {
                fields.COMPONENT: component_id,
                fields.API_NAME: method_name,
                **references,
            }
            with log_context(context):
                with log_context({fields.EVENT: fields.PUBLIC_API_INVOCATION_EVENT}):
                    logger.debug("public api invocation")
                started = perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception as exc:
                    _log_completion(
                        logger,
                        success=False,
                        started=started,
                        error=exc,
                    )
                    raise
                _log_completion(logger, success=True, started=started, error=None)
                return result

        return wrapper

    return decorator


def _log_completion(
    logger: Any, *, success: bool, started: float, error: Exception | None
) -> None:
    """Emit the completion line for one call."""
    payload: dict[str, object] = {
        fields.EVENT: fields.PUBLIC_API_COMPLETION_EVENT,
        fields.SUCCESS: success,
        fields.DURATION_MS: round((perf_counter() - started) * 1000.0, 3),
    }
    if error is not None:
        payload[fields.ERROR_CODE] = getattr(error, "code", type(error).__name__)
        category = getattr(error, "category", None)
        if category is not None:
            payload[fields.ERROR_CATEGORY] = category
    with log_context(payload):
        if success:
            logger.info("public api completion")
        else:
            logger.warning("public api completion: %s", error)


def _field_name(argument: str) -> str:
    """Map keyword argument names onto canonical log field names."""
    return _ARGUMENT_FIELDS.get(argument, argument)


_ARGUMENT_FIELDS = {
    "schema_name": fields.SCHEMA,
    "table": fields.TABLE,
    "role": fields.ROLE,
    "name": fields.ROLE,
    "privilege": fields.PRIVILEGE,
}
