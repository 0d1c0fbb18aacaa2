from typing import Any

from cafe.core.errors import StoreError


def execute(query: Any) -> Any:
    """
    Run a PostgREST request builder and return `response.data`.

    Any exception raised by the SDK or the HTTP transport is converted into
    a StoreError here, which is the only place backend errors are inspected.
    """
    try:
        response = query.execute()
    except Exception as exc:
        raise StoreError.from_exception(exc) from exc
    return response.data
