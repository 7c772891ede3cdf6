from typing import Optional


def is_authorized(method: str, authorization: Optional[str]) -> bool:
    """
    Gate for scheduled reminder triggers.

    Cron triggers carry an Authorization header; manual runs are POSTs. A
    request with neither is rejected.
    """
    if authorization:
        return True
    return method.upper() == "POST"
