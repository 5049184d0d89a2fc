"""ID and value generators."""

import uuid


def generate_request_id() -> str:
    """Generate a fresh request id (UUID4 string) for requests that arrive without one."""
    return str(uuid.uuid4())
