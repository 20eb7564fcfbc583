"""Custom Dishka scopes for regsync."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """regsync dependency injection scopes.

    Hierarchy: APP -> RUN

    - APP: Process lifetime (Docker and HTTP clients, auth file, adapters)
    - RUN: One sync invocation
    """

    APP = new_scope("APP")
    RUN = new_scope("RUN")
