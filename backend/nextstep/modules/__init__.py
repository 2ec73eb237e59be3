"""
Engagement engine bounded contexts.

Routers call the services in these modules; the modules call repositories.
Nothing outside `nextstep.repositories` touches the table directly.
"""
