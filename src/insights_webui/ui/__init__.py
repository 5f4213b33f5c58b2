"""Server-rendered pages for the controller service.

- every page is filled from one call to the controller REST API
- forms post back here and are relayed to the controller, followed by a redirect
- no client-side state; templates are plain Jinja2
"""
