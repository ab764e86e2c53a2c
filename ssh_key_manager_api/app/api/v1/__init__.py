"""
Version 1 of the API.

Fleet servers poll ``/api/v1/server/keys``; changing that path or the
response shape needs a new version subpackage.
"""
