"""Top-level application package for the Focal receipts API.

This package contains the receipt extraction pipeline of the Focal
expense tracker: cheap image validation, the sliding-window AI usage
quota, the interchangeable extraction providers with credential
fallback, the processing log and the budget health check that runs
after an expense is saved.

To run the API locally you can execute:

```bash
uvicorn focal.api.main:app --reload
```

The default configuration uses a local SQLite database stored in
``focal.db``. You can override configuration values using environment
variables or a ``.env`` file at the project root.
"""

__all__: list[str] = []
