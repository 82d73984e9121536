"""Allow ``python -m openapi_mcp_generator``."""

from .cli import main

raise SystemExit(main())
