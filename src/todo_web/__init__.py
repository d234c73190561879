"""
Todo Web package.

FastAPI application serving the todo pages and JSON API (``main``), its
storage backends (``repositories``, ``db``, ``migrations``) and the row
context menu (``context_menu``) that runs on the headless document model in
``dom``.
"""
