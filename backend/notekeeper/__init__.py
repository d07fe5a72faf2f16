"""
NoteKeeper — Application Package Initializer
============================================

What: Marks the `notekeeper` directory as a Python package.
Why:  Enables module imports like `from notekeeper.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    NoteKeeper owns no data. Notes live behind a managed GraphQL API and their
    images in an object store; this package renders the page and relays calls.

    ┌─────────────────────────────────────┐
    │   Routes (HTML view + JSON API)     │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   NotesView (per-session state)     │  ← fetch / create / delete
    ├─────────────────────────────────────┤
    │   Gateways                          │  ← NotesAPI (GraphQL), ObjectStorage
    ├─────────────────────────────────────┤
    │   External backend                  │  ← AppSync, S3, Cognito
    └─────────────────────────────────────┘

    The authenticator middleware sits in front of everything and hands each
    signed-in browser its own NotesView.
"""

__version__ = "1.0.0"
