# Services package init
"""
NoteKeeper — Services Layer
===========================

What:  Everything between the routes and the external backend.

Service Inventory:
    - NotesAPI (notes_api.py): GraphQL gateway for listNotes/createNote/deleteNote
    - ObjectStorage (storage.py): image blobs; S3 or local-disk backend
    - NotesView (notes_view.py): one session's notes page state and handlers
    - CognitoAuthService (auth_service.py): sign-in, refresh, sign-out
    - SessionStore (session_store.py): signed-in browsers and their views

Gateways are module-level singletons created at import and shared by all
sessions; NotesView instances are per session.
"""
