# Routes package init
"""
NoteKeeper — Routes Package
===========================

Route Inventory:
    - views.py:   GET  /                       notes page
                  POST /notes                  create from the page form
                  POST /notes/{id}/delete      delete from the page
    - notes.py:   GET|POST /api/notes          JSON list / create
                  DELETE   /api/notes/{id}     JSON delete
                  GET      /files/{key}        local storage blobs
    - auth.py:    GET|POST /auth/sign-in, POST /auth/sign-out
    - health.py:  GET  /health

Routes stay thin: read the request, call the session's NotesView (or the
auth service), shape the response. Errors propagate to the handlers in main.py.
"""
