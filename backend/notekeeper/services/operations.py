"""
GraphQL documents for the notes API.

The schema is generated and owned by the managed backend; these documents
match its generated operations. Every operation selects the same fields so
the responses all parse into `Note`.
"""

NOTE_FIELDS = """
      id
      name
      description
      image
      createdAt
      updatedAt
"""

LIST_NOTES = """
query ListNotes(
  $filter: ModelNoteFilterInput
  $limit: Int
  $nextToken: String
) {
  listNotes(filter: $filter, limit: $limit, nextToken: $nextToken) {
    items {%s    }
    nextToken
  }
}
""" % NOTE_FIELDS

CREATE_NOTE = """
mutation CreateNote(
  $input: CreateNoteInput!
  $condition: ModelNoteConditionInput
) {
  createNote(input: $input, condition: $condition) {%s  }
}
""" % NOTE_FIELDS

DELETE_NOTE = """
mutation DeleteNote(
  $input: DeleteNoteInput!
  $condition: ModelNoteConditionInput
) {
  deleteNote(input: $input, condition: $condition) {%s  }
}
""" % NOTE_FIELDS

# Cheapest valid document; used by the health check
PING = "query Ping { __typename }"
