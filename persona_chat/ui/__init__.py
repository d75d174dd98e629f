"""NiceGUI interface - thin presentation layer over the session controller.

Responsibilities:
    - Sidebar with the merged chat list (new, select, delete)
    - Persona picker with category filter and AI suggestions
    - Message list with typing indicator while a reply starts
    - Temporary chat switch before the first user message

Talks to the API only through the HTTP clients; all session rules live
in the controller.
"""
