"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Conversation sidebar with new / select / delete
    - Model picker bound to the current conversation
    - Image and document attachments with previews
    - Markdown rendering of streamed replies with a streaming indicator

Turn logic and persistence live in ``controller``; the page only renders
state and forwards events.
"""
