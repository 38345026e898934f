"""Wedding RSVP service."""
