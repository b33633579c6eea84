"""Church CRM core package.

Organized by feature modules (people, programs, attendance, tally,
follow-ups, ...) with a thin Flask controller layer on top of
service/repository layers backed by a key-value blob store.
"""
