"""
UTILITIES PACKAGE
=================

Helpers used by the services (no HTTP, no business logic):

  time_info - get_timestamp(): ISO-8601 UTC timestamp attached to each reply.
  retry     - with_retry(fn): awaits fn(); on failure retries with exponential backoff.
"""
